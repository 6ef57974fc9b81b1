"""
Database Session Management with Connection Pooling

This module handles async database connections using SQLAlchemy's async engine.
Uses a database abstraction layer to support different database backends.

Key Features:
- Database abstraction: Adapter chosen from DATABASE_URL
- Connection pooling: Configured per database type
- Async session management: Proper async context management
- Error handling: Automatic rollback on exceptions
"""

import logging
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from shortlinks.core.setting import settings
from shortlinks.db.adapters import get_database_adapter

logger = logging.getLogger(__name__)

db_adapter = get_database_adapter(settings.DATABASE_URL)

# The adapter handles all database-specific configuration
engine = db_adapter.create_engine(
    settings.DATABASE_URL
)

async_session_maker = async_sessionmaker(
    engine,
    class_=SQLModelAsyncSession,
    expire_on_commit=False,  # Prevents SQLAlchemy from expiring objects after commit
    autoflush=False,
)


async def init_models(bind: AsyncEngine = engine) -> None:
    """
    Create any missing tables from the SQLModel metadata.

    Used for local development and tests; deployed databases are migrated
    with Alembic instead (AUTO_CREATE_TABLES=false).
    """
    from shortlinks.db import models  # noqa: F401  registers tables on the metadata

    async with bind.begin() as connection:
        await connection.run_sync(SQLModel.metadata.create_all)
    logger.info(f"Database tables ensured on {db_adapter.get_dialect_name()}")


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function for FastAPI to get database session.

    This function:
    - Creates a new async session from the pool
    - Yields it to the endpoint
    - Automatically commits on success
    - Rolls back on exception
    - Closes session automatically (context manager handles it)

    Usage in FastAPI:
        @router.get("/endpoint")
        async def endpoint(session: AsyncSession = Depends(get_session)):
            # Use session here
            pass
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
