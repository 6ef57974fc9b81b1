"""
PostgreSQL Database Adapter

Production backend. Uses asyncpg through SQLAlchemy's default queue pool.
Row-level locking on UPDATE/DELETE keeps concurrent increments and deletes
of the same code consistent without any application-side locking.
"""

from typing import Any, Optional

from sqlalchemy.pool import Pool

from shortlinks.db.interface import DatabaseAdapter


class PostgreSQLAdapter(DatabaseAdapter):
    """PostgreSQL database adapter implementation."""

    def get_pool_class(self) -> Optional[type[Pool]]:
        # Let SQLAlchemy pick AsyncAdaptedQueuePool
        return None

    def get_connect_args(self) -> dict[str, Any]:
        return {}

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": False,
            "pool_size": 10,
            "max_overflow": 20,
            "pool_pre_ping": True,  # Drop dead connections after a database restart
        }

    def get_dialect_name(self) -> str:
        return "postgresql"
