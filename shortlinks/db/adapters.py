"""
Database adapter factory.

Picks the adapter from the dialect part of the connection string, so switching
from SQLite to PostgreSQL is a DATABASE_URL change only.
"""

from sqlalchemy.engine import make_url

from shortlinks.db.interface import DatabaseAdapter
from shortlinks.db.postgres_adapter import PostgreSQLAdapter
from shortlinks.db.sqlite_adapter import SQLiteAdapter

_ADAPTERS = {
    "sqlite": SQLiteAdapter,
    "postgresql": PostgreSQLAdapter,
}


def get_database_adapter(database_url: str) -> DatabaseAdapter:
    """
    Factory function to get the database adapter for a connection string.

    Args:
        database_url: SQLAlchemy URL, e.g. sqlite+aiosqlite:///./shortlinks.db

    Returns:
        DatabaseAdapter instance

    Raises:
        ValueError: If the dialect has no adapter
    """
    dialect = make_url(database_url).get_backend_name()
    try:
        return _ADAPTERS[dialect]()
    except KeyError:
        raise ValueError(f"Unsupported database dialect: {dialect}") from None
