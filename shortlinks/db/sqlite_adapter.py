"""
SQLite Database Adapter

This module implements the DatabaseAdapter interface for SQLite.
All SQLite-specific configuration is encapsulated here.

SQLite is a file-based database that's perfect for:
- Local development
- Testing
- Single-instance deployments

Key characteristics:
- File-based (single .db file)
- Single writer at a time (file locking), which serializes inserts,
  increments and deletes on the short_links table
- RETURNING is available from SQLite 3.35
"""

from typing import Any

from sqlalchemy.pool import NullPool

from shortlinks.db.interface import DatabaseAdapter


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter implementation.

    Uses NullPool because a file-based database doesn't benefit from
    connection pooling.
    """

    def get_pool_class(self) -> type[NullPool]:
        return NullPool

    def get_connect_args(self) -> dict[str, Any]:
        """
        Get SQLite-specific connection arguments.

        check_same_thread=False is required because aiosqlite runs the
        connection on a worker thread.
        """
        return {
            "check_same_thread": False
        }

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": False  # Set to True only for SQL debugging in development
        }

    def get_dialect_name(self) -> str:
        return "sqlite"
