"""
Database Adapters

DatabaseAdapter implementations for SQLite (default, development and tests)
and PostgreSQL (production, asyncpg driver).
"""

from typing import Any, Dict

from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import NullPool

from shortener.db.interface import DatabaseAdapter

UNIQUE_VIOLATION_SQLSTATE = "23505"


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite is file-based: no pooling, and connections may be used from the
    aiosqlite worker thread.
    """

    dialect = "sqlite"

    def engine_options(self) -> Dict[str, Any]:
        return {
            "poolclass": NullPool,
            "connect_args": {
                "check_same_thread": False,
                "timeout": 30,  # seconds to wait on a locked database file
            },
            "echo": False,
        }

    def is_unique_violation(self, error: IntegrityError) -> bool:
        # sqlite3 reports "UNIQUE constraint failed: urls.short_code"
        return "unique constraint failed" in str(error.orig).lower()


class PostgreSQLAdapter(DatabaseAdapter):

    dialect = "postgresql"

    def engine_options(self) -> Dict[str, Any]:
        return {
            "pool_size": 10,
            "max_overflow": 20,
            "pool_pre_ping": True,
            "echo": False,
        }

    def is_unique_violation(self, error: IntegrityError) -> bool:
        sqlstate = getattr(error.orig, "sqlstate", None) or getattr(error.orig, "pgcode", None)
        if sqlstate is not None:
            return sqlstate == UNIQUE_VIOLATION_SQLSTATE
        return "unique" in str(error.orig).lower()


def get_database_adapter(database_url: str = "") -> DatabaseAdapter:
    """Return the adapter for a connection string; SQLite unless it is PostgreSQL."""
    if database_url.startswith("postgresql"):
        return PostgreSQLAdapter()
    return SQLiteAdapter()
