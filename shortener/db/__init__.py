"""
Database module with abstraction layer.

This module provides:
- DatabaseAdapter interface: Abstract base class for database implementations
- SQLiteAdapter / PostgreSQLAdapter: Backend-specific implementations
- Session management: Database session creation and management
"""

from shortener.db.interface import DatabaseAdapter
from shortener.db.session import get_session, async_session_maker, engine, init_db

__all__ = [
    "DatabaseAdapter",
    "get_session",
    "async_session_maker",
    "engine",
    "init_db",
]
