"""
Database Abstraction Interface

Backend differences (engine options, how a driver reports a UNIQUE
violation) live behind DatabaseAdapter, so services and the allocation
protocol stay backend-agnostic.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine


class DatabaseAdapter(ABC):
    """
    Abstract base class for database adapters.

    To add a new database backend:
    1. Subclass DatabaseAdapter and set ``dialect``
    2. Implement engine_options() and is_unique_violation()
    3. Teach get_database_adapter() to return it
    """

    dialect: str = ""

    def create_engine(self, database_url: str, **overrides) -> AsyncEngine:
        options = self.engine_options()
        options.update(overrides)
        return create_async_engine(database_url, **options)

    @abstractmethod
    def engine_options(self) -> Dict[str, Any]:
        """Keyword arguments for create_async_engine (pool, connect args, echo)."""

    @abstractmethod
    def is_unique_violation(self, error: IntegrityError) -> bool:
        """
        Tell a UNIQUE constraint violation apart from other integrity errors
        (NOT NULL, foreign keys).
        """
