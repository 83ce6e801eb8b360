"""
URL Registry

Persistent key space of short codes and aliases. The registry is the single
source of truth for uniqueness: the UNIQUE constraints on urls.short_code
and urls.custom_alias decide the winner when two requests try to claim the
same value at once.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from shortener.core.exceptions import DatabaseError, UniqueConstraintViolation
from shortener.db.interface import DatabaseAdapter
from shortener.db.models import ShortURL
from shortener.db.session import db_adapter as default_adapter

logger = logging.getLogger(__name__)


class URLRegistry(ABC):
    """Storage contract used by code allocation and redirect resolution."""

    @abstractmethod
    async def exists(self, code_or_alias: str) -> bool:
        """True if any record, active or not, uses the value as code or alias."""

    @abstractmethod
    async def insert(self, record: ShortURL) -> ShortURL:
        """
        Persist a new record.

        Raises:
            UniqueConstraintViolation: If the code or alias is already taken
        """

    @abstractmethod
    async def find_active_by_code_or_alias(self, code: str) -> Optional[ShortURL]:
        """Active record whose short code or custom alias equals ``code``."""


class SQLURLRegistry(URLRegistry):
    """URLRegistry backed by the urls table."""

    def __init__(self, session: AsyncSession, adapter: DatabaseAdapter = default_adapter):
        self.session = session
        self.adapter = adapter

    async def exists(self, code_or_alias: str) -> bool:
        statement = (
            select(ShortURL.id)
            .where(or_(ShortURL.short_code == code_or_alias, ShortURL.custom_alias == code_or_alias))
            .limit(1)
        )
        result = await self.session.execute(statement)
        return result.first() is not None

    async def insert(self, record: ShortURL) -> ShortURL:
        try:
            self.session.add(record)
            await self.session.flush()
            await self.session.commit()
            await self.session.refresh(record)
            return record
        except IntegrityError as e:
            await self.session.rollback()
            if self.adapter.is_unique_violation(e):
                logger.info(f"Unique constraint hit for short code '{record.short_code}'")
                raise UniqueConstraintViolation(record.short_code) from e
            raise DatabaseError("Failed to create short URL: constraint violation", original_error=e)
        except Exception as e:
            await self.session.rollback()
            raise DatabaseError(f"Failed to create short URL: {e}", original_error=e)

    async def find_active_by_code_or_alias(self, code: str) -> Optional[ShortURL]:
        statement = (
            select(ShortURL)
            .where(or_(ShortURL.short_code == code, ShortURL.custom_alias == code))
            .where(ShortURL.is_active == True)  # noqa: E712
            .limit(1)
        )
        result = await self.session.execute(statement)
        return result.scalars().first()
