"""
URL Shortening Service

This service handles the business logic for managing short URLs:
- Validating and normalizing long URLs
- Allocating random codes or custom aliases (see code_generator)
- Owner-only listing, update, soft delete and analytics

Design Decisions:
- Allocation is delegated to ShortCodeAllocator; uniqueness ultimately rests
  on the database constraint, not on this service's checks
- Deleting a URL only flips is_active, so its click history survives
- Lookups for a foreign user's URL fail exactly like lookups for a missing
  URL, so ids of other users' links are not revealed
"""

from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from shortener.core.exceptions import DatabaseError, InvalidURLError, NotFoundError
from shortener.core.setting import settings
from shortener.core.validators import is_valid_url, normalize_url
from shortener.db.models import ShortURL, as_utc
from shortener.services.click_log import ClickLogService
from shortener.services.code_generator import ShortCodeAllocator
from shortener.services.stats_service import StatsService
from shortener.services.url_registry import SQLURLRegistry, URLRegistry

MAX_PAGE_SIZE = 100
ANALYTICS_LIMIT = 1000


class URLShorteningService:
    """
    Core business logic for URL shortening.

    Handles URL validation, code allocation and database operations.
    Separated from API layer for testability and maintainability.
    """

    def __init__(
        self,
        session: AsyncSession,
        registry: Optional[URLRegistry] = None,
        code_length: int = settings.SHORT_CODE_LENGTH,
        max_attempts: int = settings.SHORT_CODE_MAX_ATTEMPTS,
        max_url_length: int = settings.MAX_URL_LENGTH,
    ):
        """
        Args:
            session: Database session
            registry: Uniqueness-enforcing store, defaults to the SQL registry on ``session``
            code_length: Length of random short codes
            max_attempts: Allocation attempts before ExhaustedRetriesError
            max_url_length: Longest accepted original URL
        """
        self.session = session
        self.registry = registry or SQLURLRegistry(session)
        self.allocator = ShortCodeAllocator(
            self.registry,
            code_length=code_length,
            max_attempts=max_attempts,
        )
        self.max_url_length = max_url_length

    def _validated_url(self, original_url: str) -> str:
        if not is_valid_url(original_url, max_length=self.max_url_length):
            raise InvalidURLError(
                original_url,
                reason="Invalid URL format. URL must use http:// or https:// and have a valid host"
            )
        return normalize_url(original_url)

    async def create_url(
        self,
        original_url: str,
        custom_alias: Optional[str] = None,
        user_id: Optional[int] = None,
        title: Optional[str] = None,
        description: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> ShortURL:
        """
        Create a new short URL.

        Returns:
            ShortURL object with short_code populated

        Raises:
            InvalidURLError: If URL format is invalid
            InvalidAliasError / AliasTakenError: If the custom alias is unusable
            ExhaustedRetriesError: If no free random code was found
            DatabaseError: If database operation fails
        """
        normalized_url = self._validated_url(original_url)
        expiry = as_utc(expires_at) if expires_at is not None else None

        def build_record(code: str) -> ShortURL:
            return ShortURL(
                original_url=normalized_url,
                short_code=code,
                custom_alias=custom_alias or None,
                user_id=user_id,
                title=title,
                description=description,
                expires_at=expiry,
                is_active=True,
            )

        return await self.allocator.allocate(build_record, custom_alias=custom_alias or None)

    async def get_owned_url(self, url_id: int, user_id: int) -> ShortURL:
        """
        Fetch an active URL belonging to ``user_id``.

        Raises:
            NotFoundError: If the URL does not exist, is deleted or is not owned by the user
        """
        statement = (
            select(ShortURL)
            .where(ShortURL.id == url_id)
            .where(ShortURL.user_id == user_id)
            .where(ShortURL.is_active == True)  # noqa: E712
        )
        result = await self.session.execute(statement)
        short_url = result.scalars().first()
        if short_url is None:
            raise NotFoundError(str(url_id), message=f"URL {url_id} not found")
        return short_url

    async def get_user_urls(
        self,
        user_id: int,
        limit: int = 10,
        offset: int = 0,
    ) -> Tuple[List[ShortURL], int]:
        """
        List a user's active URLs, newest first.

        Returns:
            (urls, total) where total ignores limit/offset
        """
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        offset = max(0, offset)

        count_statement = (
            select(func.count(ShortURL.id))
            .where(ShortURL.user_id == user_id)
            .where(ShortURL.is_active == True)  # noqa: E712
        )
        total = (await self.session.execute(count_statement)).scalar() or 0

        statement = (
            select(ShortURL)
            .where(ShortURL.user_id == user_id)
            .where(ShortURL.is_active == True)  # noqa: E712
            .order_by(ShortURL.created_at.desc(), ShortURL.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all()), total

    async def update_url(
        self,
        url_id: int,
        user_id: int,
        original_url: Optional[str] = None,
        title: Optional[str] = None,
        description: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> ShortURL:
        """
        Update mutable fields of a URL owned by ``user_id``.

        Fields left as None are unchanged; an empty title or description
        clears it. The short code and alias are immutable.
        """
        short_url = await self.get_owned_url(url_id, user_id)

        if original_url is not None:
            short_url.original_url = self._validated_url(original_url)
        if title is not None:
            short_url.title = title or None
        if description is not None:
            short_url.description = description or None
        if expires_at is not None:
            short_url.expires_at = as_utc(expires_at)
        short_url.updated_at = datetime.now(timezone.utc)

        return await self._save(short_url, "update")

    async def delete_url(self, url_id: int, user_id: int) -> None:
        """
        Soft-delete a URL owned by ``user_id``. It stops resolving immediately.
        """
        short_url = await self.get_owned_url(url_id, user_id)
        short_url.is_active = False
        short_url.updated_at = datetime.now(timezone.utc)
        await self._save(short_url, "delete")

    async def get_url_analytics(self, url_id: int, user_id: int) -> dict:
        """
        Recent clicks plus aggregate stats for a URL owned by ``user_id``.
        """
        await self.get_owned_url(url_id, user_id)
        clicks = await ClickLogService(self.session).recent_clicks(url_id, limit=ANALYTICS_LIMIT)
        stats = await StatsService(self.session).get_stats(url_id)
        return {"analytics": clicks, "stats": stats}

    async def _save(self, short_url: ShortURL, action: str) -> ShortURL:
        try:
            self.session.add(short_url)
            await self.session.flush()
            await self.session.commit()
            await self.session.refresh(short_url)
            return short_url
        except Exception as e:
            await self.session.rollback()
            raise DatabaseError(f"Failed to {action} URL: {e}", original_error=e)
