"""
Redirect Service

This service handles URL redirection, the hot path of the whole system.

Design Decisions:
- Lookup matches the short code or the custom alias among active records
- Expiry is evaluated at read time, so "expired" (410) stays distinguishable
  from "never existed / deleted" (404)
- The click is handed to the ClickRecorder and never awaited; the caller
  gets the target URL as soon as the lookup is done
"""

from datetime import datetime
from typing import Callable

from shortener.core.exceptions import ExpiredError, NotFoundError
from shortener.db.models import ShortURL, as_utc, utcnow
from shortener.services.click_recorder import ClickRecorder, RequestContext
from shortener.services.url_registry import URLRegistry


class RedirectService:
    """
    Service for handling URL redirections.
    """

    def __init__(
        self,
        registry: URLRegistry,
        click_recorder: ClickRecorder,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.registry = registry
        self.click_recorder = click_recorder
        self._clock = clock

    async def resolve(self, short_code: str) -> ShortURL:
        """
        Find the URL record for a short code or alias.

        Raises:
            NotFoundError: No active record uses the code
            ExpiredError: The record's expires_at has passed
        """
        short_url = await self.registry.find_active_by_code_or_alias(short_code)
        if short_url is None:
            raise NotFoundError(short_code)

        if short_url.expires_at is not None and as_utc(short_url.expires_at) <= self._clock():
            raise ExpiredError(short_code)

        return short_url

    async def get_redirect_url(self, short_code: str, context: RequestContext) -> str:
        """
        Resolve a short code and schedule click recording.

        Returns:
            The original URL to redirect to
        """
        short_url = await self.resolve(short_code)
        self.click_recorder.record_click(short_url.id, context)
        return short_url.original_url
