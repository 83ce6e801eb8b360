"""
Service Components

This module builds the long-lived, in-process components of one application
instance and manages their background tasks.

Components:
- SlidingWindowRateLimiter (janitor every minute)
- SessionStore (janitor every hour)
- ClickRecorder (queue worker)
- OAuthProvider (stateless)

Design:
- One ServiceComponents per application, stored on ``app.state``
- Started in the application lifespan, stopped on shutdown, no globals
- Request handlers reach the components through FastAPI dependencies
"""

import logging
from dataclasses import dataclass

from fastapi import Request

from shortener.core.rate_limit import SlidingWindowRateLimiter
from shortener.core.setting import Settings
from shortener.services.background_tasks import record_click_background
from shortener.services.click_recorder import ClickRecorder
from shortener.services.oauth import GoogleOAuthProvider, OAuthProvider
from shortener.services.session_store import SessionStore

logger = logging.getLogger(__name__)


@dataclass
class ServiceComponents:
    rate_limiter: SlidingWindowRateLimiter
    session_store: SessionStore
    click_recorder: ClickRecorder
    oauth_provider: OAuthProvider
    click_drain_timeout: float = 5.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "ServiceComponents":
        return cls(
            rate_limiter=SlidingWindowRateLimiter(
                limit=settings.RATE_LIMIT_REQUESTS,
                window_seconds=settings.RATE_LIMIT_WINDOW,
            ),
            session_store=SessionStore(),
            click_recorder=ClickRecorder(
                sink=record_click_background,
                max_queue_size=settings.CLICK_QUEUE_SIZE,
            ),
            oauth_provider=GoogleOAuthProvider(
                client_id=settings.GOOGLE_CLIENT_ID,
                client_secret=settings.GOOGLE_CLIENT_SECRET,
                redirect_uri=f"{settings.FRONTEND_URL}/auth/callback",
            ),
            click_drain_timeout=settings.CLICK_DRAIN_TIMEOUT,
        )

    def start(self) -> None:
        """Start background tasks. Must be called from a running event loop."""
        self.rate_limiter.start()
        self.session_store.start()
        self.click_recorder.start()
        logger.info("Service components started")

    async def stop(self) -> None:
        """Stop background tasks; pending clicks get a bounded chance to drain."""
        await self.click_recorder.stop(drain_timeout=self.click_drain_timeout)
        await self.session_store.stop()
        await self.rate_limiter.stop()
        logger.info("Service components stopped")


def get_components(request: Request) -> ServiceComponents:
    return request.app.state.components


def get_rate_limiter(request: Request) -> SlidingWindowRateLimiter:
    return get_components(request).rate_limiter


def get_session_store(request: Request) -> SessionStore:
    return get_components(request).session_store


def get_click_recorder(request: Request) -> ClickRecorder:
    return get_components(request).click_recorder


def get_oauth_provider(request: Request) -> OAuthProvider:
    return get_components(request).oauth_provider
