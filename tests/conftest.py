"""
Shared fixtures.

The database is a throwaway SQLite file; DATABASE_URL is set before any
``shortener`` module is imported so the engine binds to it.
"""

import asyncio
import itertools
import os
import tempfile
from typing import Dict, Optional

_DB_DIR = tempfile.mkdtemp(prefix="shortener-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/test.db"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["JWT_SECRET"] = "test-secret-key-that-is-long-enough-for-hs256"

import httpx
import pytest
from sqlmodel import SQLModel

from shortener.core.components import ServiceComponents
from shortener.core.exceptions import UniqueConstraintViolation
from shortener.core.rate_limit import SlidingWindowRateLimiter
from shortener.db import models  # noqa: F401
from shortener.db.models import ShortURL
from shortener.db.session import async_session_maker, engine
from shortener.services.background_tasks import record_click_background
from shortener.services.click_recorder import ClickRecorder
from shortener.services.oauth import OAuthProvider, OAuthUserInfo
from shortener.services.session_store import SessionStore
from shortener.services.url_registry import URLRegistry


class InMemoryURLRegistry(URLRegistry):
    """
    URL registry that enforces code/alias uniqueness like the UNIQUE
    constraints do, and yields to the event loop between steps so
    concurrent allocations interleave.
    """

    def __init__(self):
        self.records: Dict[str, ShortURL] = {}
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()
        self.insert_calls = 0

    def _taken(self, value: str) -> bool:
        return any(
            value in (record.short_code, record.custom_alias)
            for record in self.records.values()
        )

    async def exists(self, code_or_alias: str) -> bool:
        await asyncio.sleep(0)
        return self._taken(code_or_alias)

    async def insert(self, record: ShortURL) -> ShortURL:
        self.insert_calls += 1
        await asyncio.sleep(0)
        async with self._lock:
            if self._taken(record.short_code) or (record.custom_alias and self._taken(record.custom_alias)):
                raise UniqueConstraintViolation(record.short_code)
            record.id = next(self._ids)
            self.records[record.short_code] = record
            return record

    async def find_active_by_code_or_alias(self, code: str) -> Optional[ShortURL]:
        for record in self.records.values():
            if record.is_active and code in (record.short_code, record.custom_alias):
                return record
        return None


class FakeOAuthProvider(OAuthProvider):
    def __init__(self, user_info: Optional[OAuthUserInfo] = None):
        self.user_info = user_info or OAuthUserInfo(
            email="oauth.user@example.com",
            name="OAuth User",
            picture="https://example.com/avatar.png",
        )
        self.codes = []

    def authorization_url(self, state: str) -> str:
        return f"https://accounts.example.com/auth?state={state}"

    async def fetch_user_info(self, code: str) -> OAuthUserInfo:
        self.codes.append(code)
        return self.user_info


@pytest.fixture
def registry():
    return InMemoryURLRegistry()


@pytest.fixture
async def db_tables():
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)


@pytest.fixture
async def db_session(db_tables):
    async with async_session_maker() as session:
        yield session


def build_components(rate_limit: int = 1000) -> ServiceComponents:
    return ServiceComponents(
        rate_limiter=SlidingWindowRateLimiter(limit=rate_limit, window_seconds=3600),
        session_store=SessionStore(),
        click_recorder=ClickRecorder(sink=record_click_background),
        oauth_provider=FakeOAuthProvider(),
        click_drain_timeout=1.0,
    )


@pytest.fixture
def make_components():
    return build_components


@pytest.fixture
async def components():
    components = build_components()
    components.start()
    yield components
    await components.stop()


@pytest.fixture
async def client(db_tables, components):
    from shortener.main import app

    app.state.components = components
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
