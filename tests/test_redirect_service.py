"""
Tests for redirect resolution.
"""

import asyncio
import time
from datetime import datetime, timedelta, timezone

import pytest

from shortener.core.exceptions import ExpiredError, NotFoundError
from shortener.db.models import ShortURL
from shortener.services.click_recorder import ClickRecorder, RequestContext
from shortener.services.redirect_service import RedirectService

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
CONTEXT = RequestContext("198.51.100.7", "curl/8.4.0", None)


class RecordingSink:
    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.events = []

    async def __call__(self, event):
        if self.delay:
            await asyncio.sleep(self.delay)
        self.events.append(event)


@pytest.fixture
async def recorder():
    sink = RecordingSink()
    recorder = ClickRecorder(sink)
    recorder.start()
    yield recorder
    await recorder.stop(drain_timeout=1.0)


async def add(registry, code, **fields):
    return await registry.insert(ShortURL(original_url=f"https://example.com/{code}", short_code=code, **fields))


class TestResolve:

    async def test_unknown_code_is_not_found(self, registry, recorder):
        service = RedirectService(registry, recorder, clock=lambda: NOW)

        with pytest.raises(NotFoundError):
            await service.get_redirect_url("missing", CONTEXT)
        assert recorder.pending == 0

    async def test_inactive_url_is_not_found(self, registry, recorder):
        await add(registry, "gone", is_active=False)
        service = RedirectService(registry, recorder, clock=lambda: NOW)

        with pytest.raises(NotFoundError):
            await service.resolve("gone")

    async def test_expired_url_is_distinct_from_not_found(self, registry, recorder):
        await add(registry, "old", expires_at=NOW - timedelta(seconds=1))
        service = RedirectService(registry, recorder, clock=lambda: NOW)

        with pytest.raises(ExpiredError):
            await service.get_redirect_url("old", CONTEXT)

    async def test_expiry_instant_itself_is_expired(self, registry, recorder):
        await add(registry, "edge", expires_at=NOW)
        service = RedirectService(registry, recorder, clock=lambda: NOW)

        with pytest.raises(ExpiredError):
            await service.resolve("edge")

    async def test_naive_expiry_treated_as_utc(self, registry, recorder):
        await add(registry, "naive", expires_at=(NOW + timedelta(minutes=5)).replace(tzinfo=None))
        service = RedirectService(registry, recorder, clock=lambda: NOW)

        assert (await service.resolve("naive")).short_code == "naive"

    async def test_future_expiry_redirects(self, registry, recorder):
        await add(registry, "fresh", expires_at=NOW + timedelta(days=1))
        service = RedirectService(registry, recorder, clock=lambda: NOW)

        assert await service.get_redirect_url("fresh", CONTEXT) == "https://example.com/fresh"

    async def test_alias_resolves(self, registry, recorder):
        await add(registry, "launch", custom_alias="launch")
        service = RedirectService(registry, recorder)

        assert await service.get_redirect_url("launch", CONTEXT) == "https://example.com/launch"


class TestClickRecording:

    async def test_click_recorded_per_redirect(self, registry):
        sink = RecordingSink()
        recorder = ClickRecorder(sink)
        recorder.start()
        url = await add(registry, "abc123")
        service = RedirectService(registry, recorder)

        for _ in range(3):
            await service.get_redirect_url("abc123", CONTEXT)
        await recorder.stop(drain_timeout=1.0)

        assert len(sink.events) == 3
        assert {e.url_id for e in sink.events} == {url.id}
        assert sink.events[0].ip_address == "198.51.100.7"

    async def test_slow_sink_does_not_delay_redirect(self, registry):
        sink = RecordingSink(delay=0.5)
        recorder = ClickRecorder(sink)
        recorder.start()
        await add(registry, "quick1")
        service = RedirectService(registry, recorder)

        started = time.perf_counter()
        for _ in range(5):
            await service.get_redirect_url("quick1", CONTEXT)
        elapsed = time.perf_counter() - started

        assert elapsed < 0.25
        assert not sink.events
        await recorder.stop(drain_timeout=0.01)
