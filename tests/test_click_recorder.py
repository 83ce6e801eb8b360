"""
Tests for User-Agent classification and the fire-and-forget click recorder.
"""

import asyncio
import logging

import pytest

from shortener.services.click_recorder import (
    ClickRecorder,
    RequestContext,
    build_click_event,
)
from shortener.services.user_agent import parse_user_agent

CHROME_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
EDGE_WINDOWS = CHROME_WINDOWS + " Edg/120.0.2210.91"
SAFARI_IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_1 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.1 Mobile/15E148 Safari/604.1"
)
SAFARI_IPAD = (
    "Mozilla/5.0 (iPad; CPU OS 17_1 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.1 Mobile/15E148 Safari/604.1"
)
CHROME_ANDROID = (
    "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36"
)
FIREFOX_LINUX = "Mozilla/5.0 (X11; Ubuntu; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0"
SAFARI_MAC = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_1) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.1 Safari/605.1.15"
)
OPERA_WINDOWS = CHROME_WINDOWS + " OPR/105.0.0.0"


class TestParseUserAgent:

    @pytest.mark.parametrize("ua, expected", [
        (CHROME_WINDOWS, ("desktop", "Windows", "Chrome")),
        (EDGE_WINDOWS, ("desktop", "Windows", "Edge")),
        (OPERA_WINDOWS, ("desktop", "Windows", "Opera")),
        (SAFARI_IPHONE, ("mobile", "iOS", "Safari")),
        (SAFARI_IPAD, ("tablet", "iOS", "Safari")),
        (CHROME_ANDROID, ("mobile", "Android", "Chrome")),
        (FIREFOX_LINUX, ("desktop", "Linux", "Firefox")),
        (SAFARI_MAC, ("desktop", "macOS", "Safari")),
    ])
    def test_known_agents(self, ua, expected):
        assert parse_user_agent(ua) == expected

    @pytest.mark.parametrize("ua", [None, "", "curl/8.4.0"])
    def test_defaults(self, ua):
        assert parse_user_agent(ua) == ("desktop", "Unknown", "Unknown")


class TestBuildClickEvent:

    def test_event_carries_context_and_classification(self):
        event = build_click_event(5, RequestContext("203.0.113.9", SAFARI_IPHONE, "https://ref.example/"))

        assert event.url_id == 5
        assert event.ip_address == "203.0.113.9"
        assert event.referrer == "https://ref.example/"
        assert (event.device, event.os, event.browser) == ("mobile", "iOS", "Safari")
        assert event.clicked_at.tzinfo is not None

    def test_long_headers_are_clipped(self):
        event = build_click_event(1, RequestContext("1.1.1.1", "x" * 2000, "y" * 2000))
        assert len(event.user_agent) == 500
        assert len(event.referrer) == 500

    def test_long_forwarded_address_is_clipped(self):
        event = build_click_event(1, RequestContext("10.0.0." + "1" * 100))
        assert len(event.ip_address) == 45


class TestClickRecorder:

    async def test_events_reach_sink(self):
        received = []

        async def sink(event):
            received.append(event)

        recorder = ClickRecorder(sink)
        recorder.start()
        for url_id in (1, 2, 3):
            assert recorder.record_click(url_id, RequestContext("10.0.0.1"))
        await recorder.join()
        await recorder.stop()

        assert [e.url_id for e in received] == [1, 2, 3]
        assert recorder.recorded == 3

    async def test_sink_failure_is_logged_not_raised(self, caplog):
        async def failing_sink(event):
            raise RuntimeError("database is down")

        recorder = ClickRecorder(failing_sink)
        recorder.start()
        with caplog.at_level(logging.ERROR, logger="shortener.services.click_recorder"):
            assert recorder.record_click(9, RequestContext("10.0.0.1"))
            await recorder.join()
        await recorder.stop()

        assert recorder.failed == 1
        assert recorder.recorded == 0
        assert "Failed to record click for URL 9" in caplog.text

    async def test_worker_survives_a_failure(self):
        received = []

        async def flaky_sink(event):
            if event.url_id == 1:
                raise RuntimeError("boom")
            received.append(event.url_id)

        recorder = ClickRecorder(flaky_sink)
        recorder.start()
        recorder.record_click(1, RequestContext("10.0.0.1"))
        recorder.record_click(2, RequestContext("10.0.0.1"))
        await recorder.join()
        await recorder.stop()

        assert received == [2]

    async def test_full_queue_drops_newest(self, caplog):
        async def sink(event):
            pass

        recorder = ClickRecorder(sink, max_queue_size=2)  # not started, so nothing drains
        with caplog.at_level(logging.WARNING, logger="shortener.services.click_recorder"):
            results = [recorder.record_click(i, RequestContext("10.0.0.1")) for i in range(4)]

        assert results == [True, True, False, False]
        assert recorder.dropped == 2
        assert recorder.pending == 2
        assert "Click queue full" in caplog.text

    async def test_stop_drains_pending_clicks(self):
        received = []

        async def slow_sink(event):
            await asyncio.sleep(0.01)
            received.append(event.url_id)

        recorder = ClickRecorder(slow_sink)
        recorder.start()
        for url_id in range(5):
            recorder.record_click(url_id, RequestContext("10.0.0.1"))
        await recorder.stop(drain_timeout=2.0)

        assert received == [0, 1, 2, 3, 4]

    async def test_stop_gives_up_after_drain_timeout(self):
        async def stuck_sink(event):
            await asyncio.sleep(10)

        recorder = ClickRecorder(stuck_sink)
        recorder.start()
        recorder.record_click(1, RequestContext("10.0.0.1"))
        recorder.record_click(2, RequestContext("10.0.0.1"))

        await asyncio.wait_for(recorder.stop(drain_timeout=0.05), timeout=2.0)

        assert recorder.recorded == 0
