"""
Click Recorder

Fire-and-forget analytics for the redirect path.

The redirect handler hands a ClickEvent to the recorder and returns the 302
immediately. Events go through a bounded in-memory queue to a single worker
task that writes them with the configured sink. A failing write is logged
and dropped: it is never retried and never reaches the visitor.

Design Decisions:
- Explicit queue handoff to one worker; shutdown drains pending events
- When the queue is full the newest click is dropped (logged) and the
  redirect still succeeds
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from shortener.services.user_agent import parse_user_agent

logger = logging.getLogger(__name__)

MAX_HEADER_LENGTH = 500  # width of the user_agent and referrer columns
MAX_IP_LENGTH = 45  # width of the ip_address column


@dataclass(frozen=True)
class RequestContext:
    """Visitor details captured from the redirect request."""
    ip_address: str
    user_agent: Optional[str] = None
    referrer: Optional[str] = None


@dataclass(frozen=True)
class ClickEvent:
    """One visit to a short URL. Append-only; duplicates are distinct events."""
    url_id: int
    ip_address: str
    user_agent: Optional[str]
    referrer: Optional[str]
    device: str
    os: str
    browser: str
    clicked_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


ClickSink = Callable[[ClickEvent], Awaitable[None]]


def _clip(value: Optional[str], limit: int = MAX_HEADER_LENGTH) -> Optional[str]:
    return value[:limit] if value else value


def build_click_event(url_id: int, context: RequestContext) -> ClickEvent:
    device, os_name, browser = parse_user_agent(context.user_agent)
    return ClickEvent(
        url_id=url_id,
        ip_address=_clip(context.ip_address, MAX_IP_LENGTH),
        user_agent=_clip(context.user_agent),
        referrer=_clip(context.referrer),
        device=device,
        os=os_name,
        browser=browser,
    )


class ClickRecorder:
    """
    Queue plus worker that persists click events off the request path.
    """

    def __init__(self, sink: ClickSink, max_queue_size: int = 10000):
        """
        Args:
            sink: Async callable that appends one event to storage
            max_queue_size: Pending events kept before new ones are dropped
        """
        self._sink = sink
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_queue_size)
        self._worker: Optional[asyncio.Task] = None
        self.recorded = 0
        self.failed = 0
        self.dropped = 0

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def record_click(self, url_id: int, context: RequestContext) -> bool:
        """Classify the visitor and enqueue the click. Never blocks, never raises."""
        try:
            event = build_click_event(url_id, context)
        except Exception as e:
            logger.error(f"Failed to build click event for URL {url_id}: {e}", exc_info=True)
            return False
        return self.dispatch(event)

    def dispatch(self, event: ClickEvent) -> bool:
        """
        Hand an event to the worker.

        Returns:
            True if queued, False if it was dropped because the queue is full
        """
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning(f"Click queue full, dropping click for URL {event.url_id}")
            return False
        return True

    def start(self) -> None:
        if self._worker is not None and not self._worker.done():
            logger.warning("Click recorder already running")
            return
        self._worker = asyncio.create_task(self._run(), name="click-recorder")
        logger.info("Click recorder started")

    async def join(self) -> None:
        """Wait until every queued click has been handled."""
        await self._queue.join()

    async def stop(self, drain_timeout: float = 5.0) -> None:
        """
        Wait up to ``drain_timeout`` seconds for queued clicks, then stop the
        worker. Clicks still queued after the timeout are discarded.
        """
        if self._worker is None:
            return
        try:
            await asyncio.wait_for(self._queue.join(), timeout=drain_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Click recorder stopped with {self.pending} clicks unrecorded")
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None
        logger.info("Click recorder stopped")

    async def _run(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self._sink(event)
                self.recorded += 1
            except Exception as e:
                self.failed += 1
                logger.error(
                    f"Failed to record click for URL {event.url_id}: {e}",
                    exc_info=True
                )
            finally:
                self._queue.task_done()
