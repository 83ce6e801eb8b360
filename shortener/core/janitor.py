"""
Periodic Janitor

A cancellable background task that calls a sweep function on a fixed period.
Used by the in-memory stores (rate-limit windows, sessions) to evict stale
entries. The task belongs to the component that created it and is stopped
explicitly through an asyncio.Event, never left to run until process exit.
"""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicJanitor:
    """
    Runs ``sweep`` every ``interval`` seconds until stopped.

    The sweep is synchronous and expected to be fast relative to the
    interval; it runs on the event loop thread.
    """

    def __init__(self, name: str, interval: float, sweep: Callable[[], int]):
        self.name = name
        self.interval = interval
        self._sweep = sweep
        self._stop_event: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the sweep loop on the running event loop. No-op if already running."""
        if self.running:
            logger.warning(f"Janitor '{self.name}' already running")
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run(), name=f"janitor:{self.name}")
        logger.info(f"Janitor '{self.name}' started (interval={self.interval}s)")

    async def stop(self) -> None:
        """Signal the loop to exit and wait for it. Safe to call repeatedly."""
        if self._task is None:
            return
        self._stop_event.set()
        await self._task
        self._task = None
        logger.info(f"Janitor '{self.name}' stopped")

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                self.run_once()

    def run_once(self) -> int:
        """Run a single sweep, logging instead of raising on failure."""
        try:
            removed = self._sweep()
        except Exception as e:
            logger.error(f"Janitor '{self.name}' sweep failed: {e}", exc_info=True)
            return 0
        if removed:
            logger.info(f"Janitor '{self.name}': removed {removed} stale entries")
        return removed
