"""
Rate Limiting

This module provides an in-process sliding window rate limiter.
Rate limiting prevents abuse and ensures fair usage.

Design Decisions:
- Sliding window: each key keeps the timestamps of its accepted requests
  inside the trailing window, so there is no burst at window boundaries
- IP-based limiting by default (the key is opaque to the limiter)
- One lock per limiter: allow() and the janitor never interleave, so a
  concurrent prune can never make a window look emptier than it is
- Stale timestamps are pruned on every allow() call; the janitor only
  bounds memory by dropping keys that have gone quiet

Future Enhancement:
- Move to Redis-based rate limiting for distributed systems
- Add rate limit headers to responses
"""

import threading
import time
from collections import deque
from typing import Callable, Deque, Dict

from shortener.core.janitor import PeriodicJanitor
from shortener.core.setting import RATE_LIMIT_CLEANUP_INTERVAL


class SlidingWindowRateLimiter:
    """
    Per-key sliding window counter.

    A request at instant ``now`` is accepted iff fewer than ``limit``
    accepted requests for the same key happened in ``(now - window, now]``.
    Rejected requests are not recorded.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        cleanup_interval: float = RATE_LIMIT_CLEANUP_INTERVAL.total_seconds(),
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            limit: Accepted requests per window (<= 0 rejects everything)
            window_seconds: Window length (<= 0 rejects everything)
            cleanup_interval: Janitor period in seconds
            clock: Monotonic time source, injectable for tests
        """
        self.limit = limit
        self.window = window_seconds
        self._clock = clock
        self._windows: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()
        self._janitor = PeriodicJanitor("rate-limiter", cleanup_interval, self.purge_stale)

    def allow(self, key: str) -> bool:
        """Record a request for ``key`` and report whether it is within quota."""
        if self.limit <= 0 or self.window <= 0:
            return False

        with self._lock:
            now = self._clock()
            timestamps = self._windows.get(key)
            if timestamps is None:
                timestamps = deque()
                self._windows[key] = timestamps
            else:
                self._prune(timestamps, now - self.window)

            if len(timestamps) >= self.limit:
                return False

            timestamps.append(now)
            return True

    def purge_stale(self) -> int:
        """
        Prune every window and drop keys with no remaining timestamps.

        Returns:
            Number of keys removed
        """
        with self._lock:
            cutoff = self._clock() - self.window
            empty_keys = []
            for key, timestamps in self._windows.items():
                self._prune(timestamps, cutoff)
                if not timestamps:
                    empty_keys.append(key)
            for key in empty_keys:
                del self._windows[key]
            return len(empty_keys)

    def reset(self, key: str) -> None:
        with self._lock:
            self._windows.pop(key, None)

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._windows)

    def start(self) -> None:
        self._janitor.start()

    async def stop(self) -> None:
        await self._janitor.stop()

    @staticmethod
    def _prune(timestamps: Deque[float], cutoff: float) -> None:
        # timestamps are appended in clock order, so stale ones sit at the left
        while timestamps and timestamps[0] <= cutoff:
            timestamps.popleft()
