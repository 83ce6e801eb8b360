"""
Session Store

In-memory store for browser sessions created by the OAuth login flow.

Design Decisions:
- Sessions live in process memory only: a restart logs everybody out
- One lock guards the id -> session map; expiry check and delete happen in
  the same critical section, so no read ever returns a session past its TTL
- Expired sessions are removed lazily on read and periodically by a janitor;
  deleting an already-deleted id is a no-op for both paths
- The janitor is owned by the store and stopped with the store
"""

import logging
import secrets
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional, Tuple

from shortener.core.exceptions import SessionCreationError
from shortener.core.janitor import PeriodicJanitor
from shortener.core.setting import SESSION_CLEANUP_INTERVAL, SESSION_TTL

logger = logging.getLogger(__name__)

# 32 bytes -> 256 bits of entropy, 43 URL-safe base64 characters
SESSION_TOKEN_BYTES = 32


@dataclass(frozen=True)
class Session:
    """A logged-in user's session. ``created_at`` is a UNIX timestamp."""
    session_id: str
    user_id: int
    user_email: str
    created_at: float
    ttl: float

    @property
    def expires_at(self) -> datetime:
        return datetime.fromtimestamp(self.created_at + self.ttl, tz=timezone.utc)


class SessionStore:
    """
    Thread-safe map of opaque session tokens to sessions with a fixed TTL.
    """

    def __init__(
        self,
        ttl: timedelta = SESSION_TTL,
        cleanup_interval: timedelta = SESSION_CLEANUP_INTERVAL,
        clock: Callable[[], float] = time.time,
        token_factory: Callable[[int], str] = secrets.token_urlsafe,
    ):
        """
        Args:
            ttl: Session lifetime measured from creation
            cleanup_interval: Janitor period
            clock: Wall-clock source returning UNIX seconds, injectable for tests
            token_factory: Produces a URL-safe token from a byte count
        """
        self.ttl = ttl.total_seconds()
        self._clock = clock
        self._token_factory = token_factory
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()
        self._janitor = PeriodicJanitor(
            "session-store",
            cleanup_interval.total_seconds(),
            self.purge_expired,
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def create_session(self, user_id: int, user_email: str) -> Tuple[str, datetime]:
        """
        Mint a new session for a user.

        Returns:
            (session_id, expires_at)

        Raises:
            SessionCreationError: If the system entropy source fails
        """
        try:
            session_id = self._token_factory(SESSION_TOKEN_BYTES)
        except (OSError, NotImplementedError) as e:
            logger.error(f"Failed to generate secure session ID: {e}", exc_info=True)
            raise SessionCreationError("failed to create session") from e

        with self._lock:
            session = Session(
                session_id=session_id,
                user_id=user_id,
                user_email=user_email,
                created_at=self._clock(),
                ttl=self.ttl,
            )
            self._sessions[session_id] = session

        return session_id, session.expires_at

    def get_session(self, session_id: str) -> Optional[Session]:
        """
        Return the session iff it exists and is younger than the TTL.

        An expired session found here is deleted before returning None.
        """
        if not session_id:
            return None

        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            if self._clock() - session.created_at < self.ttl:
                return session
            del self._sessions[session_id]
            return None

    def destroy_session(self, session_id: str) -> None:
        """Remove a session. Unknown or already destroyed ids are ignored."""
        with self._lock:
            self._sessions.pop(session_id, None)

    def purge_expired(self) -> int:
        """Janitor sweep: remove every session at or past its TTL."""
        with self._lock:
            now = self._clock()
            expired = [
                session_id
                for session_id, session in self._sessions.items()
                if now - session.created_at >= self.ttl
            ]
            for session_id in expired:
                del self._sessions[session_id]
            return len(expired)

    def start(self) -> None:
        self._janitor.start()

    async def stop(self) -> None:
        await self._janitor.stop()
