"""Session storage for the chat engine.

Sessions expire after a period of inactivity. Expiry is lazy: stale entries are
dropped whenever the store is read or a health check calls purge_expired(),
there is no background sweep.
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from app.logging_config import get_logger
from app.models.session import Session

logger = get_logger("session_store")

DEFAULT_SESSION_TIMEOUT = timedelta(minutes=30)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionStore(ABC):
    """Keyed storage of one Session per sender id."""

    def __init__(self, timeout: timedelta = DEFAULT_SESSION_TIMEOUT, clock: Clock = utc_now):
        self.timeout = timeout
        self.clock = clock

    def is_expired(self, session: Session, now: Optional[datetime] = None) -> bool:
        now = now or self.clock()
        return now - session.last_active_at > self.timeout

    @abstractmethod
    def get(self, sender_id: str) -> Optional[Session]:
        """Return the live session for sender_id, or None if missing or expired."""

    @abstractmethod
    def put(self, session: Session) -> None:
        """Save the session under its sender id."""

    @abstractmethod
    def expire(self, sender_id: str) -> None:
        """Drop the session for sender_id if present."""

    @abstractmethod
    def purge_expired(self) -> int:
        """Drop every expired session. Returns how many were removed."""

    @abstractmethod
    def count(self) -> int:
        """Number of sessions currently held."""


class InMemorySessionStore(SessionStore):
    """Process-local store. Sessions are not shared between workers or instances."""

    def __init__(self, timeout: timedelta = DEFAULT_SESSION_TIMEOUT, clock: Clock = utc_now):
        super().__init__(timeout=timeout, clock=clock)
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def get(self, sender_id: str) -> Optional[Session]:
        self.purge_expired()
        with self._lock:
            return self._sessions.get(sender_id)

    def put(self, session: Session) -> None:
        with self._lock:
            self._sessions[session.sender_id] = session

    def expire(self, sender_id: str) -> None:
        with self._lock:
            self._sessions.pop(sender_id, None)

    def purge_expired(self) -> int:
        now = self.clock()
        with self._lock:
            stale = [key for key, session in self._sessions.items() if self.is_expired(session, now)]
            for key in stale:
                del self._sessions[key]
        if stale:
            logger.info(
                "Purged expired sessions",
                extra={"context": {"purged": len(stale), "remaining": len(self._sessions)}},
            )
        return len(stale)

    def count(self) -> int:
        with self._lock:
            return len(self._sessions)
