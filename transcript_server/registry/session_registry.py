"""Sessions of the JSON-RPC transport, keyed by the Mcp-Session-Id header."""

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from threading import Lock
from uuid import uuid4

from transcript_server.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class Session:
    session_id: str
    created_at: float
    last_seen: float
    client_info: dict = field(default_factory=dict)
    protocol_version: str | None = None


class SessionRegistry:
    """
    Explicitly created sessions that expire after a period of inactivity.

    Owned by the transport; the transcript tools never see it.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._lock = Lock()

    def create(self, client_info: dict | None = None, protocol_version: str | None = None) -> Session:
        now = self._clock()
        session = Session(
            session_id=uuid4().hex,
            created_at=now,
            last_seen=now,
            client_info=client_info or {},
            protocol_version=protocol_version,
        )
        with self._lock:
            self._purge_expired(now)
            self._sessions[session.session_id] = session
        logger.info("session.created", session_id=session.session_id, client=session.client_info.get("name"))
        return session

    def get(self, session_id: str) -> Session | None:
        """Return a live session and refresh its idle timer, or None if unknown or expired."""
        now = self._clock()
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            if now - session.last_seen > self.ttl_seconds:
                del self._sessions[session_id]
                logger.info("session.expired", session_id=session_id)
                return None
            session.last_seen = now
            return session

    def close(self, session_id: str) -> bool:
        with self._lock:
            removed = self._sessions.pop(session_id, None) is not None
        if removed:
            logger.info("session.closed", session_id=session_id)
        return removed

    def purge_expired(self) -> int:
        with self._lock:
            return self._purge_expired(self._clock())

    def _purge_expired(self, now: float) -> int:
        expired = [sid for sid, s in self._sessions.items() if now - s.last_seen > self.ttl_seconds]
        for session_id in expired:
            del self._sessions[session_id]
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)
