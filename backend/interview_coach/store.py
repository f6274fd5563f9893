"""In-memory session store with per-session exclusive access."""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

from interview_coach.errors import SessionNotFound
from interview_coach.models import InterviewConfig, Session, SessionStats

LOG = logging.getLogger("interview")


class SessionStore:
    """Sessions keyed by caller-supplied id.

    Callers that read-modify-write a session hold ``lock(session_id)`` across
    the whole sequence, including oracle calls. Different ids never contend.
    """

    def __init__(self, idle_ttl_seconds: float = 0.0) -> None:
        self.idle_ttl_seconds = idle_ttl_seconds
        self._sessions: Dict[str, Session] = {}
        # Only ids with a holder or waiter have an entry here.
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    @asynccontextmanager
    async def lock(self, session_id: str) -> AsyncIterator[None]:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        self._lock_users[session_id] = self._lock_users.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._lock_users[session_id] - 1
            if remaining:
                self._lock_users[session_id] = remaining
            else:
                del self._lock_users[session_id]
                del self._locks[session_id]

    def get(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def create_if_absent(self, session_id: str, config: InterviewConfig) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            session = Session(session_id, config)
            self._sessions[session_id] = session
            LOG.info("Created session %s (persona=%s)", session_id, config.persona.value)
        return session

    def delete(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is not None:
            LOG.info("Deleted session %s", session_id)

    def stats(self, session_id: str) -> SessionStats:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return SessionStats(
            message_count=len(session.transcript),
            off_topic_warnings=session.off_topic_warnings,
            config=session.config.as_dict(),
            topics_covered=session.asked_topics,
        )

    def evict_idle(self, now: Optional[float] = None) -> int:
        """Drop sessions idle for longer than the TTL. A TTL of 0 keeps everything."""
        if self.idle_ttl_seconds <= 0:
            return 0
        now = time.monotonic() if now is None else now
        expired = [
            sid
            for sid, session in self._sessions.items()
            if now - session.last_active > self.idle_ttl_seconds
            and sid not in self._lock_users
        ]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            LOG.info("Evicted %s idle session(s)", len(expired))
        return len(expired)
