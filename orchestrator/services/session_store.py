"""
In-memory conversation session store.

Keyed by session id, shared by all request workers. The map itself is
guarded by one lock; `turn(session_id)` additionally serializes turns of
the same conversation. A turn lock lives as long as some request holds or
waits on it, independent of the session record, so removing or evicting a
session never lets two turns of the same id run at once.

For multi-instance deployments, move this to Redis or similar; sessions
do not survive a restart.
"""
import logging
import threading
import time
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional

from orchestrator.models.conversation_session import ConversationSession

logger = logging.getLogger(__name__)


class SessionStore:
    """Concurrency-safe create-if-absent store with idle eviction."""

    def __init__(self, idle_ttl_seconds: int = 1800, clock: Callable[[], float] = time.time):
        """
        Args:
            idle_ttl_seconds: Sessions untouched for longer are evicted (0 disables)
            clock: Time source, injectable for tests
        """
        self.idle_ttl_seconds = idle_ttl_seconds
        self._clock = clock
        self._sessions: Dict[str, ConversationSession] = {}
        # session_id -> [lock, number of requests holding or waiting on it]
        self._turn_locks: Dict[str, List] = {}
        self._lock = threading.Lock()

    def get_or_create(self, session_id: str) -> ConversationSession:
        """Return the live session, creating it in START if absent."""
        self.evict_idle()
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                session = ConversationSession(session_id=session_id, last_updated=self._clock())
                self._sessions[session_id] = session
                logger.info(f"[SessionStore] Created session {session_id}")
            return session

    def get(self, session_id: str) -> Optional[ConversationSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def update(self, session: ConversationSession) -> None:
        session.last_updated = self._clock()
        with self._lock:
            self._sessions[session.session_id] = session

    def remove(self, session_id: str) -> None:
        with self._lock:
            removed = self._sessions.pop(session_id, None)
        if removed is not None:
            logger.info(f"[SessionStore] Removed session {session_id} (state={removed.state.value})")

    @contextmanager
    def turn(self, session_id: str) -> Iterator[None]:
        """Hold the per-session turn lock for the duration of one turn."""
        with self._lock:
            entry = self._turn_locks.get(session_id)
            if entry is None:
                entry = [threading.Lock(), 0]
                self._turn_locks[session_id] = entry
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._lock:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._turn_locks[session_id]

    def evict_idle(self, now: Optional[float] = None) -> int:
        """Drop sessions idle for longer than the TTL. Returns how many were removed."""
        if not self.idle_ttl_seconds or self.idle_ttl_seconds <= 0:
            return 0
        now = self._clock() if now is None else now
        cutoff = now - self.idle_ttl_seconds
        with self._lock:
            expired = [sid for sid, s in self._sessions.items() if s.last_updated < cutoff]
            for sid in expired:
                del self._sessions[sid]
        if expired:
            logger.info(f"[SessionStore] Evicted {len(expired)} idle sessions")
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions
