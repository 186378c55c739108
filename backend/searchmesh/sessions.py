"""
Conversation sessions keyed by an opaque session id.

The store is injected into the assistant rather than held as module state.
Sessions are created on first use and evicted after `max_age_seconds` of
inactivity; the caller decides when eviction runs.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from searchmesh.answer.llm_utils import SYSTEM_PROMPT


@dataclass
class ChatMessage:
    role: str  # "system" | "user" | "assistant"
    content: str
    timestamp: float


@dataclass
class ChatSession:
    session_id: str
    history: list[ChatMessage] = field(default_factory=list)
    last_active: float = 0.0

    def recent(self, n: int) -> list[ChatMessage]:
        """Last n non-system messages, oldest first."""
        if n <= 0:
            return []
        return [m for m in self.history if m.role != "system"][-n:]


class SessionStore:
    def __init__(self, max_age_seconds: float = 24 * 60 * 60, clock: Callable[[], float] = time.time):
        self.max_age_seconds = max_age_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._sessions: dict[str, ChatSession] = {}

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def get(self, session_id: str) -> Optional[ChatSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def get_or_create(self, session_id: str) -> ChatSession:
        now = self._clock()
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                session = ChatSession(
                    session_id=session_id,
                    history=[ChatMessage("system", SYSTEM_PROMPT, now)],
                    last_active=now,
                )
                self._sessions[session_id] = session
            return session

    def touch(self, session_id: str) -> bool:
        now = self._clock()
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return False
            session.last_active = now
            return True

    def append_exchange(self, session_id: str, user_text: str, assistant_text: str) -> None:
        """Record one completed turn and mark the session active."""
        session = self.get_or_create(session_id)
        now = self._clock()
        with self._lock:
            session.history.append(ChatMessage("user", user_text, now))
            session.history.append(ChatMessage("assistant", assistant_text, now))
        self.touch(session_id)

    def end(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def evict_expired(self) -> int:
        """Drop sessions idle for longer than max_age_seconds. Returns how many were dropped."""
        cutoff = self._clock() - self.max_age_seconds
        with self._lock:
            expired = [sid for sid, s in self._sessions.items() if s.last_active < cutoff]
            for sid in expired:
                del self._sessions[sid]
        return len(expired)
