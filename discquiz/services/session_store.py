from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Iterator

from discquiz.core.config import settings
from discquiz.core.errors import SessionNotFoundError
from discquiz.core.logging import get_logger
from discquiz.core.metrics import inc_counter
from discquiz.engine.state_machine import SessionState
from discquiz.i18n.ko_messages import SessionErrorMessages

logger = get_logger("discquiz.services.session_store", component="sessions")


class SessionStore:
    """Process-local registry of live sessions.

    Nothing survives a restart. When ``max_entries`` is exceeded the least
    recently touched session is dropped.
    """

    def __init__(self, max_entries: int = 10_000) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries
        self._sessions: "OrderedDict[str, SessionState]" = OrderedDict()
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return iter(list(self._sessions))

    def add(self, state: SessionState) -> SessionState:
        with self._lock:
            self._sessions[state.session_id] = state
            self._sessions.move_to_end(state.session_id)
            while len(self._sessions) > self.max_entries:
                evicted, _ = self._sessions.popitem(last=False)
                inc_counter("sessions.evicted")
                logger.info("session_evicted", extra={"structured_data": {"session_id": evicted}})
        inc_counter("sessions.created")
        return state

    def get(self, session_id: str) -> SessionState:
        with self._lock:
            state = self._sessions.get(session_id)
            if state is None:
                raise SessionNotFoundError(
                    SessionErrorMessages.NOT_FOUND_WITH_ID.format(session_id=session_id),
                    detail={"session_id": session_id},
                )
            self._sessions.move_to_end(session_id)
            return state

    def discard(self, session_id: str) -> bool:
        with self._lock:
            removed = self._sessions.pop(session_id, None) is not None
        if removed:
            inc_counter("sessions.discarded")
        return removed

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

    def lock(self) -> threading.RLock:
        """Lock serializing event application across request threads."""
        return self._lock


session_store = SessionStore(max_entries=settings.session_store_max_entries)


def get_session_store() -> SessionStore:
    return session_store


__all__ = ["SessionStore", "session_store", "get_session_store"]
