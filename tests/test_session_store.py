import pytest

from discquiz.core.errors import SessionNotFoundError
from discquiz.core.metrics import get_counters
from discquiz.engine.state_machine import SessionState
from discquiz.services.session_store import SessionStore


def test_get_unknown_session_raises():
    with pytest.raises(SessionNotFoundError):
        SessionStore().get("missing")


def test_oldest_untouched_session_is_evicted():
    store = SessionStore(max_entries=2)
    store.add(SessionState(session_id="a"))
    store.add(SessionState(session_id="b"))
    store.get("a")
    store.add(SessionState(session_id="c"))
    assert list(store) == ["a", "c"]
    assert get_counters()["sessions.evicted"] == 1.0


def test_discard_is_idempotent():
    store = SessionStore()
    store.add(SessionState(session_id="a"))
    assert store.discard("a") is True
    assert store.discard("a") is False
    assert "a" not in store
    assert len(store) == 0
