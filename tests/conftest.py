import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")

import random
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from discquiz.core.metrics import metrics_registry
from discquiz.data.content import ContentTables, get_content
from discquiz.engine.state_machine import ViewStateMachine
from discquiz.engine.types import AppState
from discquiz.main import app
from discquiz.services.runtime import get_machine
from discquiz.services.session_store import SessionStore, get_session_store
from discquiz.services.visitor_counter import reset_last_known

from tests.factories import DEFAULT_RESULT_KEYS, question_row, result_row


class FakeClock:
    """Monotonic clock stand-in advanced by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _reset_metrics():
    metrics_registry.reset()
    yield
    metrics_registry.reset()


@pytest.fixture()
def fake_clock():
    return FakeClock()


@pytest.fixture()
def small_content():
    """Six male/other items across ages plus six female items, and a full result bank."""
    questions = [
        question_row(1, 10, 19),
        question_row(2, 15, 25),
        question_row(3, 20, 29),
        question_row(4, 25, 45),
        question_row(5, 40, 59),
        question_row(6, 60, 99),
        question_row(866, 10, 19),
        question_row(867, 20, 29),
        question_row(868, 20, 29),
        question_row(869, 28, 35),
        question_row(870, 50, 99),
        question_row(871, 60, 99),
    ]
    return ContentTables.from_raw(questions, [result_row(key) for key in DEFAULT_RESULT_KEYS])


@pytest.fixture()
def make_machine(small_content, fake_clock):
    def _factory(content=None, **overrides):
        params = {
            "content": content or small_content,
            "stages": list(AppState),
            "analyzing_delay_ms": 2200,
            "submit_guard_ms": 200,
            "rng": random.Random(7),
            "clock": fake_clock,
        }
        params.update(overrides)
        return ViewStateMachine(**params)

    return _factory


@pytest.fixture()
def api(fake_clock):
    """TestClient bound to the bundled content, a fresh session store and a fake clock."""
    machine = ViewStateMachine(
        content=get_content(),
        stages=list(AppState),
        rng=random.Random(11),
        clock=fake_clock,
    )
    store = SessionStore(max_entries=100)
    app.dependency_overrides[get_machine] = lambda: machine
    app.dependency_overrides[get_session_store] = lambda: store
    reset_last_known()
    with TestClient(app) as client:
        yield SimpleNamespace(client=client, machine=machine, store=store, clock=fake_clock)
    app.dependency_overrides.clear()
