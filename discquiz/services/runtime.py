from __future__ import annotations

from functools import lru_cache

from discquiz.core.config import settings
from discquiz.data.content import get_content
from discquiz.engine.state_machine import ViewStateMachine


@lru_cache(maxsize=1)
def get_machine() -> ViewStateMachine:
    """Shared state machine bound to the loaded content tables and settings."""
    return ViewStateMachine.from_settings(get_content(), settings)


__all__ = ["get_machine"]
