from __future__ import annotations

import threading
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from discquiz.core.config import settings
from discquiz.core.logging import get_logger
from discquiz.core.metrics import inc_counter
from discquiz.db.database import database_gateway, transactional_session
from discquiz.models.visitor_counter import VISITOR_COUNTER_ROW_ID, VisitorCounter

logger = get_logger("discquiz.services.visitor_counter", component="counter")

_lock = threading.Lock()
_last_known: Optional[int] = None


def _remember(value: int) -> int:
    global _last_known
    with _lock:
        _last_known = value
    return value


def last_known_visits() -> int:
    with _lock:
        return _last_known if _last_known is not None else settings.visitor_counter_default


def read_visits() -> int:
    """Current count without incrementing; failures fall back to the last known value."""
    try:
        with database_gateway.session() as db:
            row = db.get(VisitorCounter, VISITOR_COUNTER_ROW_ID)
            if row is None:
                return last_known_visits()
            return _remember(int(row.count))
    except SQLAlchemyError as exc:
        inc_counter("visitor_counter.failures")
        logger.warning("visitor_counter_read_failed", extra={"structured_data": {"error": str(exc)}})
        return last_known_visits()


def increment_visits() -> int:
    """Increment and return the visit count.

    The counter is auxiliary: when the increment fails a plain read is tried,
    then the last known (or configured default) value is returned.
    """
    try:
        with transactional_session() as db:
            row = db.execute(
                select(VisitorCounter).where(VisitorCounter.id == VISITOR_COUNTER_ROW_ID)
            ).scalar_one_or_none()
            if row is None:
                row = VisitorCounter(id=VISITOR_COUNTER_ROW_ID, count=settings.visitor_counter_default)
                db.add(row)
            row.count = int(row.count) + 1
            value = int(row.count)
        return _remember(value)
    except SQLAlchemyError as exc:
        inc_counter("visitor_counter.failures")
        logger.warning("visitor_counter_increment_failed", extra={"structured_data": {"error": str(exc)}})
        return read_visits()


def reset_last_known() -> None:
    global _last_known
    with _lock:
        _last_known = None


__all__ = ["increment_visits", "read_visits", "last_known_visits", "reset_last_known"]
