from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from time import perf_counter
from typing import Iterator

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url, URL
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from discquiz.core.config import settings
from discquiz.core.logging import get_logger
from discquiz.core.metrics import inc_counter, metrics_registry

logger = get_logger("discquiz.db.database", component="db")


class Base(DeclarativeBase):
    pass


@dataclass(frozen=True, slots=True)
class DatabaseGateway:
    """Encapsulates engine and session factory lifecycle."""

    engine: Engine
    session_factory: sessionmaker[Session]

    @contextmanager
    def session(self) -> Iterator[Session]:
        session: Session = self.session_factory()
        try:
            yield session
        finally:
            session.close()

    @contextmanager
    def transactional(self) -> Iterator[Session]:
        session: Session = self.session_factory()
        started = perf_counter()
        inc_counter("db.transaction.opens")
        try:
            yield session
            session.commit()
            inc_counter("db.transaction.commits")
        except SQLAlchemyError as e:
            session.rollback()
            inc_counter("db.transaction.rollbacks")
            logger.error("transaction_rollback", extra={"structured_data": {"error": str(e)}})
            raise
        finally:
            metrics_registry.record("db.transaction.duration", (perf_counter() - started) * 1000.0)
            session.close()


def _build_engine(database_url: str) -> Engine:
    url: URL = make_url(database_url)
    kwargs: dict[str, object] = {"echo": False, "future": True}
    if url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
    return create_engine(database_url, **kwargs)


engine: Engine = _build_engine(settings.database_url)
SessionLocal: sessionmaker[Session] = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
database_gateway = DatabaseGateway(engine=engine, session_factory=SessionLocal)


def get_db():
    with database_gateway.session() as session:
        yield session


@contextmanager
def transactional_session() -> Iterator[Session]:
    """Context manager that manages commit/rollback for explicit transactions."""

    with database_gateway.transactional() as session:
        yield session


__all__ = [
    "Base",
    "database_gateway",
    "engine",
    "SessionLocal",
    "get_db",
    "transactional_session",
]
