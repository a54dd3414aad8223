from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from discquiz.core.config import settings
from discquiz.core.logging import configure_logging, correlation_context, get_logger
from discquiz.core.metrics import get_counters, get_metrics, inc_counter
from discquiz.data.content import get_content
from discquiz.db.database import Base, engine, get_db
from discquiz.models import VisitorCounter  # noqa: F401 - registers the table on Base.metadata
from discquiz.routers.exceptions import register_exception_handlers
from discquiz.routers.results import router as results_router
from discquiz.routers.sessions import router as sessions_router
from discquiz.routers.telemetry import router as telemetry_router
from discquiz.services.session_store import session_store

configure_logging(environment=settings.environment)
logger = get_logger("discquiz.main", component="app")

_app_start_time = datetime.now(timezone.utc)

CORRELATION_HEADER = "X-Correlation-ID"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the counter table when allowed and load the content tables once.

    A content table that fails to parse aborts startup with ``ConfigurationError``.
    """
    if settings.run_startup_ddl:
        logger.info("startup_execute_ddl", extra={"structured_data": {"run_startup_ddl": True}})
        Base.metadata.create_all(bind=engine)
    content = get_content()
    logger.info(
        "startup_content_ready",
        extra={"structured_data": {"questions": len(content.questions), "results": len(content.results)}},
    )
    yield


app = FastAPI(title=settings.app_name, lifespan=lifespan)
register_exception_handlers(app)


@app.middleware("http")
async def bind_correlation_id(request: Request, call_next):
    with correlation_context(request.headers.get(CORRELATION_HEADER)) as cid:
        inc_counter("http.requests")
        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = cid
        return response


app.include_router(sessions_router)
app.include_router(results_router)
app.include_router(telemetry_router)


@app.get("/health")
def health(db: Session = Depends(get_db)):
    """Uptime, database connectivity and a metrics summary."""
    now = datetime.now(timezone.utc)
    counters = get_counters()
    metrics = get_metrics()
    try:
        db.execute(text("SELECT 1"))
        db_status = "connected"
        overall_status = "healthy"
    except SQLAlchemyError as exc:
        logger.error("health_check_db_failed", extra={"structured_data": {"error": str(exc)}})
        # The counter is auxiliary; the quiz keeps working without the database.
        db_status = "disconnected"
        overall_status = "degraded"
    return {
        "status": overall_status,
        "started_at": _app_start_time.isoformat(),
        "uptime_seconds": round((now - _app_start_time).total_seconds(), 2),
        "environment": settings.environment,
        "active_sessions": len(session_store),
        "database": {"status": db_status},
        "metrics_summary": {
            "tracked_operations": len(metrics),
            "tracked_counters": len(counters),
        },
    }


@app.get("/", include_in_schema=False)
def root():
    """Lightweight index pointing to docs."""
    return {
        "name": settings.app_name,
        "status": "ok",
        "docs": "/docs",
        "health": "/health",
        "sessions": "/sessions",
    }
