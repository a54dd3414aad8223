from fastapi import APIRouter

from discquiz.core.metrics import inc_counter
from discquiz.schemas.telemetry import VisitCount
from discquiz.services.visitor_counter import increment_visits, read_visits

router = APIRouter(prefix="/telemetry", tags=["telemetry"])


@router.post("/visits", response_model=VisitCount)
def record_visit():
    inc_counter("telemetry.visits.recorded")
    return {"count": increment_visits()}


@router.get("/visits", response_model=VisitCount)
def visit_count():
    return {"count": read_visits()}
