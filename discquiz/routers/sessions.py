from __future__ import annotations

from typing import Callable

from fastapi import APIRouter, Depends, Request

from discquiz.core.config import settings
from discquiz.core.errors import InvalidTransitionError
from discquiz.core.metrics import inc_counter
from discquiz.engine.state_machine import SessionState, ViewStateMachine
from discquiz.engine.types import AppState, ScoreTally
from discquiz.i18n.ko_messages import SessionErrorMessages, ShareMessages
from discquiz.schemas.session import (
    AgeSelect,
    AnswerSubmit,
    GenderSelect,
    ModeSelect,
    NarrativeResponse,
    ResetResponse,
    SessionView,
    ShareLink,
)
from discquiz.services.narrative import NarrativeClient, get_narrative_client
from discquiz.services.runtime import get_machine
from discquiz.services.screens import build_session_view
from discquiz.services.session_store import SessionStore, get_session_store

router = APIRouter(prefix="/sessions", tags=["sessions"])

Event = Callable[[ViewStateMachine, SessionState], object]


def _view(machine: ViewStateMachine, state: SessionState) -> dict:
    return build_session_view(machine, state, settings.share_base_url)


def _apply(store: SessionStore, machine: ViewStateMachine, session_id: str, event: Event) -> dict:
    # Events for one session are applied one at a time; a failed event leaves the state untouched.
    with store.lock():
        state = store.get(session_id)
        machine.tick(state)
        event(machine, state)
        return _view(machine, state)


@router.post("", response_model=SessionView, status_code=201)
def create_session(
    request: Request,
    machine: ViewStateMachine = Depends(get_machine),
    store: SessionStore = Depends(get_session_store),
):
    """Open a session; a complete share link in the query string lands straight on RESULT."""
    state = machine.new_session()
    machine.mount(state, dict(request.query_params))
    with store.lock():
        store.add(state)
        return _view(machine, state)


@router.get("/{session_id}", response_model=SessionView)
def get_session(
    session_id: str,
    machine: ViewStateMachine = Depends(get_machine),
    store: SessionStore = Depends(get_session_store),
):
    return _apply(store, machine, session_id, lambda m, s: None)


@router.post("/{session_id}/start", response_model=SessionView)
def start(session_id: str, machine: ViewStateMachine = Depends(get_machine), store: SessionStore = Depends(get_session_store)):
    return _apply(store, machine, session_id, lambda m, s: m.start(s))


@router.post("/{session_id}/gender", response_model=SessionView)
def select_gender(
    session_id: str,
    payload: GenderSelect,
    machine: ViewStateMachine = Depends(get_machine),
    store: SessionStore = Depends(get_session_store),
):
    return _apply(store, machine, session_id, lambda m, s: m.select_gender(s, payload.gender))


@router.post("/{session_id}/age", response_model=SessionView)
def select_age(
    session_id: str,
    payload: AgeSelect,
    machine: ViewStateMachine = Depends(get_machine),
    store: SessionStore = Depends(get_session_store),
):
    return _apply(store, machine, session_id, lambda m, s: m.select_age(s, payload.age_group))


@router.post("/{session_id}/mode", response_model=SessionView)
def select_mode(
    session_id: str,
    payload: ModeSelect,
    machine: ViewStateMachine = Depends(get_machine),
    store: SessionStore = Depends(get_session_store),
):
    return _apply(store, machine, session_id, lambda m, s: m.select_mode(s, payload.mode))


@router.post("/{session_id}/back", response_model=SessionView)
def back(session_id: str, machine: ViewStateMachine = Depends(get_machine), store: SessionStore = Depends(get_session_store)):
    return _apply(store, machine, session_id, lambda m, s: m.back(s))


@router.post("/{session_id}/answer", response_model=SessionView)
def answer(
    session_id: str,
    payload: AnswerSubmit,
    machine: ViewStateMachine = Depends(get_machine),
    store: SessionStore = Depends(get_session_store),
):
    inc_counter("sessions.answers")
    return _apply(store, machine, session_id, lambda m, s: m.select_option(s, payload.option_index))


@router.post("/{session_id}/previous", response_model=SessionView)
def previous(session_id: str, machine: ViewStateMachine = Depends(get_machine), store: SessionStore = Depends(get_session_store)):
    return _apply(store, machine, session_id, lambda m, s: m.go_to_previous(s))


@router.post("/{session_id}/next", response_model=SessionView)
def next_question(session_id: str, machine: ViewStateMachine = Depends(get_machine), store: SessionStore = Depends(get_session_store)):
    return _apply(store, machine, session_id, lambda m, s: m.go_to_next(s))


@router.post("/{session_id}/frontier", response_model=SessionView)
def frontier(session_id: str, machine: ViewStateMachine = Depends(get_machine), store: SessionStore = Depends(get_session_store)):
    return _apply(store, machine, session_id, lambda m, s: m.jump_to_frontier(s))


@router.post("/{session_id}/reset", response_model=ResetResponse)
def reset(session_id: str, machine: ViewStateMachine = Depends(get_machine), store: SessionStore = Depends(get_session_store)):
    with store.lock():
        state = store.get(session_id)
        outcome = machine.reset(state)
        if outcome.discard_session:
            store.discard(session_id)
            return {"redirect_to": outcome.redirect_to, "session": None}
        return {"redirect_to": None, "session": _view(machine, state)}


@router.get("/{session_id}/share", response_model=ShareLink)
def share(session_id: str, machine: ViewStateMachine = Depends(get_machine), store: SessionStore = Depends(get_session_store)):
    with store.lock():
        state = store.get(session_id)
        machine.tick(state)
        url = machine.share_url(state, settings.share_base_url)
        title = machine.classification(state).content.titles[0]
    inc_counter("sessions.share_links")
    return {"url": url, "text": ShareMessages.SHARE_TEXT.format(title=title)}


@router.get("/{session_id}/narrative", response_model=NarrativeResponse)
def narrative(
    session_id: str,
    machine: ViewStateMachine = Depends(get_machine),
    store: SessionStore = Depends(get_session_store),
    client: NarrativeClient = Depends(get_narrative_client),
):
    with store.lock():
        state = store.get(session_id)
        machine.tick(state)
        if state.view is not AppState.RESULT:
            raise InvalidTransitionError(
                SessionErrorMessages.INVALID_TRANSITION.format(state=state.view.value, event="narrative"),
                detail={"view": state.view.value, "event": "narrative"},
            )
        classification = machine.classification(state)
        tally = state.tally or ScoreTally()
        age_group = state.display_age_group
        gender = state.display_gender
    # The external call runs outside the session lock and never touches the state.
    result = client.insight(tally, age_group, gender, classification.tag)
    return {"text": result.text, "source": result.source, "fallback": result.is_fallback}
