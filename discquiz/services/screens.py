"""Per-screen view payloads.

Each builder returns exactly what the matching screen renders. Option DISC
types are never exposed on the quiz screen; answers are submitted by index.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List

from discquiz.core.errors import InvalidTransitionError
from discquiz.engine.classifier import Classification
from discquiz.engine.constants import ADVICE_DISPLAY_LIMIT, FAMOUS_PEOPLE_DISPLAY_LIMIT, TEST_MODES
from discquiz.engine.state_machine import SessionState, ViewStateMachine
from discquiz.engine.types import CANONICAL_ORDER, AgeGroup, AppState, Gender, ScoreTally
from discquiz.i18n.ko_messages import AGE_GROUP_LABELS, DISC_AXIS_LABELS, GENDER_LABELS, ShareMessages

ScreenBuilder = Callable[[ViewStateMachine, SessionState, str], Dict[str, Any]]


def _choices(values, labels: Dict[str, str]) -> List[Dict[str, str]]:
    return [{"value": value.value, "label": labels[value.value]} for value in values]


def _home(machine: ViewStateMachine, state: SessionState, share_base_url: str) -> Dict[str, Any]:
    return {"next": machine.graph.next_after(AppState.HOME).value}


def _gender(machine: ViewStateMachine, state: SessionState, share_base_url: str) -> Dict[str, Any]:
    return {
        "options": _choices(Gender, GENDER_LABELS),
        "selected": state.gender.value if state.gender else None,
        "can_go_back": machine.graph.back_target(AppState.GENDER_SELECT) is not None,
    }


def _age(machine: ViewStateMachine, state: SessionState, share_base_url: str) -> Dict[str, Any]:
    return {
        "options": _choices(AgeGroup, AGE_GROUP_LABELS),
        "selected": state.age_group.value if state.age_group else None,
        "can_go_back": machine.graph.back_target(AppState.AGE_SELECT) is not None,
    }


def _mode(machine: ViewStateMachine, state: SessionState, share_base_url: str) -> Dict[str, Any]:
    return {
        "options": [
            {
                "id": mode.id.value,
                "label": mode.label,
                "brand_name": mode.brand_name,
                "estimated_time": mode.estimated_time,
                "question_count": mode.requested_count,
                "recommended": mode.recommended,
            }
            for mode in TEST_MODES
        ],
        "can_go_back": machine.graph.back_target(AppState.MODE_SELECT) is not None,
    }


def _quiz(machine: ViewStateMachine, state: SessionState, share_base_url: str) -> Dict[str, Any]:
    ledger = state.ledger
    question = state.current_question()
    if ledger is None or question is None:
        raise InvalidTransitionError(detail={"view": state.view.value, "event": "render"})
    selected_index = None
    answered = ledger.answer_at(ledger.position)
    if answered is not None:
        # Index of the first option carrying the recorded type.
        for index, option in enumerate(question.options):
            if option.type is answered:
                selected_index = index
                break
    return {
        "question": {
            "id": question.id,
            "text": question.text,
            "category": question.category,
            "options": [{"index": index, "text": option.text} for index, option in enumerate(question.options)],
        },
        "mode": state.mode.id.value if state.mode else None,
        "position": ledger.position,
        "total": ledger.total,
        "max_position": ledger.max_position,
        "selected_option": selected_index,
        "can_go_previous": ledger.can_go_previous(),
        "can_go_next": ledger.can_go_next(),
        "can_jump_to_frontier": ledger.can_jump_to_frontier(),
        "can_back_to_mode": ledger.position == 0,
        "progress_percent": round(ledger.progress_percent(), 2),
    }


def _analyzing(machine: ViewStateMachine, state: SessionState, share_base_url: str) -> Dict[str, Any]:
    return {"remaining_ms": machine.analyzing_remaining_ms(state)}


def result_payload(
    classification: Classification,
    tally: ScoreTally,
    age_group: AgeGroup,
    gender: Gender,
    share_url: str | None,
) -> Dict[str, Any]:
    """Result screen body; shared with the stateless ``/results`` endpoint."""
    content = classification.content
    title = content.titles[0]
    return {
        "scores": [
            {"type": disc_type.value, "label": DISC_AXIS_LABELS[disc_type.value], "count": tally.count(disc_type)}
            for disc_type in CANONICAL_ORDER
        ],
        "total": tally.total,
        "key": classification.tag,
        "resolved_by": classification.resolved_by,
        "title": title,
        "summary": content.summaries[0],
        "base_name": content.base_name,
        "color": content.color,
        "advice": list(content.advice_list[:ADVICE_DISPLAY_LIMIT]),
        "lucky_items": list(content.lucky_items),
        "famous_people": list(content.famous_people_pool[:FAMOUS_PEOPLE_DISPLAY_LIMIT]),
        "age_group": {"value": age_group.value, "label": AGE_GROUP_LABELS[age_group.value]},
        "gender": {"value": gender.value, "label": GENDER_LABELS[gender.value]},
        "share_url": share_url,
        "share_text": ShareMessages.SHARE_TEXT.format(title=title),
    }


def _result(machine: ViewStateMachine, state: SessionState, share_base_url: str) -> Dict[str, Any]:
    classification = machine.classification(state)
    return result_payload(
        classification,
        state.tally or ScoreTally(),
        state.display_age_group,
        state.display_gender,
        machine.share_url(state, share_base_url),
    )


_BUILDERS: Dict[AppState, ScreenBuilder] = {
    AppState.HOME: _home,
    AppState.GENDER_SELECT: _gender,
    AppState.AGE_SELECT: _age,
    AppState.MODE_SELECT: _mode,
    AppState.QUIZ: _quiz,
    AppState.ANALYZING: _analyzing,
    AppState.RESULT: _result,
}


def build_session_view(machine: ViewStateMachine, state: SessionState, share_base_url: str) -> Dict[str, Any]:
    return {
        "session_id": state.session_id,
        "view": state.view.value,
        "gender_enabled": machine.gender_enabled,
        "from_shared_link": state.from_shared_link,
        "selections": {
            "gender": state.gender.value if state.gender else None,
            "age_group": state.age_group.value if state.age_group else None,
            "mode": state.mode.id.value if state.mode else None,
            "question_count": state.mode.question_count if state.mode else None,
        },
        "screen": _BUILDERS[state.view](machine, state, share_base_url),
    }


__all__ = ["build_session_view", "result_payload"]
