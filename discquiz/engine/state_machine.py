"""Screen state machine for one visitor session.

``SessionState`` is a plain per-session struct; ``ViewStateMachine`` holds only
shared, read-only collaborators (content, configuration, rng, clock) and
applies events to whichever state it is handed. Every event either moves the
state to a defined screen or raises a ``DomainError`` leaving it untouched.
"""

from __future__ import annotations

import random
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple

from discquiz.core.errors import InvalidTransitionError, NoQuestionsAvailableError, ValidationError
from discquiz.core.logging import get_logger
from discquiz.core.metrics import inc_counter
from discquiz.data.content import ContentTables
from discquiz.engine.classifier import Classification, classify
from discquiz.engine.codec import build_share_url, decode_share_params
from discquiz.engine.constants import DEFAULT_AGE_GROUP, DEFAULT_GENDER, TEST_MODES_BY_ID
from discquiz.engine.ledger import AnswerLedger
from discquiz.engine.sampler import AgeOverlapPolicy, Demographic, sample_questions
from discquiz.engine.stages import StageGraph, build_stage_graph
from discquiz.engine.types import (
    AgeGroup,
    AppState,
    DiscType,
    Gender,
    Option,
    Question,
    ScoreTally,
    TestMode,
    TestModeId,
)
from discquiz.i18n.ko_messages import NavigationMessages, SessionErrorMessages

logger = get_logger("discquiz.engine.state_machine", component="engine")

Clock = Callable[[], float]


@dataclass(slots=True)
class SessionState:
    session_id: str
    view: AppState = AppState.HOME
    gender: Optional[Gender] = None
    age_group: Optional[AgeGroup] = None
    mode: Optional[TestMode] = None
    questions: Tuple[Question, ...] = ()
    ledger: Optional[AnswerLedger] = None
    tally: Optional[ScoreTally] = None
    analyzing_until: Optional[float] = None
    from_shared_link: bool = False
    mounted: bool = False

    @property
    def display_age_group(self) -> AgeGroup:
        return self.age_group or DEFAULT_AGE_GROUP

    @property
    def display_gender(self) -> Gender:
        return self.gender or DEFAULT_GENDER

    def current_question(self) -> Optional[Question]:
        if self.ledger is None or not self.questions:
            return None
        return self.questions[self.ledger.position]

    def clear(self) -> None:
        self.view = AppState.HOME
        self.gender = None
        self.age_group = None
        self.mode = None
        self.questions = ()
        self.ledger = None
        self.tally = None
        self.analyzing_until = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "view": self.view.value,
            "gender": self.gender.value if self.gender else None,
            "age_group": self.age_group.value if self.age_group else None,
            "mode": {"id": self.mode.id.value, "actual_count": self.mode.actual_count} if self.mode else None,
            "questions": [
                {"id": q.id, "option_types": [opt.type.value for opt in q.options]} for q in self.questions
            ],
            "ledger": self.ledger.to_dict() if self.ledger else None,
            "tally": self.tally.as_dict() if self.tally else None,
            "analyzing_until": self.analyzing_until,
            "from_shared_link": self.from_shared_link,
            "mounted": self.mounted,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], content: ContentTables) -> "SessionState":
        """Rebuild a state from ``to_dict`` output, restoring option order from the bank."""
        questions = tuple(
            _restore_question(content.question_by_id(int(row["id"])), row.get("option_types", ()))
            for row in data.get("questions", ())
        )
        mode_data = data.get("mode")
        mode = None
        if mode_data:
            mode = TEST_MODES_BY_ID[TestModeId(mode_data["id"])]
            if mode_data.get("actual_count") is not None:
                mode = mode.with_actual_count(int(mode_data["actual_count"]))
        return cls(
            session_id=str(data["session_id"]),
            view=AppState(data.get("view", AppState.HOME.value)),
            gender=Gender(data["gender"]) if data.get("gender") else None,
            age_group=AgeGroup(data["age_group"]) if data.get("age_group") else None,
            mode=mode,
            questions=questions,
            ledger=AnswerLedger.from_dict(data["ledger"]) if data.get("ledger") else None,
            tally=ScoreTally.from_mapping(data["tally"]) if data.get("tally") else None,
            analyzing_until=data.get("analyzing_until"),
            from_shared_link=bool(data.get("from_shared_link", False)),
            mounted=bool(data.get("mounted", False)),
        )


def _restore_question(question: Question, option_types: Iterable[str]) -> Question:
    remaining = list(question.options)
    ordered: list[Option] = []
    for raw in option_types:
        for index, option in enumerate(remaining):
            if option.type.value == raw:
                ordered.append(remaining.pop(index))
                break
    return question.with_options(ordered + remaining)


@dataclass(frozen=True, slots=True)
class ResetOutcome:
    """``redirect_to`` is set when the session must be dropped instead of reused."""

    redirect_to: Optional[str] = None

    @property
    def discard_session(self) -> bool:
        return self.redirect_to is not None


@dataclass(slots=True)
class ViewStateMachine:
    content: ContentTables
    stages: Iterable[AppState]
    age_policy: AgeOverlapPolicy = "range"
    review_buffer: Optional[int] = None
    analyzing_delay_ms: int = 2200
    submit_guard_ms: int = 200
    rng: random.Random = field(default_factory=random.Random)
    clock: Clock = time.monotonic
    graph: StageGraph = field(init=False)

    def __post_init__(self) -> None:
        self.graph = build_stage_graph(self.stages)
        self.stages = self.graph.stages

    @classmethod
    def from_settings(
        cls,
        content: ContentTables,
        settings: Any,
        *,
        rng: Optional[random.Random] = None,
        clock: Optional[Clock] = None,
    ) -> "ViewStateMachine":
        return cls(
            content=content,
            stages=settings.enabled_stages,
            age_policy=settings.age_overlap_policy,
            review_buffer=settings.review_buffer,
            analyzing_delay_ms=settings.analyzing_delay_ms,
            submit_guard_ms=settings.submit_guard_ms,
            rng=rng or random.Random(),
            clock=clock or time.monotonic,
        )

    @property
    def gender_enabled(self) -> bool:
        return self.graph.has(AppState.GENDER_SELECT)

    # --- helpers ---
    def _require(self, state: SessionState, event: str, *views: AppState) -> None:
        if state.view not in views:
            raise InvalidTransitionError(
                SessionErrorMessages.INVALID_TRANSITION.format(state=state.view.value, event=event),
                detail={"view": state.view.value, "event": event},
            )

    def _ledger(self, state: SessionState, event: str) -> AnswerLedger:
        self._require(state, event, AppState.QUIZ)
        if state.ledger is None:  # pragma: no cover - QUIZ always carries a ledger
            raise InvalidTransitionError(detail={"view": state.view.value, "event": event})
        return state.ledger

    # --- lifecycle ---
    def new_session(self, session_id: Optional[str] = None) -> SessionState:
        return SessionState(session_id=session_id or uuid.uuid4().hex)

    def mount(self, state: SessionState, params: Mapping[str, str]) -> bool:
        """Inspect share-link parameters once; jump to RESULT when they are complete."""
        if state.mounted:
            return False
        state.mounted = True
        shared = decode_share_params(params)
        if shared is None:
            return False
        state.tally = shared.tally
        state.age_group = shared.age_group
        state.gender = shared.gender
        state.from_shared_link = True
        state.view = AppState.RESULT
        inc_counter("sessions.shared_link_mounts")
        logger.info(
            "session_mounted_from_share_link",
            extra={"structured_data": {"session_id": state.session_id, "tally": shared.tally.as_dict()}},
        )
        return True

    def tick(self, state: SessionState) -> None:
        """Apply timers that are due: the answer guard and the ANALYZING delay."""
        now = self.clock()
        if state.ledger is not None and state.ledger.busy_until is not None and not state.ledger.is_busy(now):
            state.ledger.release()
        if state.view is AppState.ANALYZING and state.analyzing_until is not None and now >= state.analyzing_until:
            state.analyzing_until = None
            state.view = AppState.RESULT

    def analyzing_remaining_ms(self, state: SessionState) -> int:
        if state.view is not AppState.ANALYZING or state.analyzing_until is None:
            return 0
        return max(round((state.analyzing_until - self.clock()) * 1000), 0)

    def reset(self, state: SessionState) -> ResetOutcome:
        logger.info(
            "session_reset",
            extra={"structured_data": {"session_id": state.session_id, "from_shared_link": state.from_shared_link}},
        )
        if state.from_shared_link:
            return ResetOutcome(redirect_to="/")
        # Clearing analyzing_until cancels a pending ANALYZING -> RESULT move.
        state.clear()
        return ResetOutcome()

    # --- selection screens ---
    def start(self, state: SessionState) -> None:
        self._require(state, "start", AppState.HOME)
        state.view = self.graph.next_after(AppState.HOME)

    def select_gender(self, state: SessionState, gender: Gender) -> None:
        self._require(state, "select_gender", AppState.GENDER_SELECT)
        state.gender = Gender(gender)
        state.view = self.graph.next_after(AppState.GENDER_SELECT)

    def select_age(self, state: SessionState, age_group: AgeGroup) -> None:
        self._require(state, "select_age", AppState.AGE_SELECT)
        state.age_group = AgeGroup(age_group)
        state.view = self.graph.next_after(AppState.AGE_SELECT)

    def select_mode(self, state: SessionState, mode_id: TestModeId) -> None:
        """Sample the quiz for the chosen mode and enter QUIZ.

        On ``NoQuestionsAvailableError`` the state stays on MODE_SELECT.
        """
        self._require(state, "select_mode", AppState.MODE_SELECT)
        if state.age_group is None:
            raise ValidationError(SessionErrorMessages.SELECTION_MISSING.format(field="age_group"))
        if self.gender_enabled and state.gender is None:
            raise ValidationError(SessionErrorMessages.SELECTION_MISSING.format(field="gender"))
        mode = TEST_MODES_BY_ID[TestModeId(mode_id)]
        demographic = Demographic(
            age_group=state.age_group,
            gender=state.gender if self.gender_enabled else None,
        )
        try:
            sample = sample_questions(self.content.questions, demographic, mode, self.rng, policy=self.age_policy)
        except NoQuestionsAvailableError:
            inc_counter("sessions.no_questions")
            raise
        state.mode = sample.mode
        state.questions = sample.questions
        state.ledger = AnswerLedger(total=sample.actual_count, review_buffer=self.review_buffer)
        state.tally = None
        state.view = AppState.QUIZ

    def back(self, state: SessionState) -> None:
        target = self.graph.back_target(state.view)
        if target is None:
            raise InvalidTransitionError(
                SessionErrorMessages.INVALID_TRANSITION.format(state=state.view.value, event="back"),
                detail={"view": state.view.value, "event": "back"},
            )
        if state.view is AppState.QUIZ:
            if state.ledger is not None and state.ledger.position != 0:
                raise InvalidTransitionError(
                    NavigationMessages.BACK_TO_MODE_FIRST_ONLY,
                    detail={"view": state.view.value, "event": "back", "position": state.ledger.position},
                )
            state.questions = ()
            state.ledger = None
            state.mode = None
        state.view = target

    # --- quiz ---
    def select_answer(self, state: SessionState, disc_type: DiscType) -> bool:
        """Record an answer; returns True when the quiz was finalized."""
        ledger = self._ledger(state, "select_answer")
        now = self.clock()
        completed = ledger.select_answer(DiscType(disc_type), now=now, guard_seconds=self.submit_guard_ms / 1000.0)
        if completed:
            self._finalize(state, now)
        return completed

    def select_option(self, state: SessionState, option_index: int) -> bool:
        ledger = self._ledger(state, "select_answer")
        question = state.questions[ledger.position]
        if not 0 <= option_index < len(question.options):
            raise ValidationError(
                NavigationMessages.OPTION_OUT_OF_RANGE,
                detail={"option_index": option_index, "options": len(question.options)},
            )
        return self.select_answer(state, question.options[option_index].type)

    def go_to_previous(self, state: SessionState) -> None:
        self._ledger(state, "previous").go_to_previous()

    def go_to_next(self, state: SessionState) -> None:
        self._ledger(state, "next").go_to_next()

    def jump_to_frontier(self, state: SessionState) -> None:
        self._ledger(state, "frontier").jump_to_frontier()

    def _finalize(self, state: SessionState, now: float) -> None:
        if state.ledger is None:
            raise InvalidTransitionError(detail={"view": state.view.value, "event": "finalize"})
        state.tally = state.ledger.tally()
        inc_counter("sessions.completed")
        logger.info(
            "quiz_finalized",
            extra={
                "structured_data": {
                    "session_id": state.session_id,
                    "answered": state.ledger.answered_count,
                    "tally": state.tally.as_dict(),
                }
            },
        )
        if self.graph.has(AppState.ANALYZING):
            state.view = AppState.ANALYZING
            state.analyzing_until = now + self.analyzing_delay_ms / 1000.0
        else:
            state.view = AppState.RESULT

    # --- result ---
    def classification(self, state: SessionState) -> Classification:
        self._require(state, "classification", AppState.ANALYZING, AppState.RESULT)
        tally = state.tally or ScoreTally()
        result = classify(tally, self.content.results, self.content.result_index)
        logger.debug(
            "result_classified",
            extra={"structured_data": {"key": result.tag, "resolved_by": result.resolved_by}},
        )
        return result

    def share_url(self, state: SessionState, base_url: str) -> str:
        self._require(state, "share", AppState.RESULT)
        return build_share_url(base_url, state.tally or ScoreTally(), state.display_age_group, state.gender)


__all__ = ["SessionState", "ResetOutcome", "ViewStateMachine"]
