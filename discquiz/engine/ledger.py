from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from discquiz.core.errors import InvalidTransitionError, NavigationError, SubmissionInFlightError
from discquiz.i18n.ko_messages import NavigationMessages
from discquiz.engine.types import DiscType, ScoreTally


@dataclass(slots=True)
class AnswerLedger:
    """Answers and cursor for one quiz run.

    ``position`` is the question on screen and ``max_position`` the frontier,
    the furthest question reached by answering. Entries behind the frontier can
    be overwritten while browsing back but are never removed.
    """

    total: int
    review_buffer: Optional[int] = None
    position: int = 0
    max_position: int = 0
    answers: Dict[int, DiscType] = field(default_factory=dict)
    busy_until: Optional[float] = None
    completed: bool = False

    def __post_init__(self) -> None:
        if self.total < 1:
            raise ValueError("AnswerLedger requires at least one question")
        if self.review_buffer is not None and self.review_buffer < 1:
            raise ValueError("review_buffer must be a positive integer or None")

    # --- submission guard ---
    def is_busy(self, now: float) -> bool:
        return self.busy_until is not None and now < self.busy_until

    def release(self) -> None:
        self.busy_until = None

    # --- answering ---
    def select_answer(self, disc_type: DiscType, *, now: float, guard_seconds: float = 0.0) -> bool:
        """Record an answer at the current position.

        Returns True when this answer completed the ledger (last question
        answered at the frontier).
        """
        if self.completed:
            raise InvalidTransitionError(detail={"reason": "ledger_completed"})
        if self.is_busy(now):
            raise SubmissionInFlightError()
        self.busy_until = None

        self.answers[self.position] = DiscType(disc_type)
        if self.position == self.max_position:
            if self.position == self.total - 1:
                self.completed = True
                return True
            self.position += 1
            self.max_position += 1
        else:
            # Revising behind the frontier never extends it.
            self.position += 1

        if guard_seconds > 0:
            self.busy_until = now + guard_seconds
        return False

    # --- navigation ---
    def can_go_previous(self) -> bool:
        if self.position <= 0:
            return False
        if self.review_buffer is None:
            return True
        return self.max_position - (self.position - 1) <= self.review_buffer

    def go_to_previous(self) -> None:
        if self.position <= 0:
            raise NavigationError(NavigationMessages.AT_FIRST_QUESTION)
        if not self.can_go_previous():
            raise NavigationError(
                NavigationMessages.REVIEW_BUFFER_EXCEEDED.format(depth=self.review_buffer),
                detail={"review_buffer": self.review_buffer},
            )
        self.position -= 1

    def can_go_next(self) -> bool:
        return self.position < self.max_position

    def go_to_next(self) -> None:
        if not self.can_go_next():
            raise NavigationError(NavigationMessages.AT_FRONTIER)
        self.position += 1

    def can_jump_to_frontier(self) -> bool:
        return self.position < self.max_position

    def jump_to_frontier(self) -> None:
        if not self.can_jump_to_frontier():
            raise NavigationError(NavigationMessages.AT_FRONTIER)
        self.position = self.max_position

    # --- folding ---
    @property
    def answered_count(self) -> int:
        return len(self.answers)

    def answer_at(self, index: int) -> Optional[DiscType]:
        return self.answers.get(index)

    def tally(self) -> ScoreTally:
        """Fold every declared index; unanswered positions contribute nothing."""
        return ScoreTally.from_answers(self.answers.get(index) for index in range(self.total))

    def progress_percent(self) -> float:
        return (self.max_position + 1) / self.total * 100.0

    # --- serialization ---
    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "review_buffer": self.review_buffer,
            "position": self.position,
            "max_position": self.max_position,
            "answers": {str(index): value.value for index, value in sorted(self.answers.items())},
            "busy_until": self.busy_until,
            "completed": self.completed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnswerLedger":
        return cls(
            total=int(data["total"]),
            review_buffer=data.get("review_buffer"),
            position=int(data.get("position", 0)),
            max_position=int(data.get("max_position", 0)),
            answers={int(index): DiscType(value) for index, value in dict(data.get("answers", {})).items()},
            busy_until=data.get("busy_until"),
            completed=bool(data.get("completed", False)),
        )


__all__ = ["AnswerLedger"]
