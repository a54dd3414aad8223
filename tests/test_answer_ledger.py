import pytest

from discquiz.core.errors import InvalidTransitionError, NavigationError, SubmissionInFlightError
from discquiz.engine.ledger import AnswerLedger
from discquiz.engine.types import DiscType, ScoreTally

D, I, S, C = DiscType.D, DiscType.I, DiscType.S, DiscType.C


def _answer(ledger: AnswerLedger, disc_type: DiscType, now: float = 0.0) -> bool:
    return ledger.select_answer(disc_type, now=now)


def test_answering_at_frontier_advances_both_cursors():
    ledger = AnswerLedger(total=3)
    assert _answer(ledger, D) is False
    assert (ledger.position, ledger.max_position) == (1, 1)
    assert _answer(ledger, I) is False
    assert (ledger.position, ledger.max_position) == (2, 2)


def test_last_answer_completes_without_moving():
    ledger = AnswerLedger(total=2)
    _answer(ledger, D)
    assert _answer(ledger, C) is True
    assert ledger.completed
    assert ledger.position == 1
    with pytest.raises(InvalidTransitionError):
        _answer(ledger, S)


def test_revision_scenario_keeps_later_answer():
    ledger = AnswerLedger(total=3)
    _answer(ledger, D)
    _answer(ledger, I)
    assert ledger.max_position == 2

    ledger.go_to_previous()
    ledger.go_to_previous()
    assert ledger.position == 0
    _answer(ledger, S)
    assert (ledger.position, ledger.max_position) == (1, 2)

    # Q1 keeps I without re-answering.
    ledger.go_to_next()
    assert ledger.position == 2
    assert ledger.tally() == ScoreTally(D=0, I=1, S=1, C=0)


def test_revision_never_extends_frontier():
    ledger = AnswerLedger(total=5)
    for disc_type in (D, I, S):
        _answer(ledger, disc_type)
    ledger.go_to_previous()
    ledger.go_to_previous()
    _answer(ledger, C)
    _answer(ledger, C)
    assert ledger.position == ledger.max_position == 3


def test_tally_matches_answered_count_along_the_way():
    ledger = AnswerLedger(total=4)
    sequence = [D, D, I, C]
    for step, disc_type in enumerate(sequence):
        _answer(ledger, disc_type)
        assert ledger.tally().total == ledger.answered_count == step + 1


def test_missing_entries_contribute_nothing():
    ledger = AnswerLedger(total=4)
    _answer(ledger, S)
    assert ledger.tally() == ScoreTally(S=1)


def test_previous_is_blocked_on_first_question():
    ledger = AnswerLedger(total=3)
    assert not ledger.can_go_previous()
    with pytest.raises(NavigationError):
        ledger.go_to_previous()


def test_next_cannot_pass_frontier():
    ledger = AnswerLedger(total=3)
    _answer(ledger, D)
    assert not ledger.can_go_next()
    with pytest.raises(NavigationError):
        ledger.go_to_next()


def test_jump_to_frontier_only_when_behind():
    ledger = AnswerLedger(total=5)
    for disc_type in (D, I, S):
        _answer(ledger, disc_type)
    assert not ledger.can_jump_to_frontier()
    ledger.go_to_previous()
    ledger.go_to_previous()
    assert ledger.can_jump_to_frontier()
    ledger.jump_to_frontier()
    assert ledger.position == 3


def test_review_buffer_bounds_backtracking():
    ledger = AnswerLedger(total=10, review_buffer=2)
    for _ in range(5):
        _answer(ledger, D)
    assert ledger.max_position == 5
    ledger.go_to_previous()
    ledger.go_to_previous()
    assert ledger.position == 3
    assert not ledger.can_go_previous()
    with pytest.raises(NavigationError):
        ledger.go_to_previous()


def test_guard_rejects_double_submission_until_released():
    ledger = AnswerLedger(total=5)
    ledger.select_answer(D, now=10.0, guard_seconds=0.2)
    assert ledger.is_busy(10.1)
    with pytest.raises(SubmissionInFlightError):
        ledger.select_answer(I, now=10.1, guard_seconds=0.2)
    assert ledger.answered_count == 1
    assert ledger.select_answer(I, now=10.25, guard_seconds=0.2) is False
    assert ledger.answered_count == 2


def test_progress_tracks_frontier():
    ledger = AnswerLedger(total=4)
    assert ledger.progress_percent() == pytest.approx(25.0)
    _answer(ledger, D)
    _answer(ledger, D)
    ledger.go_to_previous()
    assert ledger.progress_percent() == pytest.approx(75.0)


def test_serialization_preserves_state():
    ledger = AnswerLedger(total=4, review_buffer=3)
    _answer(ledger, D)
    _answer(ledger, S)
    ledger.go_to_previous()
    restored = AnswerLedger.from_dict(ledger.to_dict())
    assert restored == ledger


def test_rejects_empty_sequence():
    with pytest.raises(ValueError):
        AnswerLedger(total=0)
