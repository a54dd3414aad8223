import pytest

from discquiz.core.errors import ConfigurationError
from discquiz.data.content import ContentTables
from discquiz.engine.classifier import classification_key, classify, rank_types
from discquiz.engine.types import Blend, DiscType, HighType, Primary, ScoreTally

from tests.factories import result_row


def _bank(*keys):
    return ContentTables.from_raw([], [result_row(key) for key in keys])


def test_ratio_at_threshold_is_high():
    key, first, _, ratio = classification_key(ScoreTally(D=6, I=2, S=1, C=1))
    assert ratio == pytest.approx(0.6)
    assert key == HighType(DiscType.D)
    assert first is DiscType.D


def test_tie_uses_canonical_order():
    key, first, second, ratio = classification_key(ScoreTally(D=4, I=4, S=1, C=1))
    assert (first, second) == (DiscType.D, DiscType.I)
    assert ratio == pytest.approx(0.4)
    assert key == Blend(DiscType.D, DiscType.I)
    assert key.tag == "DI"


def test_rank_is_stable_for_full_tie():
    ranked = rank_types(ScoreTally(D=2, I=2, S=2, C=2))
    assert [t for t, _ in ranked] == [DiscType.D, DiscType.I, DiscType.S, DiscType.C]


def test_single_present_type_pairs_with_itself():
    _, first, second, ratio = classification_key(ScoreTally(S=3))
    assert first is second is DiscType.S
    assert ratio == 1.0


def test_all_zero_tally_does_not_divide_by_zero():
    key, first, second, ratio = classification_key(ScoreTally())
    assert ratio == 0.0
    assert key == Blend(DiscType.D, DiscType.I)


def test_blend_below_threshold():
    key, *_ = classification_key(ScoreTally(D=1, I=2, S=5, C=2))
    assert key.tag == "SI"


def test_exact_match_resolves_first():
    tables = _bank("D", "High C", "SC")
    result = classify(ScoreTally(D=0, I=0, S=4, C=3), tables.results, tables.result_index)
    assert result.resolved_by == "exact"
    assert result.content.key == Blend(DiscType.S, DiscType.C)


def test_missing_blend_falls_back_to_primary():
    tables = _bank("C", "S")
    result = classify(ScoreTally(S=4, C=3), tables.results)
    assert result.tag == "SC"
    assert result.resolved_by == "primary"
    assert result.content.key == Primary(DiscType.S)


def test_missing_primary_falls_back_to_first_entry():
    tables = _bank("C", "I")
    result = classify(ScoreTally(D=9, I=1), tables.results, tables.result_index)
    assert result.tag == "High D"
    assert result.resolved_by == "default"
    assert result.content is tables.results[0]


def test_classification_is_repeatable(small_content):
    tally = ScoreTally(D=3, I=5, S=2, C=0)
    first = classify(tally, small_content.results, small_content.result_index)
    second = classify(tally, small_content.results, small_content.result_index)
    assert first == second


def test_empty_bank_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        classify(ScoreTally(D=1), ())
