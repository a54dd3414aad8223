import random
from collections import Counter

import pytest

from discquiz.core.errors import NoQuestionsAvailableError
from discquiz.core.metrics import get_counters
from discquiz.data.content import ContentTables
from discquiz.engine.constants import TEST_MODES_BY_ID
from discquiz.engine.sampler import Demographic, age_overlaps, dedupe_by_id, sample_questions, select_pool
from discquiz.engine.types import AgeGroup, Gender, TestMode, TestModeId

from tests.factories import question_row, result_row

CORE = TEST_MODES_BY_ID[TestModeId.CORE]


def _mode(count: int) -> TestMode:
    return TestMode(TestModeId.CORE, count, "테스트", "Test", "1m")


def test_range_overlap_policy_matches_inclusive_bounds(small_content):
    q = small_content.question_by_id(2)  # 15-25
    assert age_overlaps(q, AgeGroup.TEENS)
    assert age_overlaps(q, AgeGroup.TWENTIES)
    assert not age_overlaps(q, AgeGroup.THIRTIES)


def test_representative_policy_uses_single_age(small_content):
    q = small_content.question_by_id(869)  # 28-35
    assert age_overlaps(q, AgeGroup.TWENTIES, "range")
    assert not age_overlaps(q, AgeGroup.TWENTIES, "representative")


def _aged(age_min: int, age_max: int):
    return ContentTables.from_raw([question_row(1, age_min, age_max)], [result_row("D")]).questions[0]


@pytest.mark.parametrize(
    "policy, age_min, age_max, expected",
    [
        ("representative", 25, 30, True),
        ("representative", 10, 25, True),
        ("representative", 26, 30, False),
        ("representative", 10, 24, False),
        ("range", 29, 40, True),
        ("range", 10, 20, True),
        ("range", 30, 40, False),
        ("range", 10, 19, False),
    ],
)
def test_age_bounds_are_inclusive(policy, age_min, age_max, expected):
    assert age_overlaps(_aged(age_min, age_max), AgeGroup.TWENTIES, policy) is expected


def test_female_sample_stays_in_female_partition(small_content):
    result = sample_questions(
        small_content.questions, Demographic(AgeGroup.TWENTIES, Gender.F), _mode(2), random.Random(1)
    )
    assert result.actual_count == 2
    assert not result.used_fallback
    assert {q.id for q in result.questions} <= {867, 868, 869}


@pytest.mark.parametrize("gender", [Gender.M, Gender.O])
def test_male_and_other_share_the_lower_partition(small_content, gender):
    result = sample_questions(small_content.questions, Demographic(AgeGroup.TWENTIES, gender), CORE, random.Random(3))
    assert all(1 <= q.id <= 865 for q in result.questions)


def test_short_age_pool_falls_back_to_gender_partition(small_content):
    result = sample_questions(small_content.questions, Demographic(AgeGroup.TWENTIES, Gender.F), CORE, random.Random(2))
    assert result.used_fallback
    assert result.primary_pool_size == 3
    assert sorted(q.id for q in result.questions) == [866, 867, 868, 869, 870, 871]
    assert get_counters()["sampler.fallback"] == 1.0


def test_count_is_min_of_requested_and_pool(small_content):
    result = sample_questions(small_content.questions, Demographic(AgeGroup.TWENTIES, Gender.F), CORE, random.Random(0))
    assert result.actual_count == 6
    assert result.mode.requested_count == 50
    assert result.mode.question_count == 6


def test_without_gender_partition_age_filter_spans_all_ids(small_content):
    pool, primary, used_fallback = select_pool(small_content.questions, Demographic(AgeGroup.TWENTIES), 50)
    assert {q.id for q in pool} == {2, 3, 4, 867, 868, 869}
    assert primary == 6
    assert not used_fallback


def test_empty_pool_raises_no_questions():
    content = ContentTables.from_raw([question_row(900), question_row(901)], [result_row("D")])
    with pytest.raises(NoQuestionsAvailableError):
        sample_questions(content.questions, Demographic(AgeGroup.THIRTIES, Gender.M), CORE, random.Random(0))


def test_sample_has_no_duplicate_ids_even_with_duplicate_rows():
    rows = [question_row(1), question_row(1), question_row(2), question_row(3)]
    content = ContentTables.from_raw(rows, [result_row("D")])
    assert [q.id for q in dedupe_by_id(content.questions)] == [1, 2, 3]
    result = sample_questions(content.questions, Demographic(AgeGroup.THIRTIES, Gender.M), CORE, random.Random(5))
    ids = [q.id for q in result.questions]
    assert len(ids) == len(set(ids)) == 3


def test_options_are_a_permutation_and_source_is_untouched(small_content):
    original = {q.id: q.options for q in small_content.questions}
    result = sample_questions(small_content.questions, Demographic(AgeGroup.TWENTIES, Gender.F), CORE, random.Random(9))
    for question in result.questions:
        assert Counter(question.options) == Counter(original[question.id])
    assert {q.id: q.options for q in small_content.questions} == original


def test_same_seed_gives_same_sample(small_content):
    demographic = Demographic(AgeGroup.SIXTIES, Gender.M)
    first = sample_questions(small_content.questions, demographic, CORE, random.Random(42))
    second = sample_questions(small_content.questions, demographic, CORE, random.Random(42))
    assert first.questions == second.questions


def test_question_order_is_not_fixed(small_content):
    demographic = Demographic(AgeGroup.TWENTIES, Gender.F)
    orders = {
        tuple(q.id for q in sample_questions(small_content.questions, demographic, CORE, random.Random(seed)).questions)
        for seed in range(20)
    }
    assert len(orders) > 1


def test_core_mode_without_gender_uses_whole_small_pool():
    rows = [question_row(qid, 20, 29) for qid in (10, 20, 870, 900)] + [question_row(30, 40, 49)]
    content = ContentTables.from_raw(rows, [result_row("D")])
    result = sample_questions(content.questions, Demographic(AgeGroup.TWENTIES), CORE, random.Random(4))
    assert result.actual_count == 4
    assert not result.used_fallback
    assert sorted(q.id for q in result.questions) == [10, 20, 870, 900]
