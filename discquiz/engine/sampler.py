"""Question pool filtering and randomized sampling.

``sample_questions`` is pure apart from the injected ``random.Random``: the
content table is never mutated and every call returns fresh ``Question``
objects whose option order has been shuffled.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Iterable, List, Literal, Optional, Sequence, Tuple, TypeVar

from discquiz.core.errors import NoQuestionsAvailableError
from discquiz.core.logging import get_logger
from discquiz.core.metrics import count_calls, inc_counter, timer
from discquiz.engine.constants import AGE_GROUP_RANGES, AGE_GROUP_REPRESENTATIVE, GENDER_ID_RANGES
from discquiz.engine.types import AgeGroup, Gender, Question, TestMode

AgeOverlapPolicy = Literal["range", "representative"]

logger = get_logger("discquiz.engine.sampler", component="engine")

_T = TypeVar("_T")


@dataclass(frozen=True, slots=True)
class Demographic:
    """Filter inputs. ``gender`` is None when gender partitioning is disabled."""

    age_group: AgeGroup
    gender: Optional[Gender] = None


@dataclass(frozen=True, slots=True)
class SampleResult:
    questions: Tuple[Question, ...]
    mode: TestMode
    primary_pool_size: int
    used_fallback: bool

    @property
    def actual_count(self) -> int:
        return len(self.questions)


def dedupe_by_id(questions: Iterable[Question]) -> List[Question]:
    """Keep the first occurrence of each question id."""
    seen: set[int] = set()
    unique: List[Question] = []
    for question in questions:
        if question.id in seen:
            continue
        seen.add(question.id)
        unique.append(question)
    return unique


def in_gender_partition(question: Question, gender: Gender) -> bool:
    low, high = GENDER_ID_RANGES[gender]
    return low <= question.id <= high


def age_overlaps(question: Question, age_group: AgeGroup, policy: AgeOverlapPolicy = "range") -> bool:
    if policy == "representative":
        age = AGE_GROUP_REPRESENTATIVE[age_group]
        return question.target_age_min <= age <= question.target_age_max
    low, high = AGE_GROUP_RANGES[age_group]
    return question.target_age_min <= high and question.target_age_max >= low


def shuffled(items: Sequence[_T], rng: random.Random) -> List[_T]:
    """Return a uniformly shuffled copy (Fisher-Yates via ``Random.shuffle``)."""
    result = list(items)
    rng.shuffle(result)
    return result


def select_pool(
    questions: Sequence[Question],
    demographic: Demographic,
    requested_count: int,
    *,
    policy: AgeOverlapPolicy = "range",
) -> Tuple[List[Question], int, bool]:
    """Return ``(pool, primary_pool_size, used_fallback)`` for a demographic."""
    unique = dedupe_by_id(questions)
    if demographic.gender is not None:
        partition = [q for q in unique if in_gender_partition(q, demographic.gender)]
    else:
        partition = unique
    primary = [q for q in partition if age_overlaps(q, demographic.age_group, policy)]

    if len(primary) >= requested_count:
        return primary, len(primary), False
    if demographic.gender is not None:
        # Gendered bank: drop the age restriction, keep the partition.
        return partition, len(primary), True
    return primary, len(primary), False


@count_calls("sampler.calls")
def sample_questions(
    questions: Sequence[Question],
    demographic: Demographic,
    mode: TestMode,
    rng: random.Random,
    *,
    policy: AgeOverlapPolicy = "range",
) -> SampleResult:
    """Filter, shuffle and slice the bank for one quiz session.

    Raises:
        NoQuestionsAvailableError: when the pool is empty after every fallback.
    """
    with timer("sampler.sample"):
        pool, primary_size, used_fallback = select_pool(
            questions, demographic, mode.requested_count, policy=policy
        )
        if not pool:
            logger.warning(
                "sampler_no_questions",
                extra={
                    "structured_data": {
                        "age_group": demographic.age_group.value,
                        "gender": demographic.gender.value if demographic.gender else None,
                        "mode": mode.id.value,
                    }
                },
            )
            raise NoQuestionsAvailableError(
                detail={
                    "age_group": demographic.age_group.value,
                    "gender": demographic.gender.value if demographic.gender else None,
                }
            )

        count = min(mode.requested_count, len(pool))
        picked = shuffled(pool, rng)[:count]
        # Option order is drawn independently of question order.
        sampled = tuple(q.with_options(shuffled(q.options, rng)) for q in picked)

    if used_fallback:
        inc_counter("sampler.fallback")
    logger.info(
        "sampler_sampled",
        extra={
            "structured_data": {
                "mode": mode.id.value,
                "requested": mode.requested_count,
                "actual": count,
                "primary_pool": primary_size,
                "pool": len(pool),
                "fallback": used_fallback,
            }
        },
    )
    return SampleResult(
        questions=sampled,
        mode=mode.with_actual_count(count),
        primary_pool_size=primary_size,
        used_fallback=used_fallback,
    )


__all__ = [
    "AgeOverlapPolicy",
    "Demographic",
    "SampleResult",
    "dedupe_by_id",
    "in_gender_partition",
    "age_overlaps",
    "shuffled",
    "select_pool",
    "sample_questions",
]
