from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Mapping, Optional, Tuple, Union


class DiscType(str, Enum):
    D = "D"
    I = "I"  # noqa: E741 - DISC letter
    S = "S"
    C = "C"


# Ranking ties resolve in this order.
CANONICAL_ORDER: Tuple[DiscType, ...] = (DiscType.D, DiscType.I, DiscType.S, DiscType.C)


class AgeGroup(str, Enum):
    TEENS = "10s"
    TWENTIES = "20s"
    THIRTIES = "30s"
    FORTIES = "40s"
    FIFTIES = "50s"
    SIXTIES = "60s"


class Gender(str, Enum):
    F = "F"
    M = "M"
    O = "O"  # noqa: E741 - "other / not specified"


class AppState(str, Enum):
    HOME = "HOME"
    GENDER_SELECT = "GENDER_SELECT"
    AGE_SELECT = "AGE_SELECT"
    MODE_SELECT = "MODE_SELECT"
    QUIZ = "QUIZ"
    ANALYZING = "ANALYZING"
    RESULT = "RESULT"


class TestModeId(str, Enum):
    __test__ = False

    CORE = "CORE"
    DEEP = "DEEP"
    FULL = "FULL"


@dataclass(frozen=True, slots=True)
class Option:
    text: str
    type: DiscType


@dataclass(frozen=True, slots=True)
class Question:
    """One behavioural item from the content table."""

    id: int
    text: str
    category: str
    target_age_min: int
    target_age_max: int
    options: Tuple[Option, ...]

    def with_options(self, options: Iterable[Option]) -> "Question":
        return replace(self, options=tuple(options))


@dataclass(frozen=True, slots=True)
class TestMode:
    __test__ = False

    id: TestModeId
    requested_count: int
    label: str
    brand_name: str
    estimated_time: str
    recommended: bool = False
    actual_count: Optional[int] = None

    @property
    def question_count(self) -> int:
        return self.actual_count if self.actual_count is not None else self.requested_count

    def with_actual_count(self, count: int) -> "TestMode":
        return replace(self, actual_count=count)


@dataclass(frozen=True, slots=True)
class ScoreTally:
    """Per-type answer counts. Always rebuilt from a ledger or a share link."""

    D: int = 0
    I: int = 0  # noqa: E741
    S: int = 0
    C: int = 0

    @classmethod
    def from_answers(cls, answers: Iterable[Optional[DiscType]]) -> "ScoreTally":
        counts = {t: 0 for t in CANONICAL_ORDER}
        for answer in answers:
            if answer is not None:
                counts[DiscType(answer)] += 1
        return cls(**{t.value: n for t, n in counts.items()})

    @classmethod
    def from_mapping(cls, values: Mapping[str, int]) -> "ScoreTally":
        return cls(**{t.value: int(values.get(t.value, 0)) for t in CANONICAL_ORDER})

    def count(self, disc_type: DiscType) -> int:
        return getattr(self, DiscType(disc_type).value)

    @property
    def total(self) -> int:
        return self.D + self.I + self.S + self.C

    def as_dict(self) -> dict[str, int]:
        return {"D": self.D, "I": self.I, "S": self.S, "C": self.C}


@dataclass(frozen=True, slots=True)
class HighType:
    """Single dominant trait, e.g. ``High D``."""

    type: DiscType

    @property
    def tag(self) -> str:
        return f"High {self.type.value}"


@dataclass(frozen=True, slots=True)
class Blend:
    """Two-trait profile, e.g. ``DI``."""

    first: DiscType
    second: DiscType

    @property
    def tag(self) -> str:
        return f"{self.first.value}{self.second.value}"


@dataclass(frozen=True, slots=True)
class Primary:
    """Primary-type entry used as the second lookup step."""

    type: DiscType

    @property
    def tag(self) -> str:
        return self.type.value


ResultKey = Union[HighType, Blend, Primary]


def parse_result_key(raw: str) -> ResultKey:
    """Parse a content-table ``type`` string into a ResultKey."""

    token = raw.strip()
    if token.startswith("High "):
        return HighType(DiscType(token[5:].strip()))
    if len(token) == 2:
        return Blend(DiscType(token[0]), DiscType(token[1]))
    if len(token) == 1:
        return Primary(DiscType(token))
    raise ValueError(f"Unrecognized result key: {raw!r}")


@dataclass(frozen=True, slots=True)
class ResultContent:
    key: ResultKey
    titles: Tuple[str, ...]
    summaries: Tuple[str, ...]
    base_name: str
    color: str
    advice_list: Tuple[str, ...] = ()
    lucky_items: Tuple[str, ...] = ()
    famous_people_pool: Tuple[str, ...] = ()

    @property
    def type_key(self) -> str:
        return self.key.tag


__all__ = [
    "DiscType",
    "CANONICAL_ORDER",
    "AgeGroup",
    "Gender",
    "AppState",
    "TestModeId",
    "Option",
    "Question",
    "TestMode",
    "ScoreTally",
    "HighType",
    "Blend",
    "Primary",
    "ResultKey",
    "parse_result_key",
    "ResultContent",
]
