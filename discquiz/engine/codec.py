"""Share-link codec: result state to and from URL query parameters.

Parameters: ``view=result``, ``d``, ``i``, ``s``, ``c`` (integer counts),
``age`` (AgeGroup tag) and an optional ``gender`` tag.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Mapping, Optional
from urllib.parse import urlencode

from discquiz.engine.constants import DEFAULT_GENDER
from discquiz.engine.types import AgeGroup, Gender, ScoreTally

RESULT_VIEW = "result"
SCORE_PARAMS = ("d", "i", "s", "c")
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True, slots=True)
class SharedResult:
    tally: ScoreTally
    age_group: AgeGroup
    gender: Optional[Gender] = None

    @property
    def effective_gender(self) -> Gender:
        return self.gender or DEFAULT_GENDER


def parse_count(raw: str) -> int:
    """Leading-integer parse; anything unparseable counts as 0, negatives clamp to 0."""
    match = _LEADING_INT.match(raw)
    if not match:
        return 0
    return max(int(match.group(1)), 0)


def encode_share_params(
    tally: ScoreTally, age_group: AgeGroup, gender: Optional[Gender] = None
) -> dict[str, str]:
    params = {
        "view": RESULT_VIEW,
        "d": str(tally.D),
        "i": str(tally.I),
        "s": str(tally.S),
        "c": str(tally.C),
        "age": AgeGroup(age_group).value,
    }
    if gender is not None:
        params["gender"] = Gender(gender).value
    return params


def build_share_url(
    base_url: str, tally: ScoreTally, age_group: AgeGroup, gender: Optional[Gender] = None
) -> str:
    query = urlencode(encode_share_params(tally, age_group, gender))
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}{query}"


def decode_share_params(params: Mapping[str, str]) -> Optional[SharedResult]:
    """Return the shared result, or None when the shortcut does not apply.

    Missing or blank required fields and an unknown age tag disable the
    shortcut. Non-numeric counts never abort the decode.
    """
    if params.get("view") != RESULT_VIEW:
        return None
    raw_counts = [params.get(name) for name in SCORE_PARAMS]
    raw_age = params.get("age")
    if not all(raw_counts) or not raw_age:
        return None
    try:
        age_group = AgeGroup(raw_age)
    except ValueError:
        return None

    gender: Optional[Gender] = None
    raw_gender = params.get("gender")
    if raw_gender:
        try:
            gender = Gender(raw_gender)
        except ValueError:
            gender = None

    d, i, s, c = (parse_count(value) for value in raw_counts)  # type: ignore[arg-type]
    return SharedResult(tally=ScoreTally(D=d, I=i, S=s, C=c), age_group=age_group, gender=gender)


__all__ = [
    "RESULT_VIEW",
    "SharedResult",
    "parse_count",
    "encode_share_params",
    "build_share_url",
    "decode_share_params",
]
