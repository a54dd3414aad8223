from __future__ import annotations

from dataclasses import dataclass
from typing import List, Mapping, Sequence, Tuple

from discquiz.core.errors import ConfigurationError
from discquiz.engine.constants import HIGH_RATIO_THRESHOLD
from discquiz.engine.types import (
    CANONICAL_ORDER,
    Blend,
    DiscType,
    HighType,
    Primary,
    ResultContent,
    ResultKey,
    ScoreTally,
)


@dataclass(frozen=True, slots=True)
class Classification:
    """Outcome of classifying one tally."""

    key: ResultKey
    first: DiscType
    second: DiscType
    ratio: float
    content: ResultContent
    resolved_by: str  # "exact", "primary" or "default"

    @property
    def tag(self) -> str:
        return self.key.tag


def rank_types(tally: ScoreTally) -> List[Tuple[DiscType, int]]:
    """Types by count descending; ``sorted`` is stable so ties keep D, I, S, C order."""
    return sorted(
        ((disc_type, tally.count(disc_type)) for disc_type in CANONICAL_ORDER),
        key=lambda pair: pair[1],
        reverse=True,
    )


def classification_key(tally: ScoreTally) -> Tuple[ResultKey, DiscType, DiscType, float]:
    ranked = rank_types(tally)
    first = ranked[0][0]
    non_zero = [disc_type for disc_type, count in ranked if count > 0]
    second = first if len(non_zero) == 1 else ranked[1][0]

    total = tally.total or 1
    ratio = tally.count(first) / total
    if ratio >= HIGH_RATIO_THRESHOLD:
        return HighType(first), first, second, ratio
    return Blend(first, second), first, second, ratio


def index_result_bank(bank: Sequence[ResultContent]) -> Mapping[ResultKey, ResultContent]:
    """Map keys to entries, first entry wins on duplicate keys."""
    index: dict[ResultKey, ResultContent] = {}
    for entry in bank:
        index.setdefault(entry.key, entry)
    return index


def classify(
    tally: ScoreTally,
    bank: Sequence[ResultContent],
    index: Mapping[ResultKey, ResultContent] | None = None,
) -> Classification:
    """Resolve a tally against the result bank.

    Lookup order: exact key, then the primary-type entry for ``first``, then
    the first entry of the bank. Deterministic for a given tally and bank.
    """
    if not bank:
        raise ConfigurationError("Result bank is empty", detail={"table": "results"})
    lookup = index if index is not None else index_result_bank(bank)
    key, first, second, ratio = classification_key(tally)

    content = lookup.get(key)
    resolved_by = "exact"
    if content is None:
        content = lookup.get(Primary(first))
        resolved_by = "primary"
    if content is None:
        content = bank[0]
        resolved_by = "default"
    return Classification(
        key=key,
        first=first,
        second=second,
        ratio=ratio,
        content=content,
        resolved_by=resolved_by,
    )


__all__ = [
    "Classification",
    "rank_types",
    "classification_key",
    "index_result_bank",
    "classify",
]
