from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Sequence, Tuple

import yaml

from discquiz.core.config import settings
from discquiz.core.errors import ConfigurationError
from discquiz.core.logging import get_logger
from discquiz.engine.classifier import index_result_bank
from discquiz.engine.types import (
    DiscType,
    Option,
    Question,
    ResultContent,
    ResultKey,
    parse_result_key,
)

logger = get_logger("discquiz.data.content", component="content")


@dataclass(frozen=True, slots=True)
class ContentTables:
    """Read-only question and result banks shared by every session."""

    questions: Tuple[Question, ...]
    results: Tuple[ResultContent, ...]
    result_index: Mapping[ResultKey, ResultContent]

    @classmethod
    def from_raw(cls, questions_raw: Sequence[Dict[str, Any]], results_raw: Sequence[Dict[str, Any]]) -> "ContentTables":
        questions = tuple(_question_from_raw(row) for row in questions_raw or ())
        results = tuple(_result_from_raw(row) for row in results_raw or ())
        if not results:
            raise ConfigurationError("Result bank is empty", detail={"table": "results"})
        return cls(
            questions=questions,
            results=results,
            result_index=MappingProxyType(dict(index_result_bank(results))),
        )

    def question_by_id(self, question_id: int) -> Question:
        for question in self.questions:
            if question.id == question_id:
                return question
        raise KeyError(question_id)


def _strings(values: Any) -> Tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        return (values,)
    return tuple(str(value) for value in values)


def _question_from_raw(row: Dict[str, Any]) -> Question:
    if not isinstance(row, dict):
        raise ConfigurationError("Question row must be a mapping", detail={"row": repr(row)})
    if not row.get("options"):
        raise ConfigurationError("Question row needs options", detail={"row": row.get("id")})
    try:
        options = tuple(Option(text=str(opt["text"]), type=DiscType(opt["type"])) for opt in row["options"])
        return Question(
            id=int(row["id"]),
            text=str(row.get("text") or row.get("question") or ""),
            category=str(row.get("category") or "general"),
            target_age_min=int(row["target_age_min"]),
            target_age_max=int(row["target_age_max"]),
            options=options,
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigurationError("Malformed question row", detail={"row": row.get("id"), "error": str(exc)}) from exc


def _result_from_raw(row: Dict[str, Any]) -> ResultContent:
    if not isinstance(row, dict):
        raise ConfigurationError("Result row must be a mapping", detail={"row": repr(row)})
    try:
        key = parse_result_key(str(row["type"]))
    except (KeyError, ValueError) as exc:
        raise ConfigurationError("Malformed result row", detail={"row": row.get("type"), "error": str(exc)}) from exc
    titles = _strings(row.get("titles"))
    summaries = _strings(row.get("summaries"))
    if not titles or not summaries:
        raise ConfigurationError("Result row needs titles and summaries", detail={"row": key.tag})
    return ResultContent(
        key=key,
        titles=titles,
        summaries=summaries,
        base_name=str(row.get("base_name", "")),
        color=str(row.get("color") or "#00f3ff"),
        advice_list=_strings(row.get("advice_list")),
        lucky_items=_strings(row.get("lucky_items")),
        famous_people_pool=_strings(row.get("famous_people_pool")),
    )


def _read_yaml_list(path: Path) -> List[Dict[str, Any]]:
    if not path.exists():
        raise ConfigurationError("Content table not found", detail={"path": str(path)})
    with path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ConfigurationError("Content table must be a YAML list", detail={"path": str(path)})
    return raw


def load_content(questions_path: Path, results_path: Path) -> ContentTables:
    tables = ContentTables.from_raw(_read_yaml_list(questions_path), _read_yaml_list(results_path))
    logger.info(
        "content_loaded",
        extra={
            "structured_data": {
                "questions": len(tables.questions),
                "results": len(tables.results),
            }
        },
    )
    return tables


@lru_cache(maxsize=1)
def get_content() -> ContentTables:
    """Process-wide content tables, loaded on first use."""
    return load_content(settings.questions_path, settings.results_path)


__all__ = ["ContentTables", "load_content", "get_content"]
