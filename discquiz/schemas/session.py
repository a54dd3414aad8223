from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from discquiz.engine.types import AgeGroup, Gender, TestModeId


class GenderSelect(BaseModel):
    gender: Gender


class AgeSelect(BaseModel):
    age_group: AgeGroup


class ModeSelect(BaseModel):
    mode: TestModeId


class AnswerSubmit(BaseModel):
    """Answer for the question on screen, by position in the displayed option list."""

    option_index: int = Field(ge=0)


class Selections(BaseModel):
    gender: Optional[Gender] = None
    age_group: Optional[AgeGroup] = None
    mode: Optional[TestModeId] = None
    question_count: Optional[int] = None


class SessionView(BaseModel):
    session_id: str
    view: str
    gender_enabled: bool
    from_shared_link: bool = False
    selections: Selections
    screen: dict[str, Any]


class ResetResponse(BaseModel):
    redirect_to: Optional[str] = None
    session: Optional[SessionView] = None


class ShareLink(BaseModel):
    url: str
    text: str


class NarrativeResponse(BaseModel):
    text: str
    source: str
    fallback: bool


__all__ = [
    "GenderSelect",
    "AgeSelect",
    "ModeSelect",
    "AnswerSubmit",
    "Selections",
    "SessionView",
    "ResetResponse",
    "ShareLink",
    "NarrativeResponse",
]
