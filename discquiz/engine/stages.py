from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from discquiz.core.errors import ConfigurationError
from discquiz.engine.types import AppState

SELECTION_STAGES = frozenset({AppState.GENDER_SELECT, AppState.AGE_SELECT, AppState.MODE_SELECT})
# Screens that may step back to the preceding selection screen.
BACKTRACKING_STAGES = frozenset({AppState.AGE_SELECT, AppState.MODE_SELECT, AppState.QUIZ})
REQUIRED_STAGES = (AppState.HOME, AppState.AGE_SELECT, AppState.MODE_SELECT, AppState.QUIZ, AppState.RESULT)


@dataclass(frozen=True, slots=True)
class StageGraph:
    """Transition graph generated from the ordered list of enabled screens."""

    stages: Tuple[AppState, ...]

    def has(self, stage: AppState) -> bool:
        return stage in self.stages

    def next_after(self, stage: AppState) -> AppState:
        index = self.stages.index(stage)
        if index + 1 >= len(self.stages):
            return AppState.HOME
        return self.stages[index + 1]

    def back_target(self, stage: AppState) -> Optional[AppState]:
        if stage not in BACKTRACKING_STAGES or stage not in self.stages:
            return None
        index = self.stages.index(stage)
        previous = self.stages[index - 1]
        return previous if previous in SELECTION_STAGES else None


def build_stage_graph(stages: Iterable[AppState]) -> StageGraph:
    ordered = tuple(AppState(stage) for stage in stages)
    missing = [stage.value for stage in REQUIRED_STAGES if stage not in ordered]
    if missing:
        raise ConfigurationError("Stage list is missing mandatory screens", detail={"missing": missing})
    if len(set(ordered)) != len(ordered):
        raise ConfigurationError("Stage list contains duplicates", detail={"stages": [s.value for s in ordered]})
    return StageGraph(ordered)


__all__ = ["StageGraph", "build_stage_graph", "SELECTION_STAGES", "REQUIRED_STAGES"]
