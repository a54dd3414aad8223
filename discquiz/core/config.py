from functools import lru_cache
from pathlib import Path

from typing import Literal, Optional

from pydantic import Field, HttpUrl, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from discquiz.engine.types import AppState

DATA_DIR = Path(__file__).resolve().parent.parent / "data"

# Canonical screen order; optional stages are dropped when disabled.
CANONICAL_STAGES: tuple[AppState, ...] = (
    AppState.HOME,
    AppState.GENDER_SELECT,
    AppState.AGE_SELECT,
    AppState.MODE_SELECT,
    AppState.QUIZ,
    AppState.ANALYZING,
    AppState.RESULT,
)
OPTIONAL_STAGES: frozenset[AppState] = frozenset({AppState.GENDER_SELECT, AppState.ANALYZING})


class Settings(BaseSettings):
    """Strongly typed configuration sourced from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = Field(default="THE INSIGHT DISC API")
    environment: Literal["dev", "test", "staging", "prod"] = Field(default="dev")
    debug: bool = Field(default=False)
    database_url: str = Field(default="sqlite+pysqlite:///./discquiz.db")
    run_startup_ddl: bool = Field(default=True)

    questions_path: Path = Field(default=DATA_DIR / "questions.yaml")
    results_path: Path = Field(default=DATA_DIR / "results.yaml")

    enabled_stages: list[AppState] = Field(default_factory=lambda: list(CANONICAL_STAGES))
    age_overlap_policy: Literal["range", "representative"] = Field(default="range")
    review_buffer: Optional[int] = Field(default=None, ge=1, description="Max positions behind the frontier reachable by going back")
    analyzing_delay_ms: int = Field(default=2200, ge=0)
    submit_guard_ms: int = Field(default=200, ge=0)

    share_base_url: str = Field(default="http://localhost:8000/")

    narrative_enabled: bool = Field(default=False)
    narrative_base_url: Optional[HttpUrl] = Field(default=None)
    narrative_timeout_ms: int = Field(default=4000, ge=1)
    narrative_api_key: Optional[str] = Field(default=None)
    narrative_cache_size: int = Field(default=256, ge=0)

    visitor_counter_default: int = Field(default=1124, ge=0)
    session_store_max_entries: int = Field(default=10_000, ge=1)

    @field_validator("enabled_stages")
    @classmethod
    def _normalize_stages(cls, value: list[AppState]) -> list[AppState]:
        requested = set(value)
        missing = [stage.value for stage in CANONICAL_STAGES if stage not in OPTIONAL_STAGES and stage not in requested]
        if missing:
            raise ValueError(f"ENABLED_STAGES is missing mandatory stages: {missing}")
        return [stage for stage in CANONICAL_STAGES if stage in requested]

    @field_validator("narrative_base_url", mode="before")
    @classmethod
    def _normalize_blank_url(cls, value: object) -> Optional[str | HttpUrl]:
        if value in (None, "", b""):
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        if isinstance(value, str):
            stripped = value.strip()
            return stripped or None
        raise TypeError("NARRATIVE_BASE_URL must be a URL string")

    @computed_field(return_type=bool)
    def gender_enabled(self) -> bool:
        return AppState.GENDER_SELECT in self.enabled_stages


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
