from __future__ import annotations

import threading
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

import httpx

from discquiz.core.config import settings
from discquiz.core.logging import get_logger
from discquiz.core.metrics import inc_counter, timer
from discquiz.engine.types import AgeGroup, Gender, ScoreTally
from discquiz.i18n.ko_messages import NarrativeMessages

logger = get_logger("discquiz.services.narrative", component="narrative")

_CacheKey = tuple[int, int, int, int, str, str]


@dataclass(frozen=True, slots=True)
class NarrativeResult:
    text: str
    source: str  # "external", "cache" or "fallback"

    @property
    def is_fallback(self) -> bool:
        return self.source == "fallback"


class NarrativeClient:
    """HTTP client for the external insight-generation service.

    Contract: POST {base_url}/insights with
    ``{"scores": {...}, "age_group": "20s", "gender": "O", "result_key": "DI"}``;
    a 200 response carries ``{"text": "..."}``. Anything else, including
    network errors, yields the fixed fallback text. No retries.
    """

    def __init__(
        self,
        base_url: Optional[str],
        timeout_ms: int = 4000,
        api_key: Optional[str] = None,
        cache_size: int = 256,
    ) -> None:
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = max(100, int(timeout_ms)) / 1000.0
        self.api_key = api_key
        self.cache_size = cache_size
        self._cache: dict[_CacheKey, str] = {}
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return bool(self.base_url)

    def _headers(self) -> dict:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        return headers

    def _remember(self, key: _CacheKey, text: str) -> None:
        if self.cache_size <= 0:
            return
        with self._lock:
            self._cache[key] = text
            while len(self._cache) > self.cache_size:
                self._cache.pop(next(iter(self._cache)))

    def insight(self, tally: ScoreTally, age_group: AgeGroup, gender: Gender, result_key: str) -> NarrativeResult:
        if not self.enabled:
            return NarrativeResult(NarrativeMessages.FALLBACK, "fallback")

        key: _CacheKey = (tally.D, tally.I, tally.S, tally.C, age_group.value, gender.value)
        with self._lock:
            cached = self._cache.get(key)
        if cached is not None:
            return NarrativeResult(cached, "cache")

        payload = {
            "scores": tally.as_dict(),
            "age_group": age_group.value,
            "gender": gender.value,
            "result_key": result_key,
        }
        try:
            with timer("narrative.fetch"):
                resp = httpx.post(
                    f"{self.base_url}/insights",
                    json=payload,
                    headers=self._headers(),
                    timeout=self.timeout,
                )
        except httpx.HTTPError as exc:
            inc_counter("narrative.failures")
            logger.warning("narrative_request_failed", extra={"structured_data": {"error": str(exc)}})
            return NarrativeResult(NarrativeMessages.FALLBACK, "fallback")

        if resp.status_code != 200:
            inc_counter("narrative.failures")
            logger.warning("narrative_bad_status", extra={"structured_data": {"status": resp.status_code}})
            return NarrativeResult(NarrativeMessages.FALLBACK, "fallback")
        try:
            body = resp.json()
        except ValueError:
            body = None
        text = body.get("text") if isinstance(body, dict) else None
        if not isinstance(text, str) or not text.strip():
            inc_counter("narrative.failures")
            return NarrativeResult(NarrativeMessages.FALLBACK, "fallback")

        self._remember(key, text.strip())
        return NarrativeResult(text.strip(), "external")


def build_narrative_client() -> NarrativeClient:
    base_url = str(settings.narrative_base_url) if settings.narrative_enabled and settings.narrative_base_url else None
    return NarrativeClient(
        base_url,
        timeout_ms=settings.narrative_timeout_ms,
        api_key=settings.narrative_api_key,
        cache_size=settings.narrative_cache_size,
    )


@lru_cache(maxsize=1)
def get_narrative_client() -> NarrativeClient:
    return build_narrative_client()


__all__ = ["NarrativeClient", "NarrativeResult", "build_narrative_client", "get_narrative_client"]
