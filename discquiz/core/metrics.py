from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from functools import wraps
from time import perf_counter
from typing import Any, Callable, Dict, TypeVar, cast

_F = TypeVar("_F", bound=Callable[..., Any])


@dataclass(slots=True)
class TimingStats:
    """Running aggregates for one timing label."""

    count: int = 0
    total_ms: float = 0.0
    max_ms: float = 0.0

    def update(self, elapsed_ms: float) -> None:
        self.count += 1
        self.total_ms += elapsed_ms
        if elapsed_ms > self.max_ms:
            self.max_ms = elapsed_ms

    def snapshot(self) -> Dict[str, float]:
        avg = self.total_ms / self.count if self.count else 0.0
        return {
            "count": float(self.count),
            "total_ms": self.total_ms,
            "max_ms": self.max_ms,
            "avg_ms": avg,
        }


class _MetricsRegistry:
    """Thread-safe in-process counters and timings."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._timings: Dict[str, TimingStats] = {}
        self._counters: Dict[str, float] = {}

    def record(self, label: str, elapsed_ms: float) -> None:
        if not label:
            return
        with self._lock:
            self._timings.setdefault(label, TimingStats()).update(float(elapsed_ms))

    def inc(self, label: str, amount: float = 1.0) -> None:
        if not label:
            return
        with self._lock:
            self._counters[label] = self._counters.get(label, 0.0) + float(amount)

    def snapshot(self) -> Dict[str, Dict[str, float]]:
        with self._lock:
            return {label: stats.snapshot() for label, stats in self._timings.items()}

    def counters_snapshot(self) -> Dict[str, float]:
        with self._lock:
            return dict(self._counters)

    def reset(self) -> None:
        with self._lock:
            self._timings.clear()
            self._counters.clear()


metrics_registry = _MetricsRegistry()


@contextmanager
def timer(label: str):
    """Time a code block and record it under `label`."""
    t0 = perf_counter()
    try:
        yield
    finally:
        metrics_registry.record(label, (perf_counter() - t0) * 1000.0)


def count_calls(label: str) -> Callable[[_F], _F]:
    """Decorator that increments a counter each time the function is invoked."""

    def _wrap(func: _F) -> _F:
        @wraps(func)
        def _inner(*args: Any, **kwargs: Any):
            metrics_registry.inc(label)
            return func(*args, **kwargs)

        return cast(_F, _inner)

    return _wrap


def inc_counter(label: str, amount: float = 1.0) -> None:
    metrics_registry.inc(label, amount)


def get_counters() -> Dict[str, float]:
    return metrics_registry.counters_snapshot()


def get_metrics() -> Dict[str, Dict[str, float]]:
    return metrics_registry.snapshot()


__all__ = [
    "timer",
    "count_calls",
    "inc_counter",
    "get_counters",
    "get_metrics",
    "metrics_registry",
]
