import pytest

from discquiz.core.metrics import count_calls, get_counters, get_metrics, inc_counter, metrics_registry, timer


def test_timer_records_duration():
    with timer("metrics.test.timer"):
        pass
    entry = get_metrics()["metrics.test.timer"]
    assert entry["count"] == 1.0
    assert entry["max_ms"] >= 0.0


def test_registry_tracks_average_and_max():
    metrics_registry.record("metrics.avg", 10.0)
    metrics_registry.record("metrics.avg", 30.0)
    entry = get_metrics()["metrics.avg"]
    assert entry["count"] == 2.0
    assert entry["avg_ms"] == pytest.approx(20.0)
    assert entry["max_ms"] == 30.0


def test_count_calls_increments_per_invocation():
    @count_calls("metrics.test.calls")
    def _fn(value):
        return value * 2

    assert _fn(2) == 4
    _fn(3)
    assert get_counters()["metrics.test.calls"] == 2.0


def test_reset_clears_everything():
    inc_counter("metrics.test.reset", 5)
    metrics_registry.reset()
    assert get_counters() == {}
    assert get_metrics() == {}
