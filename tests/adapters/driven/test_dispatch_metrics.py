"""Tests for dispatch metrics collection."""

from src.adapters.driven.metrics.dispatch_metrics import DispatchMetrics
from src.ports.errors import FailureKind
from src.ports.metrics import DispatchAttemptDto

__all__ = []


def test_metrics_initialization() -> None:
    """Metrics should initialize with empty window."""
    metrics = DispatchMetrics()
    assert str(metrics) == "Metrics: waiting for data …"


def test_metrics_records_attempt() -> None:
    """Metrics should record dispatch calls."""
    metrics = DispatchMetrics(window_size=10)
    metrics.update(DispatchAttemptDto(started_at_sec=100.0, finished_at_sec=100.1, status_code=200))

    output = str(metrics)
    assert "waiting for data" not in output
    assert "status=200" in output
    assert "latency= 100.0 ms" in output


def test_metrics_tracks_failures_and_offline() -> None:
    """Metrics should track failure rate and offline short-circuits."""
    metrics = DispatchMetrics(window_size=10)

    for i in range(6):
        metrics.update(DispatchAttemptDto(100.0 + i, 100.0 + i, None, 200))
    for i in range(2):
        metrics.update(DispatchAttemptDto(110.0 + i, 110.0 + i, FailureKind.HTTP_STATUS, 500))
    for i in range(2):
        metrics.update(DispatchAttemptDto(120.0 + i, 120.0 + i, FailureKind.OFFLINE))

    output = str(metrics)
    assert "fail= 40.0%" in output
    assert "offline=2" in output
    assert "status=  0" in output


def test_metrics_latency_ignores_offline_calls() -> None:
    """Offline short-circuits never reached the network, so they do not count as latency."""
    metrics = DispatchMetrics()
    metrics.update(DispatchAttemptDto(0.0, 0.5, FailureKind.OFFLINE))

    assert "latency=   0.0 ms" in str(metrics)


def test_metrics_respects_window_size() -> None:
    """Metrics should maintain sliding window of specified size."""
    metrics = DispatchMetrics(window_size=5)

    for i in range(10):
        metrics.update(DispatchAttemptDto(100.0 + i, 100.0 + i, None, 200))

    output = str(metrics)
    assert "win=5/5" in output
    assert "total=10" in output
