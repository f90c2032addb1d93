"""In-memory sliding-window metrics for dispatch calls."""

from __future__ import annotations

import statistics
from collections import deque
from dataclasses import dataclass

from src.ports.errors import FailureKind
from src.ports.metrics import DispatchAttemptDto, MetricsPort

__all__ = ["DispatchMetrics"]


@dataclass(slots=True, frozen=True)
class _Sample:
    """Internal record for one dispatch call."""

    latency_ms: float
    failure: FailureKind | None
    status_code: int | None


class DispatchMetrics(MetricsPort):
    """Fast, lock-free metrics for async context.

    Tracks:
    - Average latency of calls that reached the transport.
    - Failure rate (offline, HTTP errors or transport faults).
    - Offline short-circuits.
    - Last status code.
    - Total calls seen.

    Not thread-safe; create one instance per event loop.
    """

    def __init__(self, *, window_size: int = 100) -> None:
        """Initialize metrics collector.

        Args:
            window_size: Number of recent calls to keep for statistics.
        """
        self._window: deque[_Sample] = deque(maxlen=window_size)
        self._total_seen: int = 0

    def update(self, attempt: DispatchAttemptDto) -> None:
        """Record a finished dispatch call.

        Args:
            attempt: Dispatch call with timing and result info.
        """
        self._window.append(
            _Sample(
                latency_ms=(attempt.finished_at_sec - attempt.started_at_sec) * 1_000.0,
                failure=attempt.failure,
                status_code=attempt.status_code,
            )
        )
        self._total_seen += 1

    def __str__(self) -> str:
        """Return human-readable one-line summary for logging.

        Returns:
            Formatted metrics string.
        """
        if not self._window:
            return "Metrics: waiting for data …"

        n_window = len(self._window)
        failures = sum(1 for s in self._window if s.failure is not None)
        offline = sum(1 for s in self._window if s.failure is FailureKind.OFFLINE)
        fail_pct = (failures / n_window) * 100
        sent = [s.latency_ms for s in self._window if s.failure is not FailureKind.OFFLINE]
        avg_latency = statistics.fmean(sent) if sent else 0.0
        last = self._window[-1]

        return (
            f"latency={avg_latency:6.1f} ms | "
            f"status={last.status_code or 0:3d} | "
            f"fail={fail_pct:5.1f}% | "
            f"offline={offline} | "
            f"win={n_window}/{self._window.maxlen} | "
            f"total={self._total_seen}"
        )
