"""Metrics port definition (interface and DTO)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from src.ports.errors import FailureKind

__all__ = ["DispatchAttemptDto", "MetricsPort"]


@dataclass(slots=True, frozen=True)
class DispatchAttemptDto:
    """Immutable snapshot of a single dispatch call.

    Attributes:
        started_at_sec: Monotonic seconds when the call started.
        finished_at_sec: Monotonic seconds when the envelope was built.
        failure: Failure category; None when the call succeeded.
        status_code: HTTP status code when a response arrived; None otherwise.
    """

    started_at_sec: float
    finished_at_sec: float
    failure: FailureKind | None = None
    status_code: int | None = None


class MetricsPort(Protocol):
    """Interface for recording dispatch metrics.

    Implementations must be async-safe and non-blocking.
    The dispatcher calls update() after each call; presentation layers call
    __str__() to render summaries.
    """

    def update(self, attempt: DispatchAttemptDto, /) -> None:
        """Record a finished dispatch call.

        Args:
            attempt: The call to record.
        """
        ...

    def __str__(self) -> str:
        """Return concise textual summary for humans.

        Returns:
            Formatted metrics string.
        """
        ...
