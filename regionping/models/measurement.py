"""Probe attempt and measurement models.

A ``ProbeAttempt`` is the outcome of one timed round trip and lives only
inside a prober's retry loop. A ``Measurement`` is the reduced best-of-N
result for one target and is created exactly once per target per request.
"""

from __future__ import annotations

from dataclasses import dataclass

from regionping.models.target import Target


@dataclass(frozen=True)
class ProbeAttempt:
    """Outcome of a single round trip: a duration or a failure cause."""

    duration_ms: float | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.duration_ms is not None

    @classmethod
    def success(cls, duration_ms: float) -> ProbeAttempt:
        if duration_ms < 0:
            raise ValueError("duration_ms must be non-negative")
        return cls(duration_ms=duration_ms)

    @classmethod
    def failure(cls, error: str) -> ProbeAttempt:
        return cls(error=error or "unknown error")


@dataclass(frozen=True)
class Measurement:
    """Best-of-N latency for one target.

    ``latency_ms`` is the minimum over successful attempts and is ``None``
    when every attempt failed, in which case ``error`` carries the cause
    of the last failed attempt.
    """

    target: Target
    latency_ms: float | None
    error: str | None = None
    attempts: int = 0
    successes: int = 0

    @property
    def ok(self) -> bool:
        return self.latency_ms is not None
