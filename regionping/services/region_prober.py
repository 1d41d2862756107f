"""Best-of-N latency measurement for a single region.

Attempts run strictly one after another with a fixed pause in between so
that a prober never congests its own path. Each attempt has its own
timeout. The reduced result keeps the minimum successful duration, or the
cause of the last failure when no attempt succeeded.
"""

from __future__ import annotations

import asyncio
import logging

from regionping.models.measurement import Measurement, ProbeAttempt
from regionping.models.target import Target
from regionping.probes.base import RoundTripProbe

logger = logging.getLogger(__name__)


class RegionProber:
    """Runs the retry loop for one target at a time.

    Parameters
    ----------
    probe:
        Round-trip primitive called with the target's region code.
    attempts:
        Number of sequential attempts per target.
    pause_seconds:
        Pause between consecutive attempts.
    attempt_timeout_seconds:
        Upper bound on a single attempt.
    """

    def __init__(
        self,
        probe: RoundTripProbe,
        *,
        attempts: int = 3,
        pause_seconds: float = 0.1,
        attempt_timeout_seconds: float = 10.0,
    ) -> None:
        if attempts < 1:
            raise ValueError("attempts must be at least 1")
        self._probe = probe
        self._attempts = attempts
        self._pause = pause_seconds
        self._attempt_timeout = attempt_timeout_seconds

    @property
    def attempts(self) -> int:
        return self._attempts

    async def measure(self, target: Target, *, request_id: str | None = None) -> Measurement:
        """Probe *target* ``attempts`` times and reduce to one Measurement.

        *request_id* is only attached to log entries.
        """
        best_ms: float | None = None
        last_error: str | None = None
        successes = 0

        for attempt in range(self._attempts):
            if attempt > 0 and self._pause > 0:
                await asyncio.sleep(self._pause)

            result = await self._attempt(target, request_id)
            if result.ok:
                successes += 1
                if best_ms is None or result.duration_ms < best_ms:
                    best_ms = result.duration_ms
            else:
                last_error = result.error
                logger.debug(
                    "Attempt %d/%d for %s failed: %s",
                    attempt + 1,
                    self._attempts,
                    target.code,
                    result.error,
                    extra={"request_id": request_id, "region_code": target.code},
                )

        if best_ms is not None:
            logger.info(
                "Pinged %s: %.2fms",
                target.code,
                best_ms,
                extra={
                    "request_id": request_id,
                    "region_code": target.code,
                    "latency_ms": best_ms,
                    "attempts": self._attempts,
                },
            )
            return Measurement(
                target=target,
                latency_ms=best_ms,
                attempts=self._attempts,
                successes=successes,
            )

        logger.warning(
            "All %d attempts for %s failed: %s",
            self._attempts,
            target.code,
            last_error,
            extra={
                "request_id": request_id,
                "region_code": target.code,
                "error_reason": last_error,
                "attempts": self._attempts,
            },
        )
        return Measurement(
            target=target,
            latency_ms=None,
            error=last_error,
            attempts=self._attempts,
            successes=0,
        )

    async def _attempt(self, target: Target, request_id: str | None) -> ProbeAttempt:
        try:
            return await asyncio.wait_for(
                self._probe.probe(target.code), timeout=self._attempt_timeout
            )
        except asyncio.TimeoutError:
            return ProbeAttempt.failure(f"timed out after {self._attempt_timeout}s")
        except Exception as exc:
            logger.debug(
                "Probe for %s raised",
                target.code,
                exc_info=True,
                extra={"request_id": request_id, "region_code": target.code},
            )
            return ProbeAttempt.failure(str(exc) or exc.__class__.__name__)
