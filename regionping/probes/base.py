"""Round-trip probe contract shared by the region and client probes."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from regionping.models.measurement import ProbeAttempt


@runtime_checkable
class RoundTripProbe(Protocol):
    """Attempt one network round trip to *target* and report the outcome.

    Implementations return a failed ``ProbeAttempt`` for network-level
    failures instead of raising.
    """

    async def probe(self, target: str) -> ProbeAttempt: ...
