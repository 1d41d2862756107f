"""Wire schema for streamed ping records.

One record is emitted per measured region:
{ region, code, latency, clientPing, error? }

``latency`` is milliseconds and 0 when unset. ``error`` is only present on
total failure for the region; it is omitted from the JSON, never null.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from regionping.models.measurement import Measurement


class PingRecord(BaseModel):
    """JSON record pushed to the client for one region."""

    model_config = ConfigDict(populate_by_name=True)

    region: str
    code: str
    latency: float = 0
    client_ping: float = Field(default=0, alias="clientPing")
    error: str | None = None

    @classmethod
    def from_measurement(cls, measurement: Measurement, client_ping: float) -> PingRecord:
        return cls(
            region=measurement.target.name,
            code=measurement.target.code,
            latency=measurement.latency_ms if measurement.latency_ms is not None else 0,
            client_ping=client_ping,
            error=None if measurement.ok else measurement.error,
        )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)
