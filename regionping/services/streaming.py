"""Server-Sent Events responder for the ping cycle.

Measures the client reference ping once, starts the fan-out over the
configured targets and turns each Measurement into one ``data:`` frame as
soon as it arrives. Each yielded frame becomes its own response body chunk,
so the client receives results incrementally.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, MutableMapping
from typing import Any, Protocol

from regionping.middleware.error_handler import StreamingUnsupportedError
from regionping.models.measurement import Measurement
from regionping.models.records import PingRecord
from regionping.models.target import Target
from regionping.probes.base import RoundTripProbe
from regionping.services.fan_out import FanOutCoordinator

logger = logging.getLogger(__name__)


SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


class TargetProvider(Protocol):
    def get_targets(self) -> list[Target]: ...


def ensure_streaming_supported(scope: MutableMapping[str, Any]) -> None:
    """Reject connections that cannot receive an incrementally flushed body.

    HTTP/1.0 has no chunked transfer coding, so an open-ended event stream
    cannot be delivered piecewise to such a client.

    Raises
    ------
    StreamingUnsupportedError
        If the connection is not HTTP/1.1 or later.
    """
    if scope.get("type") != "http":
        raise StreamingUnsupportedError(f"Streaming unsupported for {scope.get('type')!r} connections")
    if scope.get("http_version", "1.1") == "1.0":
        raise StreamingUnsupportedError("Streaming unsupported over HTTP/1.0")


def encode_event(
    measurement: Measurement, client_ping: float, *, request_id: str | None = None
) -> str | None:
    """Encode one Measurement as an SSE frame, or None if it cannot be encoded."""
    try:
        record = PingRecord.from_measurement(measurement, client_ping)
        return f"data: {record.to_json()}\n\n"
    except (TypeError, ValueError) as exc:
        logger.error(
            "Error marshaling result for %s: %s",
            measurement.target.code,
            exc,
            extra={
                "request_id": request_id,
                "region_code": measurement.target.code,
                "error_reason": str(exc),
            },
        )
        return None


class StreamingResponder:
    """Drives one ping cycle per request and yields SSE frames.

    Parameters
    ----------
    target_provider:
        Supplies the ordered target list, read once per request.
    coordinator:
        Starts the concurrent region probers.
    client_probe:
        Round-trip primitive for the client reference ping.
    client_ping_timeout_seconds:
        Upper bound on the client reference ping.
    """

    def __init__(
        self,
        *,
        target_provider: TargetProvider,
        coordinator: FanOutCoordinator,
        client_probe: RoundTripProbe,
        client_ping_timeout_seconds: float = 2.0,
    ) -> None:
        self._target_provider = target_provider
        self._coordinator = coordinator
        self._client_probe = client_probe
        self._client_timeout = client_ping_timeout_seconds

    async def client_reference_ping(
        self, address: str | None, *, request_id: str | None = None
    ) -> float:
        """Single best-effort ping to the client; any failure yields 0."""
        log_extra = {"request_id": request_id, "client_address": address}
        try:
            attempt = await asyncio.wait_for(
                self._client_probe.probe(address or ""),
                # Give the probe's own timeout a chance to fire first
                timeout=self._client_timeout + 0.5,
            )
        except asyncio.TimeoutError:
            logger.info("Client ping to %s timed out", address, extra=log_extra)
            return 0.0
        except Exception:
            logger.warning("Client ping to %s raised", address, exc_info=True, extra=log_extra)
            return 0.0

        client_ping = attempt.duration_ms if attempt.ok else 0.0
        logger.info(
            "Client ping to %s: %.2fms",
            address,
            client_ping,
            extra={**log_extra, "latency_ms": client_ping},
        )
        return client_ping

    async def open_stream(
        self, client_address: str | None, *, request_id: str | None = None
    ) -> AsyncIterator[str]:
        """Measure the client reference ping, then return the event stream."""
        client_ping = await self.client_reference_ping(client_address, request_id=request_id)
        return self.events(client_ping, request_id=request_id)

    async def events(
        self, client_ping: float, *, request_id: str | None = None
    ) -> AsyncIterator[str]:
        """Yield one SSE frame per Measurement in arrival order.

        Closing the generator early (client disconnect) cancels the probers
        that are still running.
        """
        log_extra = {"request_id": request_id}
        targets = self._target_provider.get_targets()
        logger.info("Got %d regions to ping", len(targets), extra=log_extra)

        sent = 0
        exhausted = False
        async with self._coordinator.start(targets, request_id=request_id) as run:
            try:
                async for measurement in run:
                    frame = encode_event(measurement, client_ping, request_id=request_id)
                    if frame is None:
                        continue
                    yield frame
                    sent += 1
                    logger.debug(
                        "Sent result for region %s",
                        measurement.target.code,
                        extra={**log_extra, "region_code": measurement.target.code},
                    )
                exhausted = True
                logger.info("Finished streaming all results", extra=log_extra)
            finally:
                if not exhausted:
                    logger.info(
                        "Client went away after %d of %d results, %d probers still running",
                        sent,
                        run.total,
                        run.in_flight(),
                        extra=log_extra,
                    )
