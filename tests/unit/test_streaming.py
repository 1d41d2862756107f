"""Unit tests for the SSE streaming responder."""

from __future__ import annotations

import asyncio
import json
import logging
from unittest.mock import patch

import pytest

from regionping.config.regions import StaticTargetProvider
from regionping.middleware.error_handler import StreamingUnsupportedError
from regionping.models.measurement import Measurement, ProbeAttempt
from regionping.models.records import PingRecord
from regionping.models.target import Target
from regionping.services.fan_out import FanOutCoordinator
from regionping.services.region_prober import RegionProber
from regionping.services.streaming import (
    StreamingResponder,
    encode_event,
    ensure_streaming_supported,
)


class RegionProbe:
    """Region probe with a fixed duration per code and optional hang."""

    def __init__(self, durations: dict[str, float], hang: set[str] | None = None) -> None:
        self._durations = durations
        self._hang = hang or set()
        self.calls: list[str] = []
        self.cancelled: list[str] = []

    async def probe(self, target: str) -> ProbeAttempt:
        self.calls.append(target)
        if target in self._hang:
            try:
                await asyncio.sleep(30)
            except asyncio.CancelledError:
                self.cancelled.append(target)
                raise
        return ProbeAttempt.success(self._durations.get(target, 1.0))


class ClientProbe:
    """Client probe returning a fixed outcome and recording addresses."""

    def __init__(self, outcome: float | str | BaseException) -> None:
        self._outcome = outcome
        self.addresses: list[str] = []

    async def probe(self, target: str) -> ProbeAttempt:
        self.addresses.append(target)
        if isinstance(self._outcome, BaseException):
            raise self._outcome
        if isinstance(self._outcome, str):
            return ProbeAttempt.failure(self._outcome)
        return ProbeAttempt.success(self._outcome)


def _responder(
    targets: list[Target],
    region_probe: RegionProbe,
    client_probe: ClientProbe,
    client_timeout: float = 0.5,
) -> StreamingResponder:
    prober = RegionProber(region_probe, attempts=3, pause_seconds=0)
    return StreamingResponder(
        target_provider=StaticTargetProvider(targets),
        coordinator=FanOutCoordinator(prober),
        client_probe=client_probe,
        client_ping_timeout_seconds=client_timeout,
    )


def _payload(frame: str) -> dict:
    assert frame.startswith("data: ")
    assert frame.endswith("\n\n")
    return json.loads(frame[len("data: "):].strip())


# ---------------------------------------------------------------------------
# Capability check
# ---------------------------------------------------------------------------


class TestEnsureStreamingSupported:
    def test_http11_allowed(self) -> None:
        ensure_streaming_supported({"type": "http", "http_version": "1.1"})

    def test_http2_allowed(self) -> None:
        ensure_streaming_supported({"type": "http", "http_version": "2"})

    def test_http10_rejected(self) -> None:
        with pytest.raises(StreamingUnsupportedError) as exc_info:
            ensure_streaming_supported({"type": "http", "http_version": "1.0"})
        assert exc_info.value.status_code == 500

    def test_non_http_scope_rejected(self) -> None:
        with pytest.raises(StreamingUnsupportedError):
            ensure_streaming_supported({"type": "websocket"})


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


class TestEncodeEvent:
    def test_success_frame(self, us_east: Target) -> None:
        frame = encode_event(Measurement(target=us_east, latency_ms=42.5), client_ping=7.0)

        assert frame is not None
        assert _payload(frame) == {
            "region": "US East",
            "code": "us-east-1",
            "latency": 42.5,
            "clientPing": 7.0,
        }

    def test_failure_frame_has_error_and_zero_latency(self, us_east: Target) -> None:
        measurement = Measurement(target=us_east, latency_ms=None, error="dns failure")

        payload = _payload(encode_event(measurement, client_ping=0.0))

        assert payload["latency"] == 0
        assert payload["error"] == "dns failure"

    def test_encoding_failure_returns_none(self, us_east: Target) -> None:
        with patch.object(PingRecord, "to_json", side_effect=ValueError("bad float")):
            assert encode_event(Measurement(target=us_east, latency_ms=1.0), 0.0) is None


# ---------------------------------------------------------------------------
# Client reference ping
# ---------------------------------------------------------------------------


class TestClientReferencePing:
    @pytest.mark.asyncio
    async def test_successful_ping(self, two_targets: list[Target]) -> None:
        client_probe = ClientProbe(12.0)
        responder = _responder(two_targets, RegionProbe({}), client_probe)

        assert await responder.client_reference_ping("203.0.113.7") == 12.0
        assert client_probe.addresses == ["203.0.113.7"]

    @pytest.mark.asyncio
    async def test_failed_ping_is_zero(self, two_targets: list[Target]) -> None:
        responder = _responder(two_targets, RegionProbe({}), ClientProbe("no reply"))

        assert await responder.client_reference_ping("203.0.113.7") == 0.0

    @pytest.mark.asyncio
    async def test_raising_probe_is_zero(self, two_targets: list[Target]) -> None:
        responder = _responder(two_targets, RegionProbe({}), ClientProbe(PermissionError("raw socket")))

        assert await responder.client_reference_ping("203.0.113.7") == 0.0

    @pytest.mark.asyncio
    async def test_missing_address_passes_empty_string(self, two_targets: list[Target]) -> None:
        client_probe = ClientProbe("invalid address")
        responder = _responder(two_targets, RegionProbe({}), client_probe)

        assert await responder.client_reference_ping(None) == 0.0
        assert client_probe.addresses == [""]

    @pytest.mark.asyncio
    async def test_hanging_probe_is_bounded(self, two_targets: list[Target]) -> None:
        class Hanging:
            async def probe(self, target: str) -> ProbeAttempt:
                await asyncio.sleep(30)
                return ProbeAttempt.success(1.0)

        responder = _responder(two_targets, RegionProbe({}), Hanging(), client_timeout=0.01)

        result = await asyncio.wait_for(responder.client_reference_ping("203.0.113.7"), timeout=2.0)
        assert result == 0.0


# ---------------------------------------------------------------------------
# Event stream
# ---------------------------------------------------------------------------


class TestStream:
    @pytest.mark.asyncio
    async def test_two_regions_two_events(self, two_targets: list[Target]) -> None:
        responder = _responder(
            two_targets,
            RegionProbe({"us-east-1": 20.0, "eu-west-1": 90.0}),
            ClientProbe(5.0),
        )

        events = await responder.open_stream("203.0.113.7")
        frames = [frame async for frame in events]

        assert len(frames) == 2
        payloads = [_payload(frame) for frame in frames]
        assert {p["code"] for p in payloads} == {"us-east-1", "eu-west-1"}
        assert {p["clientPing"] for p in payloads} == {5.0}
        for payload in payloads:
            assert set(payload) == {"region", "code", "latency", "clientPing"}

    @pytest.mark.asyncio
    async def test_empty_client_address_still_streams(self, two_targets: list[Target]) -> None:
        responder = _responder(
            two_targets,
            RegionProbe({"us-east-1": 20.0, "eu-west-1": 90.0}),
            ClientProbe("invalid address: ''"),
        )

        events = await responder.open_stream("")
        payloads = [_payload(frame) async for frame in events]

        assert len(payloads) == 2
        assert all(p["clientPing"] == 0 for p in payloads)

    @pytest.mark.asyncio
    async def test_client_ping_measured_once(self, two_targets: list[Target]) -> None:
        client_probe = ClientProbe(3.0)
        responder = _responder(two_targets, RegionProbe({}), client_probe)

        events = await responder.open_stream("198.51.100.1")
        [frame async for frame in events]

        assert client_probe.addresses == ["198.51.100.1"]

    @pytest.mark.asyncio
    async def test_probing_starts_only_when_stream_is_read(self, two_targets: list[Target]) -> None:
        region_probe = RegionProbe({})
        responder = _responder(two_targets, region_probe, ClientProbe(1.0))

        events = await responder.open_stream("198.51.100.1")
        assert region_probe.calls == []

        [frame async for frame in events]
        assert sorted(set(region_probe.calls)) == ["eu-west-1", "us-east-1"]

    @pytest.mark.asyncio
    async def test_unencodable_record_is_dropped(self, two_targets: list[Target]) -> None:
        responder = _responder(
            two_targets,
            RegionProbe({"us-east-1": 20.0, "eu-west-1": 90.0}),
            ClientProbe(1.0),
        )
        original = PingRecord.to_json

        def flaky_to_json(record: PingRecord) -> str:
            if record.code == "us-east-1":
                raise ValueError("cannot encode")
            return original(record)

        with patch.object(PingRecord, "to_json", flaky_to_json):
            events = await responder.open_stream("198.51.100.1")
            payloads = [_payload(frame) async for frame in events]

        assert [p["code"] for p in payloads] == ["eu-west-1"]

    @pytest.mark.asyncio
    async def test_disconnect_cancels_remaining_probers(self) -> None:
        targets = [
            Target(name="Fast", code="fast-1"),
            Target(name="Stuck A", code="stuck-1"),
            Target(name="Stuck B", code="stuck-2"),
        ]
        region_probe = RegionProbe({"fast-1": 4.0}, hang={"stuck-1", "stuck-2"})
        responder = _responder(targets, region_probe, ClientProbe(1.0))

        events = await responder.open_stream("198.51.100.1")
        first = await events.__anext__()
        assert _payload(first)["code"] == "fast-1"

        # Client goes away: the server stops iterating and closes the body
        await asyncio.wait_for(events.aclose(), timeout=1.0)

        assert sorted(region_probe.cancelled) == ["stuck-1", "stuck-2"]
        pending = [
            task for task in asyncio.all_tasks()
            if task.get_name().startswith("region-prober-") and not task.done()
        ]
        assert pending == []

    @pytest.mark.asyncio
    async def test_request_id_on_every_cycle_log_entry(
        self, two_targets: list[Target], caplog: pytest.LogCaptureFixture
    ) -> None:
        responder = _responder(
            two_targets,
            RegionProbe({"us-east-1": 20.0, "eu-west-1": 90.0}),
            ClientProbe(5.0),
        )

        with caplog.at_level(logging.DEBUG, logger="regionping"):
            events = await responder.open_stream("203.0.113.7", request_id="req-7")
            [frame async for frame in events]

        records = [r for r in caplog.records if r.name.startswith("regionping")]
        assert {r.name for r in records} >= {
            "regionping.services.streaming",
            "regionping.services.fan_out",
            "regionping.services.region_prober",
        }
        assert all(getattr(r, "request_id", None) == "req-7" for r in records)

    @pytest.mark.asyncio
    async def test_disconnect_logs_running_probers(self, caplog: pytest.LogCaptureFixture) -> None:
        targets = [Target(name="Fast", code="fast-1"), Target(name="Stuck", code="stuck-1")]
        responder = _responder(targets, RegionProbe({"fast-1": 4.0}, hang={"stuck-1"}), ClientProbe(1.0))

        with caplog.at_level(logging.INFO, logger="regionping"):
            events = await responder.open_stream("198.51.100.1", request_id="req-8")
            await events.__anext__()
            await asyncio.wait_for(events.aclose(), timeout=1.0)

        messages = [r.getMessage() for r in caplog.records]
        assert "Client went away after 1 of 2 results, 1 probers still running" in messages
