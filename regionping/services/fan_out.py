"""Fan-out / fan-in of region probers over a bounded completion channel.

One asyncio task is launched per target with no concurrency cap. Every
task sends exactly one Measurement onto a shared ``CompletionChannel``
whose capacity equals the number of targets, so a producer never waits on
a slow consumer. A ``CompletionBarrier`` counts finished probers and
closes the channel exactly once when the last one arrives. Consumers read
measurements in arrival order, not target order.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import Generic, TypeVar

from regionping.models.measurement import Measurement
from regionping.models.target import Target
from regionping.services.region_prober import RegionProber

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ChannelClosedError(RuntimeError):
    """Raised when sending on a channel that has already been closed."""


class CompletionChannel(Generic[T]):
    """Bounded single-consumer channel with explicit close.

    Iterating the channel yields items in the order they were sent and
    stops once the channel is closed and drained.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 0:
            raise ValueError("capacity must be non-negative")
        # asyncio.Queue treats maxsize=0 as unbounded
        self._queue: asyncio.Queue[T] = asyncio.Queue(maxsize=max(capacity, 1))
        self._closed = False
        self._ready = asyncio.Event()

    async def send(self, item: T) -> None:
        if self._closed:
            raise ChannelClosedError("send on closed completion channel")
        await self._queue.put(item)
        self._ready.set()

    def close(self) -> None:
        if self._closed:
            raise ChannelClosedError("completion channel already closed")
        self._closed = True
        self._ready.set()

    def __aiter__(self) -> CompletionChannel[T]:
        return self

    async def __anext__(self) -> T:
        while True:
            if not self._queue.empty():
                return self._queue.get_nowait()
            if self._closed:
                raise StopAsyncIteration
            self._ready.clear()
            await self._ready.wait()


class CompletionBarrier:
    """Counts down finished parties and fires ``on_complete`` exactly once.

    Parameters
    ----------
    parties:
        Number of arrivals that release the barrier.
    on_complete:
        Callback run under the barrier lock when the last party arrives.
    """

    def __init__(self, parties: int, on_complete: Callable[[], None]) -> None:
        if parties < 0:
            raise ValueError("parties must be non-negative")
        self._remaining = parties
        self._on_complete = on_complete
        self._lock = asyncio.Lock()
        if parties == 0:
            self._on_complete()

    async def arrive(self) -> None:
        async with self._lock:
            if self._remaining == 0:
                raise RuntimeError("barrier already released")
            self._remaining -= 1
            if self._remaining == 0:
                self._on_complete()


class FanOutRun:
    """One request's worth of concurrently running region probers.

    Iterate the run to receive Measurements as they complete. ``aclose()``
    cancels probers that are still in flight; call it when the consumer
    stops reading early, or use the run as an async context manager.
    """

    def __init__(
        self,
        targets: Sequence[Target],
        prober: RegionProber,
        *,
        request_id: str | None = None,
    ) -> None:
        self._targets = tuple(targets)
        self._prober = prober
        self._request_id = request_id
        self._channel: CompletionChannel[Measurement] = CompletionChannel(len(self._targets))
        self._barrier = CompletionBarrier(len(self._targets), self._on_all_done)
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def total(self) -> int:
        return len(self._targets)

    def in_flight(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    def launch(self) -> None:
        if self._tasks:
            raise RuntimeError("run already launched")
        for target in self._targets:
            self._tasks.append(
                asyncio.create_task(
                    self._probe_target(target), name=f"region-prober-{target.code}"
                )
            )

    async def aclose(self) -> None:
        pending = [task for task in self._tasks if not task.done()]
        if not pending:
            return
        for task in pending:
            task.cancel()
        logger.info(
            "Cancelling %d in-flight region probers",
            len(pending),
            extra={"request_id": self._request_id},
        )
        await asyncio.gather(*pending, return_exceptions=True)

    async def __aenter__(self) -> FanOutRun:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def __aiter__(self) -> FanOutRun:
        return self

    async def __anext__(self) -> Measurement:
        return await self._channel.__anext__()

    async def _probe_target(self, target: Target) -> None:
        logger.debug(
            "Starting ping for region %s",
            target.code,
            extra={"request_id": self._request_id, "region_code": target.code},
        )
        try:
            try:
                measurement = await self._prober.measure(target, request_id=self._request_id)
            except Exception as exc:
                logger.exception(
                    "Region prober for %s crashed",
                    target.code,
                    extra={"request_id": self._request_id, "region_code": target.code},
                )
                measurement = Measurement(
                    target=target,
                    latency_ms=None,
                    error=str(exc) or exc.__class__.__name__,
                    attempts=self._prober.attempts,
                )
            await self._channel.send(measurement)
        finally:
            await self._barrier.arrive()

    def _on_all_done(self) -> None:
        logger.info(
            "All %d pings completed, closing results channel",
            len(self._targets),
            extra={"request_id": self._request_id},
        )
        self._channel.close()


class FanOutCoordinator:
    """Starts a ``FanOutRun`` per request using a shared ``RegionProber``."""

    def __init__(self, prober: RegionProber) -> None:
        self._prober = prober

    def start(self, targets: Sequence[Target], *, request_id: str | None = None) -> FanOutRun:
        """Launch one prober task per target. Must run inside an event loop."""
        run = FanOutRun(targets, self._prober, request_id=request_id)
        run.launch()
        logger.info(
            "Launched %d region probers",
            run.total,
            extra={"request_id": request_id},
        )
        return run
