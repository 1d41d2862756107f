"""HTTP HEAD round-trip probe against per-region endpoints.

Any HTTP response, whatever its status code, counts as a completed round
trip. Only transport-level failures (connect errors, DNS failures,
timeouts) are reported as failed attempts.
"""

from __future__ import annotations

import logging
import time

import httpx

from regionping.models.measurement import ProbeAttempt

logger = logging.getLogger(__name__)


class HttpHeadProbe:
    """Times a single ``HEAD`` request to the endpoint of a region code.

    Parameters
    ----------
    client:
        Shared ``httpx.AsyncClient``. Its lifecycle is owned by the caller.
    endpoint_template:
        URL template containing ``{code}``, e.g.
        ``"https://s3.{code}.amazonaws.com/"``.
    timeout_seconds:
        Per-request timeout.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        endpoint_template: str = "https://s3.{code}.amazonaws.com/",
        timeout_seconds: float = 10.0,
    ) -> None:
        self._client = client
        self._endpoint_template = endpoint_template
        self._timeout = timeout_seconds

    def endpoint_for(self, code: str) -> str:
        return self._endpoint_template.format(code=code)

    async def probe(self, target: str) -> ProbeAttempt:
        url = self.endpoint_for(target)
        # Fresh token per call so no cache between us and the region answers
        params = {"ping": str(time.time_ns())}

        start = time.perf_counter()
        try:
            response = await self._client.head(url, params=params, timeout=self._timeout)
        except httpx.TransportError as exc:
            reason = str(exc) or exc.__class__.__name__
            logger.debug("HEAD %s failed: %s", url, reason)
            return ProbeAttempt.failure(reason)
        elapsed_ms = (time.perf_counter() - start) * 1000.0

        logger.debug(
            "HEAD %s -> %d in %.2fms", url, response.status_code, elapsed_ms
        )
        return ProbeAttempt.success(round(elapsed_ms, 3))
