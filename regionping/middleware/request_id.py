"""Request ID middleware.

Generates (or propagates) a UUID request ID for every incoming request,
stores it in ``request.state.request_id``, and adds an ``X-Request-ID``
response header. Log calls made while serving a request pass the ID via
``extra`` so JSON log lines can be correlated per ping cycle.
"""

from __future__ import annotations

import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response


def get_request_id(request: Request) -> str | None:
    """Return the ID assigned by ``RequestIdMiddleware``, if any."""
    return getattr(request.state, "request_id", None)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Starlette middleware that assigns a unique request ID to each request.

    An incoming ``X-Request-ID`` header is reused; otherwise a new UUID4
    is generated. Streaming responses pass through unbuffered, the header
    is set before the first event is sent.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id

        response: Response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response
