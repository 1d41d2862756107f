"""Ping stream endpoint.

- GET /ping: run the full ping cycle and stream one SSE event per region
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from regionping.middleware.request_id import get_request_id
from regionping.services.streaming import (
    SSE_HEADERS,
    StreamingResponder,
    ensure_streaming_supported,
)

logger = logging.getLogger(__name__)


def resolve_client_address(request: Request) -> str | None:
    """Client address from ``X-Forwarded-For`` (first hop) or the peer address."""
    forwarded = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    if request.client is not None:
        return request.client.host
    return None


def create_ping_router(
    *,
    responder: StreamingResponder,
    cors_allow_origin: str = "*",
) -> APIRouter:
    """Factory that creates the ping router with injected dependencies.

    Parameters
    ----------
    responder:
        Drives the ping cycle and produces SSE frames.
    cors_allow_origin:
        Value of the ``Access-Control-Allow-Origin`` response header.
    """
    ping_router = APIRouter(tags=["ping"])
    headers = {**SSE_HEADERS, "Access-Control-Allow-Origin": cors_allow_origin}

    @ping_router.get("/ping")
    async def ping(request: Request) -> StreamingResponse:
        """Stream region latencies as Server-Sent Events."""
        ensure_streaming_supported(request.scope)

        request_id = get_request_id(request)
        client_address = resolve_client_address(request)
        logger.info(
            "Starting new ping request",
            extra={"request_id": request_id, "client_address": client_address},
        )

        events = await responder.open_stream(client_address, request_id=request_id)
        return StreamingResponse(events, media_type="text/event-stream", headers=headers)

    return ping_router
