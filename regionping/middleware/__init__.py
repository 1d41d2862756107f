"""Middleware package: error hierarchy and request ID."""

from regionping.middleware.error_handler import (
    RegionPingError,
    StreamingUnsupportedError,
    register_error_handlers,
)
from regionping.middleware.request_id import RequestIdMiddleware, get_request_id

__all__ = [
    "RegionPingError",
    "RequestIdMiddleware",
    "StreamingUnsupportedError",
    "get_request_id",
    "register_error_handlers",
]
