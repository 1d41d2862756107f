"""Generic API response envelope model.

JSON endpoints wrap their payload in this envelope:
{ success: bool, data: T | None, error: str | None, meta: dict | None }

The ping stream is the exception; its events carry bare ``PingRecord``
objects.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """JSON envelope for non-streaming API responses."""

    success: bool
    data: T | None = None
    error: str | None = None
    meta: dict | None = None
