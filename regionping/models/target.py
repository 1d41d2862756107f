"""Target region model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Target(BaseModel):
    """One region to probe, identified by display name and short code."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1, pattern=r"^[a-z0-9-]+$")
