"""Region list endpoint.

- GET /regions: the configured targets, in probe order
"""

from __future__ import annotations

from fastapi import APIRouter

from regionping.config.regions import StaticTargetProvider
from regionping.models.responses import ApiResponse


def create_regions_router(*, target_provider: StaticTargetProvider) -> APIRouter:
    """Factory that creates the regions router with injected dependencies."""

    regions_router = APIRouter(tags=["regions"])

    @regions_router.get("/regions")
    async def regions() -> dict:
        targets = target_provider.get_targets()
        return ApiResponse(
            success=True,
            data=[target.model_dump() for target in targets],
            meta={"count": len(targets)},
        ).model_dump()

    return regions_router
