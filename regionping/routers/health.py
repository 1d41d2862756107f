"""Health endpoint.

- GET /health: service status and number of configured regions
"""

from __future__ import annotations

from fastapi import APIRouter

from regionping.config.regions import StaticTargetProvider
from regionping.models.responses import ApiResponse


def create_health_router(*, target_provider: StaticTargetProvider) -> APIRouter:
    """Factory that creates the health router with injected dependencies."""

    health_router = APIRouter(tags=["health"])

    @health_router.get("/health")
    async def health() -> dict:
        """Service health check."""
        return ApiResponse(
            success=True,
            data={
                "status": "healthy",
                "regions": len(target_provider),
            },
        ).model_dump()

    return health_router
