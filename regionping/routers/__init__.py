"""HTTP routers for the regionping service."""

from regionping.routers.health import create_health_router
from regionping.routers.ping import create_ping_router, resolve_client_address
from regionping.routers.regions import create_regions_router

__all__ = [
    "create_health_router",
    "create_ping_router",
    "create_regions_router",
    "resolve_client_address",
]
