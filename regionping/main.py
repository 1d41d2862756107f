"""FastAPI application entry point with lifespan management.

Startup: configure logging, load the region list, open the shared HTTP
client, wire probes -> region prober -> fan-out coordinator -> streaming
responder, mount routers.
Shutdown: close the shared HTTP client.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import FastAPI

from regionping.config.regions import StaticTargetProvider, load_targets
from regionping.config.settings import RegionPingSettings
from regionping.logging_config import configure_logging
from regionping.middleware.error_handler import register_error_handlers
from regionping.middleware.request_id import RequestIdMiddleware
from regionping.probes.http_probe import HttpHeadProbe
from regionping.probes.icmp_probe import IcmpEchoProbe
from regionping.routers.health import create_health_router
from regionping.routers.ping import create_ping_router
from regionping.routers.regions import create_regions_router
from regionping.services.fan_out import FanOutCoordinator
from regionping.services.region_prober import RegionProber
from regionping.services.streaming import StreamingResponder

logger = logging.getLogger(__name__)


def build_lifespan(settings: RegionPingSettings):
    """Create the lifespan context bound to *settings*."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level)
        logger.info("Starting regionping service on port %d", settings.port)

        target_provider = StaticTargetProvider(load_targets(settings.regions_path))
        logger.info("Loaded %d regions", len(target_provider))

        http_client = httpx.AsyncClient(
            timeout=settings.region_timeout_seconds,
            follow_redirects=False,
        )

        region_probe = HttpHeadProbe(
            http_client,
            endpoint_template=settings.region_endpoint_template,
            timeout_seconds=settings.region_timeout_seconds,
        )
        prober = RegionProber(
            region_probe,
            attempts=settings.attempts_per_region,
            pause_seconds=settings.attempt_pause_ms / 1000.0,
            attempt_timeout_seconds=settings.region_timeout_seconds,
        )
        responder = StreamingResponder(
            target_provider=target_provider,
            coordinator=FanOutCoordinator(prober),
            client_probe=IcmpEchoProbe(timeout_seconds=settings.client_ping_timeout_seconds),
            client_ping_timeout_seconds=settings.client_ping_timeout_seconds,
        )

        app.include_router(create_health_router(target_provider=target_provider))
        app.include_router(create_regions_router(target_provider=target_provider))
        app.include_router(
            create_ping_router(
                responder=responder,
                cors_allow_origin=settings.cors_allow_origin,
            )
        )

        logger.info("regionping service started successfully")

        yield

        logger.info("Shutting down regionping service")
        await http_client.aclose()
        logger.info("regionping service shut down")

    return lifespan


def create_app(settings: RegionPingSettings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Settings are loaded eagerly so that an invalid environment (for example
    a non-numeric ``PORT``) fails at startup instead of on first request.
    """
    settings = settings or RegionPingSettings()

    app = FastAPI(
        title="regionping",
        version="1.0.0",
        lifespan=build_lifespan(settings),
    )

    register_error_handlers(app)
    app.add_middleware(RequestIdMiddleware)

    return app


def run() -> None:
    """Serve the application with uvicorn on the configured host and port."""
    settings = RegionPingSettings()
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        # uvicorn loggers propagate to the JSON root handler
        log_config=None,
    )


app = create_app()


if __name__ == "__main__":
    run()
