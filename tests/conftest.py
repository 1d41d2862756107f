"""Shared test fixtures for the regionping test suite."""

from __future__ import annotations

import pytest

from regionping.config.settings import RegionPingSettings
from regionping.models.target import Target


# ---------------------------------------------------------------------------
# Keep the host environment out of RegionPingSettings
# ---------------------------------------------------------------------------

_SETTINGS_ENV = (
    "PORT",
    "REGIONPING_PORT",
    "REGIONPING_HOST",
    "REGIONPING_LOG_LEVEL",
    "REGIONPING_REGIONS_PATH",
    "REGIONPING_REGION_ENDPOINT_TEMPLATE",
    "REGIONPING_ATTEMPTS_PER_REGION",
    "REGIONPING_ATTEMPT_PAUSE_MS",
    "REGIONPING_REGION_TIMEOUT_SECONDS",
    "REGIONPING_CLIENT_PING_TIMEOUT_SECONDS",
    "REGIONPING_CORS_ALLOW_ORIGIN",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove env vars that would leak into RegionPingSettings."""
    for key in _SETTINGS_ENV:
        monkeypatch.delenv(key, raising=False)


# ---------------------------------------------------------------------------
# Settings fixture
# ---------------------------------------------------------------------------

@pytest.fixture
def settings() -> RegionPingSettings:
    """Test settings with no inter-attempt pause and short timeouts."""
    return RegionPingSettings(
        attempt_pause_ms=0,
        region_timeout_seconds=1.0,
        client_ping_timeout_seconds=0.5,
    )


# ---------------------------------------------------------------------------
# Target fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def us_east() -> Target:
    return Target(name="US East", code="us-east-1")


@pytest.fixture
def eu_west() -> Target:
    return Target(name="EU West", code="eu-west-1")


@pytest.fixture
def two_targets(us_east: Target, eu_west: Target) -> list[Target]:
    return [us_east, eu_west]

