"""Pydantic Settings for the regionping service.

All environment variables use the REGIONPING_ prefix.
Example: REGIONPING_PORT=9000, REGIONPING_LOG_LEVEL=DEBUG

The listening port may also be given through a plain ``PORT`` variable,
which is what most container platforms inject.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RegionPingSettings(BaseSettings):
    """Service configuration validated from environment variables."""

    # Service
    port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        validation_alias=AliasChoices("REGIONPING_PORT", "PORT"),
    )
    host: str = "0.0.0.0"
    log_level: str = "INFO"
    cors_allow_origin: str = "*"

    # Target list
    regions_path: str = str(Path(__file__).with_name("regions.yaml"))
    region_endpoint_template: str = "https://s3.{code}.amazonaws.com/"

    # Region prober
    attempts_per_region: int = Field(default=3, ge=1, le=10)
    attempt_pause_ms: int = Field(default=100, ge=0)
    region_timeout_seconds: float = Field(default=10.0, gt=0)

    # Client reference ping
    client_ping_timeout_seconds: float = Field(default=2.0, gt=0)

    model_config = SettingsConfigDict(env_prefix="REGIONPING_", populate_by_name=True)

    @field_validator("region_endpoint_template")
    @classmethod
    def _template_has_code(cls, value: str) -> str:
        if "{code}" not in value:
            raise ValueError("region_endpoint_template must contain '{code}'")
        return value
