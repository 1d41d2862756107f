"""Configuration module: settings and the region list."""

from regionping.config.regions import DEFAULT_TARGETS, StaticTargetProvider, load_targets
from regionping.config.settings import RegionPingSettings

__all__ = [
    "DEFAULT_TARGETS",
    "RegionPingSettings",
    "StaticTargetProvider",
    "load_targets",
]
