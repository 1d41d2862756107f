"""Public models for the regionping service."""

from regionping.models.measurement import Measurement, ProbeAttempt
from regionping.models.records import PingRecord
from regionping.models.responses import ApiResponse
from regionping.models.target import Target

__all__ = [
    "ApiResponse",
    "Measurement",
    "PingRecord",
    "ProbeAttempt",
    "Target",
]
