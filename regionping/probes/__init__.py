"""Round-trip probe primitives."""

from regionping.probes.base import RoundTripProbe
from regionping.probes.http_probe import HttpHeadProbe
from regionping.probes.icmp_probe import IcmpEchoProbe, parse_address

__all__ = [
    "HttpHeadProbe",
    "IcmpEchoProbe",
    "RoundTripProbe",
    "parse_address",
]
