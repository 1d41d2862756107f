"""ICMP echo probe used for the client reference ping.

Sends one echo request over an unprivileged datagram socket via icmplib.
Invalid addresses, socket errors and lost replies all come back as failed
attempts; callers treat the client figure as best-effort.
"""

from __future__ import annotations

import ipaddress
import logging

from icmplib import ICMPLibError, async_ping

from regionping.models.measurement import ProbeAttempt

logger = logging.getLogger(__name__)


def parse_address(raw: str | None) -> str | None:
    """Return the normalised IP address in *raw*, or None if it is not one."""
    if not raw:
        return None
    try:
        return str(ipaddress.ip_address(raw.strip()))
    except ValueError:
        return None


class IcmpEchoProbe:
    """Single ICMP echo round trip to a caller-supplied IP address.

    Parameters
    ----------
    timeout_seconds:
        How long to wait for the echo reply.
    privileged:
        Use raw sockets instead of unprivileged datagram sockets.
    """

    def __init__(self, timeout_seconds: float = 2.0, privileged: bool = False) -> None:
        self._timeout = timeout_seconds
        self._privileged = privileged

    async def probe(self, target: str) -> ProbeAttempt:
        address = parse_address(target)
        if address is None:
            logger.info("Invalid client address: %r", target)
            return ProbeAttempt.failure(f"invalid address: {target!r}")

        try:
            host = await async_ping(
                address,
                count=1,
                timeout=self._timeout,
                privileged=self._privileged,
            )
        except (ICMPLibError, OSError) as exc:
            logger.warning("ICMP echo to %s failed: %s", address, exc)
            return ProbeAttempt.failure(str(exc) or exc.__class__.__name__)

        if not host.is_alive:
            logger.info("No ICMP echo reply from %s within %.1fs", address, self._timeout)
            return ProbeAttempt.failure(f"no reply within {self._timeout}s")

        return ProbeAttempt.success(host.min_rtt)
