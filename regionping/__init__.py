"""regionping: stream cloud-region latencies to the browser over Server-Sent Events."""

__version__ = "1.0.0"
