"""HTTP helpers: reachability probing and binary downloads."""

from .http import download_bytes, is_absolute_http_url, is_reachable, probe_status

__all__ = ["download_bytes", "is_absolute_http_url", "is_reachable", "probe_status"]
