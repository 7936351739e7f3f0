from __future__ import annotations

from typing import Dict, Optional
from urllib.parse import urlparse

import requests

from ..utils.logging import get_logger

logger = get_logger("postgen.fetchers.http")

_DEFAULT_HEADERS: Dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/127.0.0.0 Safari/537.36"
    )
}

# Statuses that mean "the resource exists": many sites refuse HEAD or bots
# (403/405) and redirects are not followed.
TOLERATED_STATUSES = frozenset({301, 302, 403, 405})

DEFAULT_PROBE_TIMEOUT = 5.0


def is_absolute_http_url(url: str) -> bool:
    parsed = urlparse(url or "")
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _validated_url(url: str) -> str:
    if not is_absolute_http_url(url):
        raise ValueError(f"Invalid URL for HTTP request: {url}")
    return url


def probe_status(url: str, *, timeout: float = DEFAULT_PROBE_TIMEOUT) -> Optional[int]:
    """HEAD ``url`` without following redirects; ``None`` on any request failure."""
    try:
        resp = requests.head(
            _validated_url(url),
            headers=_DEFAULT_HEADERS,
            timeout=timeout,
            allow_redirects=False,
        )
    except (requests.RequestException, ValueError) as exc:
        logger.debug("Probe failed for %s: %s", url, exc)
        return None
    return resp.status_code


def is_reachable_status(status: Optional[int]) -> bool:
    if status is None:
        return False
    return 200 <= status < 300 or status in TOLERATED_STATUSES


def is_reachable(url: str, *, timeout: float = DEFAULT_PROBE_TIMEOUT) -> bool:
    status = probe_status(url, timeout=timeout)
    ok = is_reachable_status(status)
    if not ok:
        logger.info("Unreachable link (%s): %s", status if status is not None else "no response", url)
    return ok


def download_bytes(url: str, *, timeout: int = 60) -> bytes:
    logger.debug("Downloading %s", url)
    resp = requests.get(_validated_url(url), headers=_DEFAULT_HEADERS, timeout=timeout)
    if resp.status_code >= 400:
        logger.warning("Download failed (%s): %s", resp.status_code, url)
        resp.raise_for_status()
    return resp.content
