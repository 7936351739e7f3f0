from __future__ import annotations

import html
import re
from typing import Callable, Dict, Iterable, List

from bs4 import BeautifulSoup

from ..fetchers.http import is_absolute_http_url
from ..utils.logging import get_logger

logger = get_logger("postgen.output.links")

Probe = Callable[[str], bool]


def external_links(markup: str) -> List[str]:
    """Absolute http(s) ``href`` targets of all anchors, deduplicated, in document order."""
    soup = BeautifulSoup(markup or "", "html.parser")
    seen: Dict[str, None] = {}
    for a in soup.find_all("a", href=True):
        href = a["href"].strip()
        if is_absolute_http_url(href):
            seen.setdefault(href, None)
    return list(seen)


_ANCHOR_RE = re.compile(
    r"<a\b[^>]*?\shref\s*=\s*([\"'])(.*?)\1[^>]*>(.*?)</a\s*>",
    re.IGNORECASE | re.DOTALL,
)


def unwrap_links(markup: str, urls: Iterable[str]) -> str:
    """Replace every anchor pointing at one of ``urls`` with its inner markup.

    The href is entity-decoded and stripped the way BeautifulSoup reads it,
    then compared case-sensitively. Everything else is left byte-identical.
    """
    dead = set(urls)

    def _replace(match: re.Match[str]) -> str:
        href = html.unescape(match.group(2)).strip()
        return match.group(3) if href in dead else match.group(0)

    return _ANCHOR_RE.sub(_replace, markup)


class LinkValidator:
    """Strip anchors whose absolute target does not answer a reachability probe.

    Each distinct URL is probed once per call. Anchor text is kept. Output
    without dead links is returned as-is, so a second pass is a no-op.
    """

    def __init__(self, probe: Probe) -> None:
        self.probe = probe

    def validate(self, markup: str) -> str:
        urls = external_links(markup)
        if not urls:
            return markup
        dead = [url for url in urls if not self.probe(url)]
        logger.info("Checked %d external links, %d unreachable", len(urls), len(dead))
        if not dead:
            return markup
        for url in dead:
            logger.info("Removing dead link: %s", url)
        return unwrap_links(markup, dead)
