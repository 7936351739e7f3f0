from __future__ import annotations

import html
import re
from typing import Callable, Optional
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

import requests

from ..models import Marketplace, ProductPick, SiteConfig, TopicRecord
from ..utils.logging import get_logger
from .ai import SearchClient
from .ai.parsing import MalformedResponse, extract_json_object
from .normalize import normalize_plain_text

logger = get_logger("postgen.processors.monetize")

_H2_CLOSE_RE = re.compile(r"</h2\s*>", re.IGNORECASE)
_P_CLOSE_RE = re.compile(r"</p\s*>", re.IGNORECASE)

Probe = Callable[[str], bool]


def build_product_prompt(site: SiteConfig, topic: TopicRecord, market: Marketplace) -> str:
    return (
        f"Empfiehl EIN guenstiges, gut bewertetes Produkt auf {market.domain}, das zu einem Artikel "
        f"ueber \"{topic.topic}\" (Kategorie: {site.category_name(topic.category)}) passt.\n\n"
        "Antworte NUR mit JSON:\n"
        f'{{"name": "Produktname", "url": "https://www.{market.domain}/dp/...", '
        '"price": "ca. 20 EUR", "reason": "Warum es hilft (ein Satz)"}'
    )


def on_marketplace(url: str, domain: str) -> bool:
    host = (urlparse(url).hostname or "").lower()
    domain = domain.lower()
    return host == domain or host.endswith("." + domain)


def with_partner_tag(url: str, tag: str) -> str:
    if not tag:
        return url
    parts = urlparse(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != "tag"]
    query.append(("tag", tag))
    return urlunparse(parts._replace(query=urlencode(query)))


def render_callout(pick: ProductPick) -> str:
    name = html.escape(pick.name)
    price = f'<span class="product-price">{html.escape(pick.price)}</span>' if pick.price else ""
    reason = f"<p>{html.escape(pick.reason)}</p>" if pick.reason else ""
    return (
        '<div class="product-box">'
        '<div class="product-label">Unsere Empfehlung</div>'
        f'<div class="product-name">{name}</div>{price}{reason}'
        f'<a class="product-link" href="{html.escape(pick.url, quote=True)}" '
        'target="_blank" rel="nofollow sponsored noopener">Zum Produkt</a>'
        "</div>"
    )


def insert_callout(content: str, block: str) -> str:
    """Place ``block`` after the paragraph that follows the second ``</h2>``.

    Fewer than two headings, or no paragraph after the second one, appends
    the block at the end.
    """
    closes = list(_H2_CLOSE_RE.finditer(content))
    if len(closes) < 2:
        return content + block
    para = _P_CLOSE_RE.search(content, closes[1].end())
    if not para:
        return content + block
    return content[: para.end()] + block + content[para.end():]


def find_product(
    search: Optional[SearchClient],
    site: SiteConfig,
    topic: TopicRecord,
    *,
    probe: Probe,
) -> Optional[ProductPick]:
    market = site.marketplace
    if search is None or market is None:
        return None
    try:
        response = search.search(build_product_prompt(site, topic, market), max_tokens=512)
        obj = extract_json_object(response.text)
    except (requests.RequestException, MalformedResponse) as exc:
        logger.warning("Product lookup failed: %s", exc)
        return None

    name = normalize_plain_text(str(obj.get("name") or ""))
    url = str(obj.get("url") or "").strip()
    if not name or not url:
        logger.info("Product answer without name or url; skipping")
        return None
    if not on_marketplace(url, market.domain):
        logger.info("Product url %s is not on %s; skipping", url, market.domain)
        return None
    if not probe(url):
        return None
    return ProductPick(
        name=name,
        url=with_partner_tag(url, market.tag),
        price=normalize_plain_text(str(obj.get("price") or "")),
        reason=normalize_plain_text(str(obj.get("reason") or "")),
    )


def inject_product(
    search: Optional[SearchClient],
    site: SiteConfig,
    topic: TopicRecord,
    content: str,
    *,
    probe: Probe,
) -> str:
    """Return ``content`` with a product callout, or unchanged when no valid pick exists."""
    pick = find_product(search, site, topic, probe=probe)
    if pick is None:
        return content
    logger.info("Injecting product '%s'", pick.name)
    return insert_callout(content, render_callout(pick))
