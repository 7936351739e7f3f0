from __future__ import annotations

from pathlib import Path
from typing import Dict, List
from urllib.parse import urlparse

import yaml

from ..models import Category, ContentType, Marketplace, SiteConfig
from ..models.site import GERMAN_MONTHS, WIDGET_TOKENS


class ConfigError(Exception):
    """Raised when the configuration file is invalid or missing required fields."""


REQUIRED_FIELDS = {"site_name", "base_url", "site_url", "categories", "content_types"}


def _validate_site_dict(data: dict) -> None:
    """Validate the top-level site mapping from YAML.

    Required fields: site_name, base_url, site_url (absolute http/https),
    categories (non-empty mapping), content_types (non-empty list).
    Optional fields:
      - month_names: list of exactly 12 strings
      - widgets: mapping of category slug -> widget token
      - marketplace: mapping with ``domain`` and optional ``tag``
    """
    missing = REQUIRED_FIELDS - set(data)
    if missing:
        raise ConfigError(f"Missing required fields: {sorted(missing)}")

    site_url = str(data["site_url"]).strip()
    parsed = urlparse(site_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"Invalid site_url '{site_url}'. Must be absolute http(s) URL.")

    categories = data["categories"]
    if not isinstance(categories, dict) or not categories:
        raise ConfigError("'categories' must be a non-empty mapping of slug -> {name, description}")
    for slug, cat in categories.items():
        if not isinstance(cat, dict) or not cat.get("name"):
            raise ConfigError(f"Category '{slug}' must be a mapping with at least a 'name'")

    content_types = data["content_types"]
    if not isinstance(content_types, list) or not content_types:
        raise ConfigError("'content_types' must be a non-empty list")
    for entry in content_types:
        if not isinstance(entry, dict):
            raise ConfigError(f"Each content type must be a mapping, got: {type(entry)}")
        missing_ct = {"type", "category", "prompt"} - set(entry)
        if missing_ct:
            raise ConfigError(f"Content type is missing {sorted(missing_ct)}: {entry}")
        if entry["category"] not in categories:
            raise ConfigError(
                f"Content type '{entry['type']}' references unknown category '{entry['category']}'"
            )

    # month_names
    if data.get("month_names") is not None:
        months = data["month_names"]
        if not isinstance(months, list) or len(months) != 12:
            raise ConfigError("'month_names' must be a list of exactly 12 names if provided")

    # widgets
    if data.get("widgets") is not None:
        widgets = data["widgets"]
        if not isinstance(widgets, dict):
            raise ConfigError("'widgets' must be a mapping of category slug -> widget token")
        for slug, token in widgets.items():
            if slug not in categories:
                raise ConfigError(f"Widget configured for unknown category '{slug}'")
            if token not in WIDGET_TOKENS:
                raise ConfigError(f"Unknown widget token '{token}'. Allowed: {list(WIDGET_TOKENS)}")

    # marketplace
    if data.get("marketplace") is not None:
        market = data["marketplace"]
        if not isinstance(market, dict) or not market.get("domain"):
            raise ConfigError("'marketplace' must be a mapping with a 'domain'")


def _coerce_site(data: dict) -> SiteConfig:
    categories: Dict[str, Category] = {
        str(slug): Category(
            slug=str(slug),
            name=str(cat["name"]).strip(),
            description=str(cat.get("description") or "").strip(),
        )
        for slug, cat in data["categories"].items()
    }
    content_types: List[ContentType] = [
        ContentType(
            type=str(ct["type"]).strip(),
            category=str(ct["category"]).strip(),
            prompt=str(ct["prompt"]).strip(),
        )
        for ct in data["content_types"]
    ]
    market_raw = data.get("marketplace")
    marketplace = (
        Marketplace(domain=str(market_raw["domain"]).strip().lower(), tag=str(market_raw.get("tag") or "").strip())
        if market_raw
        else None
    )
    return SiteConfig(
        site_name=str(data["site_name"]).strip(),
        base_url=str(data["base_url"]).rstrip("/"),
        site_url=str(data["site_url"]).strip().rstrip("/"),
        categories=categories,
        content_types=content_types,
        language=str(data.get("language") or "de"),
        author=str(data.get("author") or "").strip(),
        month_names=[str(m) for m in (data.get("month_names") or GERMAN_MONTHS)],
        widgets={str(k): str(v) for k, v in (data.get("widgets") or {}).items()},
        marketplace=marketplace,
    )


def load_site_config(path: Path | str) -> SiteConfig:
    """Load ``site.yaml`` into a typed :class:`SiteConfig`.

    YAML structure:
      - site_name, base_url (path prefix, may be empty), site_url (absolute)
      - categories: mapping slug -> {name, description}
      - content_types: list of {type, category, prompt}
      - widgets: mapping category slug -> '{{BEAUFORT_WIDGET}}' | '{{CALCULATOR_WIDGET}}' (optional)
      - marketplace: {domain, tag} (optional; disables product injection when absent)
      - month_names, language, author (optional)

    Unknown top-level keys are ignored for forward compatibility.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigError("Site configuration must be a mapping at the top level")

    _validate_site_dict(data)
    return _coerce_site(data)
