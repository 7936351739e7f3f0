from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .topic import Category, ContentType

GERMAN_MONTHS = [
    "Januar", "Februar", "März", "April", "Mai", "Juni",
    "Juli", "August", "September", "Oktober", "November", "Dezember",
]

BEAUFORT_WIDGET = "{{BEAUFORT_WIDGET}}"
CALCULATOR_WIDGET = "{{CALCULATOR_WIDGET}}"
WIDGET_TOKENS = (BEAUFORT_WIDGET, CALCULATOR_WIDGET)


@dataclass(slots=True)
class Marketplace:
    domain: str
    tag: str = ""


@dataclass(slots=True)
class SiteConfig:
    """Static description of the published site."""

    site_name: str
    base_url: str
    site_url: str
    categories: Dict[str, Category]
    content_types: List[ContentType]
    language: str = "de"
    author: str = ""
    month_names: List[str] = field(default_factory=lambda: list(GERMAN_MONTHS))
    widgets: Dict[str, str] = field(default_factory=dict)
    marketplace: Optional[Marketplace] = None

    def category_name(self, slug: str) -> str:
        cat = self.categories.get(slug)
        return cat.name if cat else slug

    def content_types_for(self, category: str) -> List[ContentType]:
        return [ct for ct in self.content_types if ct.category == category]
