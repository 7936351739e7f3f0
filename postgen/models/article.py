from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass(slots=True)
class FaqEntry:
    question: str
    answer: str


@dataclass(slots=True)
class Draft:
    """Article body owned by a single pipeline run."""

    content: str
    faq: List[FaqEntry] = field(default_factory=list)
    image_alt: str = ""


# Persisted key names; kept stable so existing posts.json files keep loading
_RECORD_KEYS = {
    "slug": "slug",
    "title": "title",
    "meta_description": "metaDescription",
    "category": "category",
    "keywords": "keywords",
    "date_iso": "dateISO",
    "date_display": "dateDisplay",
    "read_time": "readTime",
    "image_alt": "imageAlt",
    "content_type": "contentType",
}


@dataclass(slots=True, frozen=True)
class ArticleRecord:
    slug: str
    title: str
    meta_description: str
    category: str
    keywords: tuple[str, ...]
    date_iso: str
    date_display: str
    read_time: int
    image_alt: str
    content_type: str

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for attr, key in _RECORD_KEYS.items():
            value = getattr(self, attr)
            out[key] = list(value) if attr == "keywords" else value
        return out

    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "ArticleRecord":
        title = str(row.get("title") or "")
        return cls(
            slug=str(row["slug"]),
            title=title,
            meta_description=str(row.get("metaDescription") or ""),
            category=str(row.get("category") or ""),
            keywords=tuple(str(k) for k in (row.get("keywords") or [])),
            date_iso=str(row.get("dateISO") or ""),
            date_display=str(row.get("dateDisplay") or ""),
            read_time=int(row.get("readTime") or 1),
            image_alt=str(row.get("imageAlt") or title),
            content_type=str(row.get("contentType") or ""),
        )
