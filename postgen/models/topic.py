from __future__ import annotations

from dataclasses import dataclass
from typing import List


@dataclass(slots=True)
class Category:
    slug: str
    name: str
    description: str = ""


@dataclass(slots=True)
class ContentType:
    """Kind of article to write: type label, target category, writing brief."""

    type: str
    category: str
    prompt: str


@dataclass(slots=True)
class TopicRecord:
    topic: str
    title: str
    meta_description: str
    keywords: List[str]
    category: str
    slug: str
    image_prompt: str
    content_type: ContentType
