from __future__ import annotations

import json
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

import pytest

from postgen.models import ArticleRecord, Category, ContentType, Marketplace, SiteConfig
from postgen.models.site import BEAUFORT_WIDGET, CALCULATOR_WIDGET
from postgen.processors.ai import ImageGenerator, SearchClient, SearchResponse, TextGenerator
from postgen.storage import ContentStore
from postgen.utils.pipeline_config import PipelineConfig

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

Reply = Union[str, Exception, Callable[[str], str]]


class ScriptedText(TextGenerator):
    """Returns queued replies in order and records every prompt."""

    name = "scripted-text"

    def __init__(self, replies: Sequence[Reply] = ()) -> None:
        self.replies: List[Reply] = list(replies)
        self.calls: List[dict] = []

    def generate(self, prompt: str, *, max_tokens: int = 4096, fast: bool = False) -> str:
        self.calls.append({"prompt": prompt, "max_tokens": max_tokens, "fast": fast})
        if not self.replies:
            raise AssertionError(f"Unexpected text call: {prompt[:80]}")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(prompt)
        return reply


class ScriptedImages(ImageGenerator):
    def __init__(self, name: str, replies: Sequence[Union[bytes, None, Exception]]) -> None:
        self.name = name
        self.replies = list(replies)
        self.prompts: List[str] = []

    def generate(self, prompt: str) -> Optional[bytes]:
        self.prompts.append(prompt)
        reply = self.replies.pop(0) if self.replies else None
        if isinstance(reply, Exception):
            raise reply
        return reply


class ScriptedSearch(SearchClient):
    name = "scripted-search"

    def __init__(self, replies: Sequence[Union[SearchResponse, Exception]] = ()) -> None:
        self.replies = list(replies)
        self.queries: List[str] = []

    def search(self, query: str, *, max_tokens: int = 2048) -> SearchResponse:
        self.queries.append(query)
        if not self.replies:
            raise AssertionError(f"Unexpected search call: {query[:80]}")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def topic_json(title: str = "Ankern lernen", **extra) -> str:
    data = {
        "topic": extra.pop("topic", "Ankern in der Ostsee"),
        "title": title,
        "meta_description": "M" * 152,
        "keywords": ["ankern", "segeln"],
        "image_prompt": "sailboat at anchor in a calm bay",
    }
    data.update(extra)
    return "Hier ist das Thema:\n" + json.dumps(data, ensure_ascii=False)


def draft_json(content: Optional[str] = None, faq=None, image_alt: str = "Boot vor Anker") -> str:
    if content is None:
        content = "<p>Intro</p><h2>Vorbereitung</h2><p>Erster Absatz.</p><h2>Manoever</h2><p>Zweiter.</p>"
    if faq is None:
        faq = [{"question": "Wie tief ankern?", "answer": "Mindestens drei Meter."}]
    return json.dumps({"content": content, "faq": faq, "image_alt": image_alt}, ensure_ascii=False)


def verdict_json(score: int, issues=None, suggestions=None) -> str:
    return json.dumps({"score": score, "issues": issues or [], "suggestions": suggestions or []})


def make_record(slug: str, category: str = "grundlagen", title: Optional[str] = None) -> ArticleRecord:
    return ArticleRecord(
        slug=slug,
        title=title or slug.replace("-", " ").title(),
        meta_description=f"Beschreibung {slug}",
        category=category,
        keywords=("segeln",),
        date_iso="2026-05-01",
        date_display="1. Mai 2026",
        read_time=5,
        image_alt=f"Bild {slug}",
        content_type="ratgeber",
    )


@pytest.fixture(autouse=True)
def _no_retry_sleep(monkeypatch):
    monkeypatch.setenv("AI_RETRIES", "0")


@pytest.fixture
def site() -> SiteConfig:
    categories = {
        "grundlagen": Category("grundlagen", "Grundlagen", "Alles fuer den Einstieg"),
        "reviere": Category("reviere", "Reviere", "Segelreviere im Portrait"),
        "wissen": Category("wissen", "Wissen", "Wetter, Navigation, Seemannschaft"),
    }
    return SiteConfig(
        site_name="Segeln Lernen",
        base_url="/segeln-lernen",
        site_url="https://example.github.io/segeln-lernen",
        categories=categories,
        content_types=[
            ContentType("ratgeber", "grundlagen", "Schreibe einen Ratgeber."),
            ContentType("revier-guide", "reviere", "Stelle ein Revier vor."),
            ContentType("wissen", "wissen", "Erklaere ein Wissensthema."),
        ],
        author="Kapitaen Hannes, ein erfahrener Segellehrer",
        widgets={"wissen": BEAUFORT_WIDGET, "reviere": CALCULATOR_WIDGET},
        marketplace=Marketplace(domain="amazon.de", tag="segeln-21"),
    )


@pytest.fixture
def config(tmp_path) -> PipelineConfig:
    return PipelineConfig(
        articles_per_run=2,
        cooldown_seconds=0.0,
        quality_threshold=6,
        quality_max_attempts=3,
        probe_timeout=1.0,
        factcheck_max_sources=5,
        factcheck_max_chars=3000,
        data_dir=tmp_path / "data",
        docs_dir=tmp_path / "docs",
        templates_dir=TEMPLATES_DIR,
        notify_email_csv="",
        publish_enabled=False,
    )


@pytest.fixture
def store(config) -> ContentStore:
    return ContentStore(config.data_dir)
