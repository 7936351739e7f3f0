from __future__ import annotations

import random
from datetime import date
from typing import Iterable, List, Optional, Sequence

from ..models import ContentType, SiteConfig, TopicRecord
from ..utils.logging import get_logger
from .ai import TextGenerator
from .ai.parsing import MalformedResponse, extract_json_object
from .ai.retry import generate_with_retry
from .normalize import normalize_plain_text, slugify, unique_slug

logger = get_logger("postgen.processors.topic")

MAX_TITLE_LENGTH = 60
USED_TOPICS_CONTEXT = 20
RECENT_TITLES_CONTEXT = 10
GENERIC_PROMPT = "Schreibe einen ausfuehrlichen, praxisnahen Artikel zu diesem Thema."


def clip_title(title: str, limit: int = MAX_TITLE_LENGTH) -> str:
    title = normalize_plain_text(title)
    if len(title) <= limit:
        return title
    cut = title[:limit]
    if " " in cut:
        cut = cut[: cut.rfind(" ")]
    return cut.rstrip(" -:,;")


def _bullet_lines(values: Iterable[str], empty: str) -> str:
    lines = [v for v in values if v]
    return "\n".join(lines) if lines else empty


def build_research_prompt(
    site: SiteConfig,
    content_type: ContentType,
    *,
    used_topics: Sequence[str],
    recent_titles: Sequence[str],
    today: date,
) -> str:
    month = site.month_names[today.month - 1]
    category = site.category_name(content_type.category)
    return (
        f"Du bist ein erfahrener Redakteur fuer den Blog \"{site.site_name}\". Es ist {month} {today.year}.\n\n"
        f"Generiere EIN konkretes Thema fuer einen {content_type.type}-Artikel.\n\n"
        "Bereits verwendete Themen (NICHT wiederholen):\n"
        f"{_bullet_lines(used_topics[-USED_TOPICS_CONTEXT:], '(keine)')}\n\n"
        "Bereits existierende Artikel:\n"
        f"{_bullet_lines(recent_titles[-RECENT_TITLES_CONTEXT:], '(keine)')}\n\n"
        f"Content-Typ: {content_type.type}\n"
        f"Kategorie: {category}\n\n"
        "Das Thema soll:\n"
        f"- Saisonpassend fuer {month} sein\n"
        "- Suchmaschinenrelevant und konkret (nicht zu allgemein)\n"
        "- Fuer die Leser des Blogs relevant sein\n\n"
        "Antworte NUR mit einem JSON-Objekt:\n"
        "{\n"
        '  "topic": "Das konkrete Thema",\n'
        f'  "title": "SEO-optimierter Titel (max {MAX_TITLE_LENGTH} Zeichen)",\n'
        '  "meta_description": "Meta-Description (genau 150-155 Zeichen)",\n'
        '  "keywords": ["keyword1", "keyword2", "keyword3"],\n'
        '  "image_prompt": "Beschreibung fuer ein Hero-Bild (auf Englisch, fotorealistisch)"\n'
        "}"
    )


def build_forced_prompt(site: SiteConfig, forced_topic: str) -> str:
    slugs = ", ".join(site.categories)
    return (
        f"Erstelle Metadaten fuer einen Artikel im Blog \"{site.site_name}\" zum Thema: \"{forced_topic}\"\n\n"
        f"Kategorien: {slugs}\n\n"
        "Antworte NUR mit JSON:\n"
        "{\n"
        f'  "topic": "{forced_topic}",\n'
        f'  "title": "SEO-Titel (max {MAX_TITLE_LENGTH} Zeichen)",\n'
        '  "meta_description": "Meta-Description (150-155 Zeichen)",\n'
        '  "keywords": ["kw1", "kw2", "kw3"],\n'
        '  "category": "die passende Kategorie",\n'
        '  "image_prompt": "Hero-Bild Beschreibung (Englisch, fotorealistisch)"\n'
        "}"
    )


def resolve_forced_content_type(site: SiteConfig, category: Optional[str]) -> ContentType:
    """Content type for a forced topic; unknown categories fall back to the first content type."""
    slug = (category or "").strip().lower()
    if slug in site.categories:
        matches = site.content_types_for(slug)
        if matches:
            return matches[0]
        return ContentType(type="artikel", category=slug, prompt=GENERIC_PROMPT)
    logger.warning("Forced topic got unknown category %r; using %s", category, site.content_types[0].category)
    return site.content_types[0]


def research_topic(
    ai: TextGenerator,
    site: SiteConfig,
    *,
    used_topics: Sequence[str] = (),
    recent_titles: Sequence[str] = (),
    taken_slugs: Iterable[str] = (),
    forced_topic: Optional[str] = None,
    today: Optional[date] = None,
    rng: Optional[random.Random] = None,
) -> TopicRecord:
    """Ask the text service for the next article topic.

    Raises :class:`MalformedResponse` when no usable JSON object comes back;
    that ends the current run.
    """
    today = today or date.today()
    if forced_topic:
        prompt = build_forced_prompt(site, forced_topic)
        content_type: Optional[ContentType] = None
    else:
        content_type = (rng or random).choice(site.content_types)
        prompt = build_research_prompt(
            site, content_type, used_topics=used_topics, recent_titles=recent_titles, today=today
        )

    logger.info("Researching topic (%s)", f"forced: {forced_topic}" if forced_topic else content_type.type)
    raw = generate_with_retry(ai, prompt, max_tokens=1024, fast=True)
    obj = extract_json_object(raw)

    title = clip_title(str(obj.get("title") or ""))
    if not title:
        raise MalformedResponse("Topic response has no title")
    if content_type is None:
        content_type = resolve_forced_content_type(site, obj.get("category"))

    meta = normalize_plain_text(str(obj.get("meta_description") or ""))
    if not 150 <= len(meta) <= 155:
        logger.debug("Meta description length %d outside 150-155", len(meta))

    keywords_raw = obj.get("keywords") or []
    keywords: List[str] = (
        [normalize_plain_text(str(k)) for k in keywords_raw if str(k).strip()]
        if isinstance(keywords_raw, list)
        else []
    )

    base_slug = slugify(title)
    slug = unique_slug(base_slug, taken_slugs)
    if slug != base_slug:
        logger.info("Slug '%s' already used; using '%s'", base_slug, slug)

    topic = TopicRecord(
        topic=normalize_plain_text(str(obj.get("topic") or forced_topic or title)),
        title=title,
        meta_description=meta,
        keywords=keywords,
        category=content_type.category,
        slug=slug,
        image_prompt=normalize_plain_text(str(obj.get("image_prompt") or title)),
        content_type=content_type,
    )
    logger.info("Topic: \"%s\" (%s, %s)", topic.title, content_type.type, topic.slug)
    return topic
