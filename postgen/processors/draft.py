from __future__ import annotations

from typing import Sequence

from ..models import ArticleRecord, Draft, SiteConfig, TopicRecord
from ..models.site import BEAUFORT_WIDGET, CALCULATOR_WIDGET
from ..utils.logging import get_logger
from .ai import TextGenerator
from .ai.parsing import MalformedResponse, ParseStatus, coerce_faq, parse_draft_response
from .ai.retry import generate_with_retry
from .normalize import count_words, normalize_plain_text

logger = get_logger("postgen.processors.draft")

INTERNAL_LINK_CONTEXT = 5
DRAFT_MAX_TOKENS = 8192

_WIDGET_HINTS = {
    BEAUFORT_WIDGET: "Fuege an passender Stelle dieses Beaufort-Widget ein:",
    CALCULATOR_WIDGET: "Fuege an passender Stelle diesen Seemeilen-Rechner ein:",
}

_TIP_BOX = (
    '<div class="info-box info-box-tip"><svg viewBox="0 0 24 24" fill="none" stroke="currentColor" '
    'stroke-width="2"><circle cx="12" cy="12" r="10"/><path d="M12 16v-4M12 8h.01"/></svg>'
    "<div>TIPP TEXT</div></div>"
)
_WARNING_BOX = (
    '<div class="info-box info-box-warning"><svg viewBox="0 0 24 24" fill="none" stroke="currentColor" '
    'stroke-width="2"><path d="M10.29 3.86L1.82 18a2 2 0 001.71 3h16.94a2 2 0 001.71-3L13.71 3.86a2 2 0 00-3.42 0z"/>'
    '<path d="M12 9v4M12 17h.01"/></svg><div>WARNUNG TEXT</div></div>'
)


def widget_hint(site: SiteConfig, category: str) -> str:
    token = site.widgets.get(category)
    if not token:
        return ""
    return f"\n{_WIDGET_HINTS[token]}\n{token}\n"


def internal_links(site: SiteConfig, recent: Sequence[ArticleRecord]) -> str:
    lines = [f"- [{r.title}]({site.base_url}/posts/{r.slug}/)" for r in recent[-INTERNAL_LINK_CONTEXT:]]
    return "\n".join(lines) if lines else "(noch keine existierenden Artikel)"


def build_draft_prompt(site: SiteConfig, topic: TopicRecord, recent: Sequence[ArticleRecord]) -> str:
    persona = site.author or f"ein erfahrener Autor fuer den Blog \"{site.site_name}\""
    return (
        f"Du bist {persona}. Du schreibst fuer deinen Blog \"{site.site_name}\".\n\n"
        f"{topic.content_type.prompt}\n\n"
        f"THEMA: {topic.topic}\n"
        f"TITEL: {topic.title}\n\n"
        "STIL:\n"
        "- Warm, persoenlich, erfahren\n"
        "- Persoenliche Anekdoten einbauen\n"
        "- Du-Ansprache an den Leser\n"
        "- Praxisnah mit konkreten Tipps\n"
        "- 1800-2500 Woerter\n\n"
        "STRUKTUR:\n"
        "- Einleitung (persoenlich, packendes Intro)\n"
        "- 4-6 Abschnitte mit H2-Ueberschriften (keyword-optimiert)\n"
        "- Jeder Abschnitt mit H3-Unterueberschriften wo sinnvoll\n"
        "- Konkrete Tipps, Zahlen, Fakten\n"
        "- Fazit mit Zusammenfassung\n"
        f"{widget_hint(site, topic.category)}\n"
        "INTERNE LINKS (baue 1-2 davon natuerlich ein, falls thematisch passend):\n"
        f"{internal_links(site, recent)}\n\n"
        "SPEZIAL-ELEMENTE (verwende HTML):\n"
        f"- Tipp-Box: {_TIP_BOX}\n"
        f"- Warnung-Box: {_WARNING_BOX}\n"
        "- Blockquote: <blockquote>Zitat</blockquote>\n\n"
        "Antworte NUR mit einem JSON-Objekt:\n"
        "{\n"
        '  "content": "Der komplette Artikel als HTML (nur der Body-Content, keine h1)",\n'
        '  "faq": [\n'
        '    {"question": "Frage 1?", "answer": "Antwort 1"},\n'
        '    {"question": "Frage 2?", "answer": "Antwort 2"},\n'
        '    {"question": "Frage 3?", "answer": "Antwort 3"}\n'
        "  ],\n"
        '  "image_alt": "Beschreibender Alt-Text fuer das Hero-Bild (deutsch)"\n'
        "}"
    )


def write_draft(
    ai: TextGenerator,
    site: SiteConfig,
    topic: TopicRecord,
    recent: Sequence[ArticleRecord] = (),
) -> Draft:
    """Draft the article body for ``topic``.

    Responses that are not valid JSON are salvaged by the tolerant parser;
    only a response without any content raises :class:`MalformedResponse`.
    """
    logger.info("Writing draft for '%s'", topic.slug)
    raw = generate_with_retry(ai, build_draft_prompt(site, topic, recent), max_tokens=DRAFT_MAX_TOKENS)
    result = parse_draft_response(raw)
    if result.status is ParseStatus.FAILED:
        raise MalformedResponse(f"Draft for '{topic.slug}' has no content: {result.error}")
    if result.status is ParseStatus.RECOVERED:
        logger.warning("Draft JSON was invalid, recovered content (%s)", result.error)

    draft = Draft(
        content=str(result.data["content"]).strip(),
        faq=coerce_faq(result.data.get("faq")),
        image_alt=normalize_plain_text(str(result.data.get("image_alt") or "")),
    )
    logger.info("Draft written: %d words, %d FAQ entries", count_words(draft.content), len(draft.faq))
    return draft
