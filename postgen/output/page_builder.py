"""Article page assembly.

Everything here is a pure string transformation: the caller supplies the
template text, the article record and the body; nothing touches disk.
"""

from __future__ import annotations

import html
import json
import re
from typing import Dict, List, Sequence, Tuple

from ..models import ArticleRecord, FaqEntry, SiteConfig, SourceLink
from ..models.site import BEAUFORT_WIDGET, CALCULATOR_WIDGET
from ..processors.normalize import count_words
from ..utils.logging import get_logger

logger = get_logger("postgen.output.page")

PAGE_TOKENS = (
    "{{TITLE}}",
    "{{META_DESCRIPTION}}",
    "{{SLUG}}",
    "{{DATE_ISO}}",
    "{{DATE_DISPLAY}}",
    "{{CATEGORY}}",
    "{{CATEGORY_SLUG}}",
    "{{READ_TIME}}",
    "{{WORD_COUNT}}",
    "{{IMAGE_ALT}}",
    "{{TOC}}",
    "{{CONTENT}}",
    "{{FAQ_HTML}}",
    "{{FAQ_JSON_LD}}",
    "{{RELATED_POSTS}}",
    "{{BASE_URL}}",
    "{{YEAR}}",
)

RELATED_COUNT = 3

_H2_RE = re.compile(r"<h2\b[^>]*>(.*?)</h2\s*>", re.IGNORECASE | re.DOTALL)

BEAUFORT_WIDGET_HTML = """<div class="widget-embed">
  <div class="widget-beaufort">
    <h3>Beaufort-Skala interaktiv</h3>
    <div class="beaufort-display">
      <div class="beaufort-number">0</div>
      <div class="beaufort-name">Windstille</div>
    </div>
    <input type="range" class="beaufort-slider" min="0" max="12" value="0" step="1">
    <div class="beaufort-details">
      <div class="beaufort-detail"><div class="beaufort-detail-label">Wind</div><div class="beaufort-detail-value" data-field="wind-kn">&lt; 1 kn</div></div>
      <div class="beaufort-detail"><div class="beaufort-detail-label">Geschwindigkeit</div><div class="beaufort-detail-value" data-field="wind-ms">0-0.2 m/s</div></div>
      <div class="beaufort-detail"><div class="beaufort-detail-label">Wellenhoehe</div><div class="beaufort-detail-value" data-field="wave">0 m</div></div>
    </div>
    <p class="beaufort-desc">Spiegelglatte See, Rauch steigt senkrecht auf.</p>
  </div>
</div>"""

CALCULATOR_WIDGET_HTML = """<div class="widget-embed">
  <div class="widget-calculator">
    <h3>Seemeilen-Rechner</h3>
    <div class="calc-row">
      <input type="number" class="calc-input" data-unit="sm" placeholder="Seemeilen" step="0.1">
      <span class="calc-label">sm</span>
    </div>
    <div class="calc-row">
      <input type="number" class="calc-input" data-unit="km" placeholder="Kilometer" step="0.1">
      <span class="calc-label">km</span>
    </div>
    <p class="calc-note">1 Seemeile = 1,852 km</p>
  </div>
</div>"""

WIDGET_HTML = {
    BEAUFORT_WIDGET: BEAUFORT_WIDGET_HTML,
    CALCULATOR_WIDGET: CALCULATOR_WIDGET_HTML,
}


def build_toc(content: str) -> Tuple[str, str]:
    """Return ``(toc_html, content)`` with every ``<h2>`` numbered ``section-N`` in order."""
    entries: List[str] = []

    def _number(match: re.Match[str]) -> str:
        anchor = f"section-{len(entries) + 1}"
        inner = match.group(1)
        entries.append(f'<li><a href="#{anchor}">{inner}</a></li>')
        return f'<h2 id="{anchor}">{inner}</h2>'

    rewritten = _H2_RE.sub(_number, content)
    if not entries:
        return "", content
    toc = '<div class="toc"><div class="toc-title">Inhalt</div><ol>' + "".join(entries) + "</ol></div>"
    return toc, rewritten


def embed_widgets(content: str) -> str:
    for token, markup in WIDGET_HTML.items():
        content = content.replace(token, markup)
    return content


def build_faq(faq: Sequence[FaqEntry]) -> Tuple[str, str]:
    """FAQ section markup and the comma-joined ``Question`` objects for JSON-LD."""
    if not faq:
        return "", ""
    items = "".join(
        f'<div class="faq-item"><div class="faq-question">{f.question}</div>'
        f'<div class="faq-answer">{f.answer}</div></div>'
        for f in faq
    )
    faq_html = f'<section class="faq-section"><h2>Haeufig gestellte Fragen</h2>{items}</section>'
    json_ld = ",".join(
        json.dumps(
            {"@type": "Question", "name": f.question, "acceptedAnswer": {"@type": "Answer", "text": f.answer}},
            ensure_ascii=False,
        )
        for f in faq
    ).replace("</", "<\\/")
    return faq_html, json_ld


def build_card(site: SiteConfig, record: ArticleRecord, *, featured: bool = False) -> str:
    cls = "card card-featured fade-in" if featured else "card fade-in"
    base = site.base_url
    alt = html.escape(record.image_alt or record.title, quote=True)
    return (
        f'<div class="{cls}">\n'
        f'    <img class="card-image" src="{base}/posts/{record.slug}/hero.webp" alt="{alt}" '
        'loading="lazy" width="600" height="220">\n'
        '    <div class="card-body">\n'
        f'      <span class="card-category">{html.escape(site.category_name(record.category))}</span>\n'
        f'      <h3 class="card-title"><a href="{base}/posts/{record.slug}/">{html.escape(record.title)}</a></h3>\n'
        f'      <p class="card-excerpt">{html.escape(record.meta_description)}</p>\n'
        '      <div class="card-meta">\n'
        f"        <span>{record.read_time} Min.</span>\n"
        f"        <span>{html.escape(record.date_display)}</span>\n"
        "      </div>\n"
        "    </div>\n"
        "  </div>"
    )


def related_records(records: Sequence[ArticleRecord], slug: str, count: int = RELATED_COUNT) -> List[ArticleRecord]:
    others = [r for r in records if r.slug != slug]
    return others[-count:] if count > 0 else []


def build_related(site: SiteConfig, records: Sequence[ArticleRecord], slug: str) -> str:
    related = related_records(records, slug)
    if not related:
        return ""
    cards = "".join(build_card(site, r) for r in related)
    return (
        '<div class="related-posts"><h2>Das koennte dich auch interessieren</h2>'
        f'<div class="card-grid">{cards}</div></div>'
    )


def build_sources(sources: Sequence[SourceLink]) -> str:
    if not sources:
        return ""
    items = "".join(
        f'<li><a href="{html.escape(s.url, quote=True)}" target="_blank" rel="noopener">{html.escape(s.title)}</a></li>'
        for s in sources
    )
    return f'<div class="sources"><h3>Quellen</h3><ul>{items}</ul></div>'


def fill_template(template: str, values: Dict[str, str]) -> str:
    for token, value in values.items():
        template = template.replace(token, value)
    return template


def strip_page_tokens(text: str) -> str:
    """Drop template tokens echoed by the text service so none survive substitution."""
    for token in PAGE_TOKENS:
        text = text.replace(token, "")
    return text


def unresolved_tokens(document: str, tokens: Sequence[str] = PAGE_TOKENS) -> List[str]:
    return [t for t in tokens if t in document]


def assemble_page(
    template: str,
    site: SiteConfig,
    record: ArticleRecord,
    content: str,
    faq: Sequence[FaqEntry] = (),
    *,
    published: Sequence[ArticleRecord] = (),
    sources: Sequence[SourceLink] = (),
) -> str:
    """Render the article page from ``template``.

    ``published`` is the list of already persisted records, oldest first;
    the three newest other than ``record`` become the related-posts block.
    """
    content = strip_page_tokens(content)
    faq = [FaqEntry(strip_page_tokens(f.question), strip_page_tokens(f.answer)) for f in faq]
    toc, body = build_toc(content)
    body = embed_widgets(body) + build_sources(sources)
    faq_html, faq_json_ld = build_faq(faq)

    values = {
        "{{TITLE}}": html.escape(record.title, quote=True),
        "{{META_DESCRIPTION}}": html.escape(record.meta_description, quote=True),
        "{{SLUG}}": record.slug,
        "{{DATE_ISO}}": record.date_iso,
        "{{DATE_DISPLAY}}": record.date_display,
        "{{CATEGORY}}": html.escape(site.category_name(record.category)),
        "{{CATEGORY_SLUG}}": record.category,
        "{{READ_TIME}}": str(record.read_time),
        "{{WORD_COUNT}}": str(count_words(content)),
        "{{IMAGE_ALT}}": html.escape(record.image_alt or record.title, quote=True),
        "{{TOC}}": toc,
        "{{CONTENT}}": body,
        "{{FAQ_HTML}}": faq_html,
        "{{FAQ_JSON_LD}}": faq_json_ld,
        "{{RELATED_POSTS}}": build_related(site, published, record.slug),
        "{{BASE_URL}}": site.base_url,
        "{{YEAR}}": record.date_iso[:4],
    }
    page = fill_template(template, values)
    logger.info("Assembled page for '%s' (%d sections, %d FAQ)", record.slug, toc.count("<li>"), len(faq))
    return page
