from __future__ import annotations

import shutil
from datetime import date
from pathlib import Path
from typing import List, Optional, Sequence
from xml.sax.saxutils import escape as xml_escape

from ..models import ArticleRecord, SiteConfig
from ..utils.logging import get_logger
from .page_builder import build_card, fill_template

logger = get_logger("postgen.output.site")

EMPTY_HOME = '<p class="empty-state">Noch keine Artikel vorhanden.</p>'
EMPTY_CATEGORY = '<p class="empty-state">Noch keine Artikel in dieser Kategorie.</p>'
CSS_PARTS = ("base.css", "widgets.css")
JS_ASSETS = ("widgets.js", "waves.js")


def _newest_first(records: Sequence[ArticleRecord]) -> List[ArticleRecord]:
    return list(reversed(records))


def render_post_cards(site: SiteConfig, records: Sequence[ArticleRecord]) -> str:
    ordered = _newest_first(records)
    if not ordered:
        return EMPTY_HOME
    featured = len(ordered) > 1
    return "".join(build_card(site, r, featured=featured and i == 0) for i, r in enumerate(ordered))


def render_category_cards(site: SiteConfig, records: Sequence[ArticleRecord]) -> str:
    cards = []
    for slug, cat in site.categories.items():
        count = sum(1 for r in records if r.category == slug)
        cards.append(
            '<div class="card category-card fade-in">\n'
            '      <div class="card-body">\n'
            f'        <h3 class="card-title"><a href="{site.base_url}/kategorie/{slug}/">{cat.name}</a></h3>\n'
            f'        <p class="card-excerpt">{cat.description}</p>\n'
            f'        <span class="card-meta">{count} Artikel</span>\n'
            "      </div>\n"
            "    </div>"
        )
    return "".join(cards)


def render_index(template: str, site: SiteConfig, records: Sequence[ArticleRecord], year: int) -> str:
    return fill_template(
        template,
        {
            "{{POST_CARDS}}": render_post_cards(site, records),
            "{{CATEGORY_CARDS}}": render_category_cards(site, records),
            "{{BASE_URL}}": site.base_url,
            "{{YEAR}}": str(year),
        },
    )


def render_category(
    template: str, site: SiteConfig, slug: str, records: Sequence[ArticleRecord], year: int
) -> str:
    cat = site.categories[slug]
    matching = [r for r in _newest_first(records) if r.category == slug]
    cards = "".join(build_card(site, r) for r in matching) or EMPTY_CATEGORY
    return fill_template(
        template,
        {
            "{{CATEGORY}}": cat.name,
            "{{CATEGORY_SLUG}}": slug,
            "{{CATEGORY_DESCRIPTION}}": cat.description,
            "{{POST_CARDS}}": cards,
            "{{BASE_URL}}": site.base_url,
            "{{YEAR}}": str(year),
        },
    )


def render_sitemap(site: SiteConfig, records: Sequence[ArticleRecord]) -> str:
    root = site.site_url
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
        f"  <url><loc>{xml_escape(root)}/</loc><changefreq>daily</changefreq><priority>1.0</priority></url>",
        f"  <url><loc>{xml_escape(root)}/about/</loc><changefreq>monthly</changefreq><priority>0.7</priority></url>",
    ]
    for slug in site.categories:
        lines.append(
            f"  <url><loc>{xml_escape(root)}/kategorie/{slug}/</loc>"
            "<changefreq>weekly</changefreq><priority>0.8</priority></url>"
        )
    for r in _newest_first(records):
        lines.append(
            f"  <url><loc>{xml_escape(root)}/posts/{r.slug}/</loc><lastmod>{r.date_iso}</lastmod>"
            "<changefreq>monthly</changefreq><priority>0.9</priority></url>"
        )
    lines.append("</urlset>")
    return "\n".join(lines) + "\n"


def copy_assets(templates_dir: Path, docs_dir: Path) -> List[Path]:
    """Combine the CSS parts into ``css/style.css`` and copy scripts to ``js/``.

    Missing asset files are skipped.
    """
    written: List[Path] = []
    css = [templates_dir / name for name in CSS_PARTS if (templates_dir / name).exists()]
    if css:
        target = docs_dir / "css" / "style.css"
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text("\n".join(p.read_text(encoding="utf-8") for p in css), encoding="utf-8")
        written.append(target)
    for name in JS_ASSETS:
        src = templates_dir / name
        if not src.exists():
            continue
        target = docs_dir / "js" / name
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(src, target)
        written.append(target)
    return written


def _write(path: Path, text: str, written: List[Path]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    written.append(path)


def rebuild_site(
    site: SiteConfig,
    records: Sequence[ArticleRecord],
    *,
    templates_dir: Path,
    docs_dir: Path,
    today: Optional[date] = None,
) -> List[Path]:
    """Regenerate every derived page from the complete record list.

    Home, one page per configured category, about, ``sitemap.xml`` and static
    assets. Returns the written paths. Missing page templates raise
    ``FileNotFoundError``.
    """
    year = (today or date.today()).year
    written: List[Path] = []

    def read(name: str) -> str:
        return (templates_dir / name).read_text(encoding="utf-8")

    _write(docs_dir / "index.html", render_index(read("index.html"), site, records, year), written)

    category_template = read("category.html")
    for slug in site.categories:
        _write(
            docs_dir / "kategorie" / slug / "index.html",
            render_category(category_template, site, slug, records, year),
            written,
        )

    about = fill_template(read("about.html"), {"{{BASE_URL}}": site.base_url, "{{YEAR}}": str(year)})
    _write(docs_dir / "about" / "index.html", about, written)
    _write(docs_dir / "sitemap.xml", render_sitemap(site, records), written)
    written.extend(copy_assets(templates_dir, docs_dir))

    logger.info("Site rebuilt: %d posts, %d categories", len(records), len(site.categories))
    return written
