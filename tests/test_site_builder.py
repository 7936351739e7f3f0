from datetime import date

import pytest

from postgen.output.site_builder import (
    EMPTY_CATEGORY,
    EMPTY_HOME,
    rebuild_site,
    render_post_cards,
    render_sitemap,
)

from conftest import TEMPLATES_DIR, make_record


class TestRenderPostCards:
    def test_empty_state(self, site):
        assert render_post_cards(site, []) == EMPTY_HOME

    def test_newest_first_with_featured_card(self, site):
        html = render_post_cards(site, [make_record("alt"), make_record("neu")])

        assert html.index("/posts/neu/") < html.index("/posts/alt/")
        assert html.count("card-featured") == 1
        assert html.index("card-featured") < html.index("/posts/neu/")

    def test_single_post_not_featured(self, site):
        assert "card-featured" not in render_post_cards(site, [make_record("einzig")])


class TestRenderSitemap:
    def test_lists_home_about_categories_and_posts(self, site):
        xml = render_sitemap(site, [make_record("knoten")])

        root = "https://example.github.io/segeln-lernen"
        assert f"<loc>{root}/</loc><changefreq>daily</changefreq><priority>1.0</priority>" in xml
        assert f"<loc>{root}/about/</loc>" in xml
        assert xml.count("/kategorie/") == len(site.categories)
        assert f"<loc>{root}/posts/knoten/</loc><lastmod>2026-05-01</lastmod>" in xml


class TestRebuildSite:
    def test_writes_all_derived_pages(self, site, tmp_path):
        docs = tmp_path / "docs"
        records = [make_record("knoten"), make_record("revier-ostsee", category="reviere")]

        written = rebuild_site(site, records, templates_dir=TEMPLATES_DIR, docs_dir=docs, today=date(2026, 5, 2))

        assert (docs / "index.html").exists()
        assert (docs / "about" / "index.html").exists()
        assert (docs / "sitemap.xml").exists()
        assert (docs / "css" / "style.css").exists()
        assert (docs / "js" / "widgets.js").exists()
        for slug in site.categories:
            assert (docs / "kategorie" / slug / "index.html") in written

        index = (docs / "index.html").read_text(encoding="utf-8")
        assert "{{" not in index
        assert "1 Artikel" in index
        assert "&copy; 2026" in index

        wissen = (docs / "kategorie" / "wissen" / "index.html").read_text(encoding="utf-8")
        assert EMPTY_CATEGORY in wissen
        reviere = (docs / "kategorie" / "reviere" / "index.html").read_text(encoding="utf-8")
        assert "/posts/revier-ostsee/" in reviere
        assert "/posts/knoten/" not in reviere

    def test_css_combines_parts(self, site, tmp_path):
        rebuild_site(site, [], templates_dir=TEMPLATES_DIR, docs_dir=tmp_path)

        css = (tmp_path / "css" / "style.css").read_text(encoding="utf-8")
        assert ".card-grid" in css
        assert ".widget-beaufort" in css

    def test_missing_template_raises(self, site, tmp_path):
        with pytest.raises(FileNotFoundError):
            rebuild_site(site, [], templates_dir=tmp_path / "none", docs_dir=tmp_path / "docs")
