import json

import pytest

from postgen.models import ArticleRecord
from postgen.storage import ContentStore, ContentStoreError

from conftest import make_record


class TestContentStore:
    def test_empty_store_reads_empty_lists(self, store):
        assert store.read_all() == []
        assert store.read_used_topics() == []
        assert not store.rebuild_pending

    def test_append_article_round_trips_in_order(self, store):
        store.append_article(make_record("erster"))
        store.append_article(make_record("zweiter"))

        assert [r.slug for r in store.read_all()] == ["erster", "zweiter"]
        assert store.existing_slugs() == ["erster", "zweiter"]

    def test_persisted_keys_use_camel_case(self, store):
        store.append_article(make_record("knoten"))

        row = json.loads(store.posts_path.read_text(encoding="utf-8"))[0]

        assert set(row) == {
            "slug",
            "title",
            "metaDescription",
            "category",
            "keywords",
            "dateISO",
            "dateDisplay",
            "readTime",
            "imageAlt",
            "contentType",
        }
        assert row["keywords"] == ["segeln"]

    def test_reads_records_written_by_other_tools(self, store):
        store.posts_path.write_text(
            json.dumps([{"slug": "alt", "title": "Alter Artikel", "category": "boote"}]), encoding="utf-8"
        )

        (record,) = store.read_all()

        assert isinstance(record, ArticleRecord)
        assert record.image_alt == "Alter Artikel"
        assert record.read_time == 1

    def test_used_topics_tolerate_duplicates(self, store):
        store.append_used_topic("Ankern")
        store.append_used_topic("Ankern")

        assert store.read_used_topics() == ["Ankern", "Ankern"]

    def test_corrupt_file_is_not_overwritten(self, store):
        store.posts_path.write_text("{kaputt", encoding="utf-8")

        with pytest.raises(ContentStoreError):
            store.append_article(make_record("neu"))
        assert store.posts_path.read_text(encoding="utf-8") == "{kaputt"

    def test_no_temp_files_left_behind(self, store):
        store.append_article(make_record("a"))

        assert sorted(p.name for p in store.data_dir.iterdir()) == ["posts.json"]

    def test_rebuild_marker(self, store):
        store.mark_rebuild_pending()
        assert store.rebuild_pending

        store.clear_rebuild_pending()
        store.clear_rebuild_pending()
        assert not store.rebuild_pending

    def test_data_dir_created(self, tmp_path):
        ContentStore(tmp_path / "nested" / "data")

        assert (tmp_path / "nested" / "data").is_dir()
