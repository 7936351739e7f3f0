import random
from datetime import date

import pytest

from postgen.processors.ai.parsing import MalformedResponse
from postgen.processors.topic import clip_title, research_topic

from conftest import ScriptedText, topic_json


class TestResearchTopic:
    def test_builds_topic_record_with_slug(self, site):
        ai = ScriptedText([topic_json("Ankern lernen")])

        topic = research_topic(ai, site, today=date(2026, 5, 1), rng=random.Random(3))

        assert topic.slug == "ankern-lernen"
        assert topic.title == "Ankern lernen"
        assert topic.keywords == ["ankern", "segeln"]
        assert topic.category == topic.content_type.category
        assert topic.content_type in site.content_types

    def test_uses_fast_model_and_history_context(self, site):
        ai = ScriptedText([topic_json()])
        used = [f"Thema {i}" for i in range(30)]

        research_topic(
            ai,
            site,
            used_topics=used,
            recent_titles=["Knoten fuer Einsteiger"],
            today=date(2026, 5, 1),
        )

        call = ai.calls[0]
        assert call["fast"] is True
        assert "Mai 2026" in call["prompt"]
        assert "Thema 29" in call["prompt"]
        assert "Thema 10" in call["prompt"]
        assert "Thema 9\n" not in call["prompt"]
        assert "Knoten fuer Einsteiger" in call["prompt"]

    def test_suffixes_colliding_slug(self, site):
        ai = ScriptedText([topic_json("Ankern lernen")])

        topic = research_topic(ai, site, taken_slugs=["ankern-lernen", "ankern-lernen-2"])

        assert topic.slug == "ankern-lernen-3"

    def test_response_without_json_is_fatal(self, site):
        ai = ScriptedText(["Leider kann ich dazu nichts sagen."])

        with pytest.raises(MalformedResponse):
            research_topic(ai, site)

    def test_response_without_title_is_fatal(self, site):
        ai = ScriptedText([topic_json(title="")])

        with pytest.raises(MalformedResponse):
            research_topic(ai, site)


class TestForcedTopic:
    def test_uses_category_from_response(self, site):
        ai = ScriptedText([topic_json("Beaufort verstehen", topic="Windstaerken", category="wissen")])

        topic = research_topic(ai, site, forced_topic="Windstaerken")

        assert topic.topic == "Windstaerken"
        assert topic.category == "wissen"
        assert topic.content_type.type == "wissen"
        assert "Windstaerken" in ai.calls[0]["prompt"]

    def test_unknown_category_falls_back_to_first_content_type(self, site):
        ai = ScriptedText([topic_json("Segeln in Kroatien", category="reisen")])

        topic = research_topic(ai, site, forced_topic="Kroatien")

        assert topic.content_type == site.content_types[0]
        assert topic.category == "grundlagen"


class TestClipTitle:
    def test_short_title_unchanged(self):
        assert clip_title("Reffen bei Starkwind") == "Reffen bei Starkwind"

    def test_long_title_cut_at_word_boundary(self):
        title = "Die ultimative Anleitung zum Ankern in engen Buchten bei Nacht und Nebel"

        clipped = clip_title(title)

        assert len(clipped) <= 60
        assert title.startswith(clipped)
        assert not clipped.endswith(" ")
