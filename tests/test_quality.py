import requests

from postgen.processors.quality import QualityGate

from conftest import ScriptedText, verdict_json
from test_draft import make_topic


def evaluations(ai):
    return [c for c in ai.calls if c["fast"]]


def revisions(ai):
    return [c for c in ai.calls if not c["fast"]]


class TestQualityGate:
    def test_passing_first_attempt_keeps_content(self, site):
        ai = ScriptedText([verdict_json(8)])

        outcome = QualityGate(ai, site).run(make_topic(), "<p>v1</p>")

        assert outcome.content == "<p>v1</p>"
        assert outcome.passed
        assert outcome.revisions == 0
        assert outcome.evaluations == 1

    def test_low_then_passing_score_revises_once(self, site):
        ai = ScriptedText(
            [
                verdict_json(4, issues=["zu kurz"], suggestions=["mehr Beispiele"]),
                "<p>v2</p>",
                verdict_json(7),
            ]
        )

        outcome = QualityGate(ai, site).run(make_topic(), "<p>v1</p>")

        assert outcome.content == "<p>v2</p>"
        assert len(revisions(ai)) == 1
        assert "zu kurz" in revisions(ai)[0]["prompt"]
        assert "mehr Beispiele" in revisions(ai)[0]["prompt"]
        assert [v.score for v in outcome.verdicts] == [4, 7]

    def test_never_exceeds_three_evaluations(self, site):
        ai = ScriptedText(
            [verdict_json(2), "<p>v2</p>", verdict_json(3), "<p>v3</p>", verdict_json(4)]
        )

        outcome = QualityGate(ai, site, max_attempts=3).run(make_topic(), "<p>v1</p>")

        assert len(evaluations(ai)) == 3
        assert outcome.revisions == 2
        assert outcome.content == "<p>v3</p>"
        assert not outcome.passed

    def test_parse_failure_returns_current_content(self, site):
        ai = ScriptedText(["Der Artikel ist gut."])

        outcome = QualityGate(ai, site).run(make_topic(), "<p>v1</p>")

        assert outcome.content == "<p>v1</p>"
        assert outcome.evaluations == 0
        assert len(ai.calls) == 1

    def test_parse_failure_after_revision_keeps_revision(self, site):
        ai = ScriptedText([verdict_json(3), "<p>v2</p>", "kaputt"])

        outcome = QualityGate(ai, site).run(make_topic(), "<p>v1</p>")

        assert outcome.content == "<p>v2</p>"

    def test_corrections_applied_once_when_first_attempt_passes(self, site):
        ai = ScriptedText([verdict_json(9), "<p>korrigiert</p>"])

        outcome = QualityGate(ai, site).run(make_topic(), "<p>v1</p>", corrections=["Falsche Knotenzahl"])

        assert outcome.content == "<p>korrigiert</p>"
        assert outcome.evaluations == 1
        assert "Falsche Knotenzahl" in revisions(ai)[0]["prompt"]

    def test_corrections_only_in_first_revision(self, site):
        ai = ScriptedText(
            [verdict_json(3), "<p>v2</p>", verdict_json(4), "<p>v3</p>", verdict_json(8)]
        )

        QualityGate(ai, site).run(make_topic(), "<p>v1</p>", corrections=["Korrektur A"])

        first, second = revisions(ai)
        assert "Korrektur A" in first["prompt"]
        assert "Korrektur A" not in second["prompt"]

    def test_revision_request_failure_keeps_content(self, site):
        ai = ScriptedText([verdict_json(3), requests.ConnectionError("down")])

        outcome = QualityGate(ai, site).run(make_topic(), "<p>v1</p>")

        assert outcome.content == "<p>v1</p>"
        assert outcome.revisions == 0

    def test_code_fences_removed_from_revision(self, site):
        ai = ScriptedText([verdict_json(1), "```html\n<p>v2</p>\n```", verdict_json(9)])

        outcome = QualityGate(ai, site).run(make_topic(), "<p>v1</p>")

        assert outcome.content == "<p>v2</p>"
