from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

import requests

from ..models import QualityVerdict, SiteConfig, TopicRecord
from ..utils.logging import get_logger
from .ai import TextGenerator
from .ai.parsing import MalformedResponse, parse_quality_verdict
from .normalize import strip_code_fences

logger = get_logger("postgen.processors.quality")

DEFAULT_THRESHOLD = 6
DEFAULT_MAX_ATTEMPTS = 3


@dataclass(slots=True)
class QualityOutcome:
    """Final content of the quality loop plus what happened along the way."""

    content: str
    verdicts: List[QualityVerdict] = field(default_factory=list)
    revisions: int = 0
    passed: bool = False

    @property
    def evaluations(self) -> int:
        return len(self.verdicts)


def _bullets(items: Sequence[str]) -> str:
    return "\n".join(f"- {i}" for i in items) if items else "- (keine)"


def build_evaluation_prompt(site: SiteConfig, topic: TopicRecord, content: str) -> str:
    return (
        f"Bewerte diesen Artikel fuer den Blog \"{site.site_name}\" (Titel: \"{topic.title}\").\n\n"
        "Kriterien:\n"
        "- Erfahrung, Expertise, Autoritaet und Vertrauenswuerdigkeit sind erkennbar\n"
        "- Ton: warm, persoenlich, Du-Ansprache, praxisnah\n"
        "- Laenge: 1800-2500 Woerter mit 4-6 H2-Abschnitten\n\n"
        f"ARTIKEL:\n{content}\n\n"
        "Antworte NUR mit JSON:\n"
        '{"score": 0-10, "issues": ["Problem"], "suggestions": ["Verbesserung"]}'
    )


def build_revision_prompt(
    topic: TopicRecord,
    content: str,
    *,
    issues: Sequence[str] = (),
    suggestions: Sequence[str] = (),
    corrections: Sequence[str] = (),
) -> str:
    parts = [
        f"Ueberarbeite diesen Artikel zum Thema \"{topic.topic}\".",
        f"PROBLEME:\n{_bullets(issues)}",
        f"VORSCHLAEGE:\n{_bullets(suggestions)}",
    ]
    if corrections:
        parts.append(f"FAKTENKORREKTUREN (unbedingt uebernehmen):\n{_bullets(corrections)}")
    parts.append(f"ARTIKEL:\n{content}")
    parts.append(
        "Behalte Struktur, H2-Ueberschriften, Widgets und Info-Boxen bei. "
        "Antworte NUR mit dem ueberarbeiteten HTML-Body, ohne Erklaerungen."
    )
    return "\n\n".join(parts)


class QualityGate:
    """Bounded evaluate/revise loop.

    At most ``max_attempts`` evaluations. Fact-check corrections go into the
    first revision only; when the first evaluation already passes with
    corrections pending, one revision applies them without re-scoring.
    Verdict parse failures or request errors end the loop with the current
    content.
    """

    def __init__(
        self,
        ai: TextGenerator,
        site: SiteConfig,
        *,
        threshold: int = DEFAULT_THRESHOLD,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        self.ai = ai
        self.site = site
        self.threshold = threshold
        self.max_attempts = max(1, max_attempts)

    def _evaluate(self, topic: TopicRecord, content: str) -> QualityVerdict:
        raw = self.ai.generate(build_evaluation_prompt(self.site, topic, content), max_tokens=1024, fast=True)
        return parse_quality_verdict(raw)

    def _revise(self, topic: TopicRecord, content: str, **notes: Sequence[str]) -> str:
        raw = self.ai.generate(build_revision_prompt(topic, content, **notes), max_tokens=8192)
        revised = strip_code_fences(raw)
        if not revised:
            logger.warning("Revision came back empty; keeping previous content")
            return content
        return revised

    def run(self, topic: TopicRecord, content: str, corrections: Sequence[str] = ()) -> QualityOutcome:
        outcome = QualityOutcome(content=content)
        pending = list(corrections)

        for attempt in range(1, self.max_attempts + 1):
            try:
                verdict = self._evaluate(topic, outcome.content)
            except (MalformedResponse, requests.RequestException) as exc:
                logger.warning("Quality evaluation %d failed, keeping content: %s", attempt, exc)
                break
            outcome.verdicts.append(verdict)
            logger.info("Quality attempt %d/%d: score %d", attempt, self.max_attempts, verdict.score)

            if verdict.passed(self.threshold):
                outcome.passed = True
                if attempt == 1 and pending:
                    logger.info("Applying %d fact-check corrections", len(pending))
                    self._apply_revision(outcome, topic, corrections=pending)
                break

            if attempt == self.max_attempts:
                logger.warning("Quality below %d after %d attempts; publishing anyway", self.threshold, attempt)
                break

            revised = self._apply_revision(
                outcome,
                topic,
                issues=verdict.issues,
                suggestions=verdict.suggestions,
                corrections=pending,
            )
            pending = []
            if not revised:
                break

        return outcome

    def _apply_revision(self, outcome: QualityOutcome, topic: TopicRecord, **notes: Sequence[str]) -> bool:
        try:
            outcome.content = self._revise(topic, outcome.content, **notes)
        except requests.RequestException as exc:
            logger.warning("Revision request failed, keeping content: %s", exc)
            return False
        outcome.revisions += 1
        return True
