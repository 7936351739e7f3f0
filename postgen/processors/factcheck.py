from __future__ import annotations

from typing import Any, Callable, List, Optional

import requests

from ..models import FactCheckResult, SourceLink, TopicRecord
from ..utils.logging import get_logger
from .ai import SearchClient
from .ai.parsing import MalformedResponse, extract_json_object
from .normalize import normalize_plain_text

logger = get_logger("postgen.processors.factcheck")

Probe = Callable[[str], bool]


def build_factcheck_prompt(topic: TopicRecord, excerpt: str) -> str:
    return (
        f"Pruefe die Fakten in diesem Artikelauszug zum Thema \"{topic.topic}\".\n\n"
        f"{excerpt}\n\n"
        "Finde 2-5 serioese, oeffentlich erreichbare Quellen, die die wichtigsten Aussagen belegen, "
        "und nenne falsche oder veraltete Angaben.\n\n"
        "Antworte NUR mit JSON:\n"
        "{\n"
        '  "sources": [{"title": "Quellenname", "url": "https://..."}],\n'
        '  "corrections": ["Korrekturhinweis"],\n'
        '  "verified": true\n'
        "}"
    )


def _candidate_sources(raw_sources: Any, citations: List[str]) -> List[SourceLink]:
    candidates: List[SourceLink] = []
    seen = set()
    if isinstance(raw_sources, list):
        for item in raw_sources:
            if isinstance(item, dict):
                url = str(item.get("url") or "").strip()
                title = normalize_plain_text(str(item.get("title") or "")) or url
            elif isinstance(item, str):
                url, title = item.strip(), item.strip()
            else:
                continue
            if url and url not in seen:
                seen.add(url)
                candidates.append(SourceLink(title=title, url=url))
    for url in citations:
        if url and url not in seen:
            seen.add(url)
            candidates.append(SourceLink(title=url, url=url))
    return candidates


def fact_check(
    search: Optional[SearchClient],
    topic: TopicRecord,
    content: str,
    *,
    probe: Probe,
    max_sources: int = 5,
    max_chars: int = 3000,
) -> FactCheckResult:
    """Verify the draft against a web-grounded search service.

    Advisory only: a missing client, a failed request or an unparsable
    answer all yield :meth:`FactCheckResult.empty`. At most ``max_sources``
    candidate URLs are probed; unreachable ones are dropped.
    """
    if search is None:
        logger.info("No search client configured; skipping fact-check")
        return FactCheckResult.empty()

    try:
        response = search.search(build_factcheck_prompt(topic, content[:max_chars]))
        obj = extract_json_object(response.text)
    except (requests.RequestException, MalformedResponse) as exc:
        logger.warning("Fact-check degraded to empty result: %s", exc)
        return FactCheckResult.empty()

    sources: List[SourceLink] = []
    for candidate in _candidate_sources(obj.get("sources"), response.citations)[:max_sources]:
        if probe(candidate.url):
            sources.append(candidate)
        else:
            logger.info("Dropping unreachable source %s", candidate.url)

    corrections_raw = obj.get("corrections") or []
    corrections = (
        [normalize_plain_text(str(c)) for c in corrections_raw if str(c).strip()]
        if isinstance(corrections_raw, list)
        else []
    )
    result = FactCheckResult(sources=sources, corrections=corrections, verified=bool(obj.get("verified")))
    logger.info("Fact-check: %d sources kept, %d corrections", len(result.sources), len(result.corrections))
    return result
