from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ...models import FaqEntry, QualityVerdict

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_CONTENT_START_RE = re.compile(r'"content"\s*:\s*"')
_CONTENT_END_RE = re.compile(r'"\s*,\s*"(?:faq|image_alt)"\s*:')
_FAQ_RE = re.compile(r'"faq"\s*:\s*(\[[\s\S]*?\])\s*(?=,\s*"image_alt"|\}\s*$)')
_IMAGE_ALT_RE = re.compile(r'"image_alt"\s*:\s*"((?:[^"\\]|\\.)*)"')
_ESCAPE_RE = re.compile(r'\\(["\\/bfnrt]|u[0-9a-fA-F]{4})')
_SIMPLE_ESCAPES = {'"': '"', "\\": "\\", "/": "/", "b": "\b", "f": "\f", "n": "\n", "r": "\r", "t": "\t"}


class MalformedResponse(ValueError):
    """Generative output did not contain the structure the caller asked for."""


class ParseStatus(str, Enum):
    PARSED = "parsed"
    RECOVERED = "recovered"
    FAILED = "failed"


@dataclass(slots=True)
class ParseResult:
    """Outcome of tolerant parsing: strict parse, heuristic recovery, or failure."""

    status: ParseStatus
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is not ParseStatus.FAILED


def find_json_object(raw: str) -> str:
    if not raw or not raw.strip():
        raise MalformedResponse("Empty AI response")
    match = _JSON_OBJECT_RE.search(raw)
    if not match:
        raise MalformedResponse("No JSON object found in AI response")
    return match.group(0)


def extract_json_object(raw: str) -> Dict[str, Any]:
    """Locate and decode the single JSON object embedded in ``raw``."""
    candidate = find_json_object(raw)
    try:
        obj = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise MalformedResponse(f"Invalid JSON in AI response: {exc}") from exc
    if not isinstance(obj, dict):
        raise MalformedResponse("AI response JSON is not an object")
    return obj


def parse_json_object(raw: str) -> ParseResult:
    try:
        return ParseResult(ParseStatus.PARSED, extract_json_object(raw))
    except MalformedResponse as exc:
        return ParseResult(ParseStatus.FAILED, error=str(exc))


def unescape_json_string(value: str) -> str:
    """Decode JSON string escapes without requiring the value to be valid JSON."""

    def _sub(match: re.Match[str]) -> str:
        code = match.group(1)
        if code.startswith("u"):
            return chr(int(code[1:], 16))
        return _SIMPLE_ESCAPES[code]

    return _ESCAPE_RE.sub(_sub, value)


def _recover_content(raw: str) -> Optional[str]:
    start = _CONTENT_START_RE.search(raw)
    if not start:
        return None
    rest = raw[start.end():]
    end = _CONTENT_END_RE.search(rest)
    if end:
        body = rest[: end.start()]
    else:
        # content is the last field: cut at the closing quote before the final brace
        closing = re.search(r'"\s*\}\s*(?:```)?\s*$', rest)
        body = rest[: closing.start()] if closing else rest
    return unescape_json_string(body)


def _recover_faq(raw: str) -> List[Dict[str, Any]]:
    match = _FAQ_RE.search(raw)
    if not match:
        return []
    try:
        items = json.loads(match.group(1))
    except json.JSONDecodeError:
        return []
    return items if isinstance(items, list) else []


def parse_draft_response(raw: str) -> ParseResult:
    """Parse a ``{content, faq, image_alt}`` draft answer.

    Strict JSON first. Models regularly emit HTML with unescaped quotes, so
    on failure the ``content`` value is cut out between its key and the next
    known key (never truncated at an inner quote) and ``faq``/``image_alt``
    are pulled out independently.
    """
    strict = parse_json_object(raw)
    if strict.ok and isinstance(strict.data.get("content"), str) and strict.data["content"].strip():
        return strict

    content = _recover_content(raw or "")
    if not content or not content.strip():
        return ParseResult(ParseStatus.FAILED, error=strict.error or "Draft response has no content")

    alt_match = _IMAGE_ALT_RE.search(raw)
    data = {
        "content": content,
        "faq": _recover_faq(raw),
        "image_alt": unescape_json_string(alt_match.group(1)) if alt_match else "",
    }
    return ParseResult(ParseStatus.RECOVERED, data, error=strict.error)


def coerce_faq(items: Any) -> List[FaqEntry]:
    entries: List[FaqEntry] = []
    if not isinstance(items, list):
        return entries
    for item in items:
        if not isinstance(item, dict):
            continue
        question = str(item.get("question") or "").strip()
        answer = str(item.get("answer") or "").strip()
        if question and answer:
            entries.append(FaqEntry(question=question, answer=answer))
    return entries


def _as_str_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if isinstance(value, list):
        return [str(v).strip() for v in value if str(v).strip()]
    return []


def parse_quality_verdict(raw: str) -> QualityVerdict:
    """Parse and validate a quality review.

    Expected object with keys:
      - score: number in [0, 10] (rounded, clamped)
      - issues: list of strings
      - suggestions: list of strings
    """
    obj = extract_json_object(raw)
    score_val = obj.get("score")
    try:
        score = int(round(float(score_val)))
    except (TypeError, ValueError) as exc:
        raise MalformedResponse(f"Invalid score '{score_val}': {exc}") from exc
    return QualityVerdict(
        score=max(0, min(10, score)),
        issues=_as_str_list(obj.get("issues")),
        suggestions=_as_str_list(obj.get("suggestions")),
    )
