from __future__ import annotations

import html
import math
import re
import unicodedata
from datetime import date
from typing import Iterable, Sequence

from bs4 import BeautifulSoup

_whitespace_re = re.compile(r"\s+")
_control_chars_re = re.compile(r"[\u0000-\u0008\u000B\u000C\u000E-\u001F\u007F]")
_non_slug_re = re.compile(r"[^a-z0-9]+")
_code_fence_re = re.compile(r"^\s*```[a-zA-Z]*\s*\n?|\n?\s*```\s*$")

_PUNCT_TRANSLATION = {
    ord("\u2018"): "'",  # left single quote
    ord("\u2019"): "'",  # right single quote
    ord("\u201C"): '"',  # left double quote
    ord("\u201D"): '"',  # right double quote
    ord("\u2013"): "-",  # en dash
    ord("\u2014"): "-",  # em dash
    ord("\u00A0"): " ",  # non-breaking space
}

# German transliteration first; NFKD folding would turn "ü" into "u"
_UMLAUT_TRANSLATION = {
    ord("\u00e4"): "ae",
    ord("\u00f6"): "oe",
    ord("\u00fc"): "ue",
    ord("\u00df"): "ss",
}

MAX_SLUG_LENGTH = 60
FALLBACK_SLUG = "artikel"
WORDS_PER_MINUTE = 200


def clean_html_to_text(raw_html: str | None) -> str:
    """Clean HTML to normalized plain text.

    - Strip tags
    - Unescape HTML entities
    - Collapse whitespace
    """
    if not raw_html:
        return ""

    soup = BeautifulSoup(raw_html, "html.parser")
    text = soup.get_text(" ")
    text = html.unescape(text)
    text = _whitespace_re.sub(" ", text)
    return text.strip()


def normalize_plain_text(text: str | None) -> str:
    """Normalize plain text coming back from a generative service.

    - Strip BOM
    - Replace curly quotes/dashes and non-breaking spaces
    - Unicode normalize (NFKC)
    - Remove control characters and collapse whitespace
    """
    if not text:
        return ""

    if text.startswith("\ufeff"):
        text = text.lstrip("\ufeff")

    text = text.translate(_PUNCT_TRANSLATION)
    text = unicodedata.normalize("NFKC", text)
    text = _control_chars_re.sub(" ", text)
    text = _whitespace_re.sub(" ", text).strip()
    return text


def fold_diacritics(text: str) -> str:
    lowered = text.lower().translate(_UMLAUT_TRANSLATION)
    decomposed = unicodedata.normalize("NFKD", lowered)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def slugify(text: str, *, max_length: int = MAX_SLUG_LENGTH) -> str:
    """Derive a URL-safe slug: lowercase ASCII alphanumerics joined by single hyphens.

    >>> slugify("Ankern lernen")
    'ankern-lernen'
    """
    folded = fold_diacritics(text or "")
    slug = _non_slug_re.sub("-", folded).strip("-")
    slug = slug[:max_length].strip("-")
    return slug or FALLBACK_SLUG


def unique_slug(slug: str, taken: Iterable[str], *, max_length: int = MAX_SLUG_LENGTH) -> str:
    """Return ``slug`` or the first free ``slug-N`` (N >= 2) not in ``taken``."""
    used = set(taken)
    if slug not in used:
        return slug
    n = 2
    while True:
        suffix = f"-{n}"
        base = slug[: max_length - len(suffix)].rstrip("-")
        candidate = f"{base}{suffix}"
        if candidate not in used:
            return candidate
        n += 1


def count_words(raw_html: str | None) -> int:
    return len(clean_html_to_text(raw_html).split())


def read_time_minutes(raw_html: str | None) -> int:
    return max(1, math.ceil(count_words(raw_html) / WORDS_PER_MINUTE))


def format_display_date(value: date, month_names: Sequence[str]) -> str:
    """Render ``19. Oktober 2026`` style dates with the configured month names."""
    return f"{value.day}. {month_names[value.month - 1]} {value.year}"


def strip_code_fences(text: str) -> str:
    """Remove a markdown code fence wrapped around a whole response."""
    return _code_fence_re.sub("", text or "").strip()
