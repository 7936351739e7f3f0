from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


@dataclass(slots=True)
class SourceLink:
    title: str
    url: str


@dataclass(slots=True)
class FactCheckResult:
    """Advisory output of the fact-check stage; empty when verification is unavailable."""

    sources: List[SourceLink] = field(default_factory=list)
    corrections: List[str] = field(default_factory=list)
    verified: bool = False

    @classmethod
    def empty(cls) -> "FactCheckResult":
        return cls()


@dataclass(slots=True)
class QualityVerdict:
    score: int
    issues: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)

    def passed(self, threshold: int) -> bool:
        return self.score >= threshold


@dataclass(slots=True)
class ProductPick:
    name: str
    url: str
    price: str = ""
    reason: str = ""
