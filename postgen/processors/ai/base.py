from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional


class TextGenerator(ABC):
    """Generative text service: prompt in, free text out."""

    name: str = "text"

    @abstractmethod
    def generate(self, prompt: str, *, max_tokens: int = 4096, fast: bool = False) -> str:
        """Return the raw completion for ``prompt``.

        ``fast`` selects the cheaper model tier where the backend has one.
        """


class ImageGenerator(ABC):
    """Generative image service. ``None`` means the service produced no image."""

    name: str = "image"

    @abstractmethod
    def generate(self, prompt: str) -> Optional[bytes]:
        """Return encoded image bytes or ``None``."""


@dataclass(slots=True)
class SearchResponse:
    text: str
    citations: List[str] = field(default_factory=list)


class SearchClient(ABC):
    """Web-grounded answer service used for verification and product lookups."""

    name: str = "search"

    @abstractmethod
    def search(self, query: str, *, max_tokens: int = 2048) -> SearchResponse:
        """Return the answer text plus any provenance URLs."""
