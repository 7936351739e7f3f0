from __future__ import annotations

import os

import requests

from .base import SearchClient, SearchResponse

API_URL = "https://api.perplexity.ai/chat/completions"


class PerplexityClient(SearchClient):
    """Web-grounded answers from Perplexity Sonar.

    Environment:
      - PERPLEXITY_API_KEY (required)
      - PERPLEXITY_MODEL (default: sonar)
    """

    name = "perplexity"

    def __init__(self) -> None:
        self.api_key = os.environ.get("PERPLEXITY_API_KEY")
        if not self.api_key:
            raise RuntimeError("PERPLEXITY_API_KEY is required for the search backend")
        self.model = os.environ.get("PERPLEXITY_MODEL", "sonar")

    def search(self, query: str, *, max_tokens: int = 2048, timeout: int = 90) -> SearchResponse:
        payload = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": query}],
        }
        resp = requests.post(
            API_URL,
            headers={"Authorization": f"Bearer {self.api_key}"},
            json=payload,
            timeout=timeout,
        )
        resp.raise_for_status()
        data = resp.json()
        choices = data.get("choices") or []
        text = choices[0].get("message", {}).get("content", "") if choices else ""
        citations = [str(c) for c in (data.get("citations") or []) if c]
        return SearchResponse(text=text.strip(), citations=citations)
