from __future__ import annotations

import os

import requests

from .base import TextGenerator

API_URL = "https://api.anthropic.com/v1/messages"
API_VERSION = "2023-06-01"


class AnthropicClient(TextGenerator):
    """HTTP client for the Anthropic Messages API.

    Environment:
      - ANTHROPIC_API_KEY or CLAUDE_API_KEY_1 (required)
      - ANTHROPIC_MODEL (default: claude-sonnet-4-20250514) for drafting and review
      - ANTHROPIC_TOPIC_MODEL (default: claude-haiku-4-5-20251001) for fast calls
    """

    name = "anthropic"

    def __init__(self) -> None:
        self.api_key = os.environ.get("ANTHROPIC_API_KEY") or os.environ.get("CLAUDE_API_KEY_1")
        if not self.api_key:
            raise RuntimeError("ANTHROPIC_API_KEY (or CLAUDE_API_KEY_1) is required for the anthropic backend")
        self.model = os.environ.get("ANTHROPIC_MODEL", "claude-sonnet-4-20250514")
        self.fast_model = os.environ.get("ANTHROPIC_TOPIC_MODEL", "claude-haiku-4-5-20251001")

    def generate(self, prompt: str, *, max_tokens: int = 4096, fast: bool = False, timeout: int = 180) -> str:
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": API_VERSION,
            "content-type": "application/json",
        }
        payload = {
            "model": self.fast_model if fast else self.model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        resp = requests.post(API_URL, headers=headers, json=payload, timeout=timeout)
        resp.raise_for_status()
        data = resp.json()
        # Content is a list of typed blocks; keep only text
        blocks = data.get("content") or []
        return "".join(b.get("text", "") for b in blocks if b.get("type") == "text").strip()
