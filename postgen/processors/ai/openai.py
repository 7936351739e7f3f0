from __future__ import annotations

import os
from typing import Optional

import requests

from .base import ImageGenerator
from ...fetchers.http import download_bytes

API_URL = "https://api.openai.com/v1/images/generations"


class OpenAIImageClient(ImageGenerator):
    """DALL-E image generation; the returned URL is downloaded right away.

    Environment:
      - OPENAI_API_KEY (required)
      - OPENAI_IMAGE_MODEL (default: dall-e-3)
    """

    name = "openai"

    def __init__(self) -> None:
        self.api_key = os.environ.get("OPENAI_API_KEY")
        if not self.api_key:
            raise RuntimeError("OPENAI_API_KEY is required for OpenAI images")
        self.model = os.environ.get("OPENAI_IMAGE_MODEL", "dall-e-3")

    def generate(self, prompt: str, *, timeout: int = 120) -> Optional[bytes]:
        payload = {
            "model": self.model,
            "prompt": prompt,
            "n": 1,
            "size": "1792x1024",
            "quality": "standard",
        }
        resp = requests.post(
            API_URL,
            headers={"Authorization": f"Bearer {self.api_key}"},
            json=payload,
            timeout=timeout,
        )
        resp.raise_for_status()
        items = resp.json().get("data") or []
        if not items or not items[0].get("url"):
            return None
        return download_bytes(items[0]["url"])
