from __future__ import annotations

import base64
import os
from typing import Optional

import requests

from .base import ImageGenerator, TextGenerator

API_ROOT = "https://generativelanguage.googleapis.com/v1beta/models"


def _gemini_key() -> Optional[str]:
    return os.environ.get("GEMINI_API_KEY") or os.environ.get("GOOGLE_API_KEY")


class GeminiClient(TextGenerator):
    """HTTP client for Gemini via Google AI Studio API.

    Environment:
      - GEMINI_API_KEY or GOOGLE_API_KEY (required)
      - GEMINI_MODEL (default: gemini-2.5-flash)
    """

    name = "gemini"

    def __init__(self) -> None:
        self.api_key = _gemini_key()
        if not self.api_key:
            raise RuntimeError("GEMINI_API_KEY (or GOOGLE_API_KEY) is required for the gemini backend")
        self.model = os.environ.get("GEMINI_MODEL", "gemini-2.5-flash")

    def generate(self, prompt: str, *, max_tokens: int = 4096, fast: bool = False, timeout: int = 180) -> str:
        url = f"{API_ROOT}/{self.model}:generateContent?key={self.api_key}"
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": 0.7, "maxOutputTokens": max_tokens},
        }
        resp = requests.post(url, json=payload, timeout=timeout)
        resp.raise_for_status()
        data = resp.json()
        candidates = data.get("candidates") or []
        if not candidates:
            return ""
        parts = candidates[0].get("content", {}).get("parts") or []
        return "".join(p.get("text", "") for p in parts).strip()


class GeminiImageClient(ImageGenerator):
    """Native image output of a Gemini multimodal model (inline base64 parts)."""

    name = "gemini-image"

    def __init__(self, *, model: Optional[str] = None) -> None:
        self.api_key = _gemini_key()
        if not self.api_key:
            raise RuntimeError("GEMINI_API_KEY (or GOOGLE_API_KEY) is required for Gemini images")
        self.model = model or os.environ.get("GEMINI_IMAGE_MODEL", "gemini-2.0-flash-exp")

    def generate(self, prompt: str, *, timeout: int = 120) -> Optional[bytes]:
        url = f"{API_ROOT}/{self.model}:generateContent?key={self.api_key}"
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"responseModalities": ["TEXT", "IMAGE"]},
        }
        resp = requests.post(url, json=payload, timeout=timeout)
        resp.raise_for_status()
        data = resp.json()
        for cand in data.get("candidates") or []:
            for part in cand.get("content", {}).get("parts") or []:
                inline = part.get("inlineData") or part.get("inline_data")
                if inline and inline.get("data"):
                    return base64.b64decode(inline["data"])
        return None


class ImagenClient(ImageGenerator):
    """Imagen ``predict`` endpoint on the same Google AI Studio key."""

    name = "imagen"

    def __init__(self) -> None:
        self.api_key = _gemini_key()
        if not self.api_key:
            raise RuntimeError("GEMINI_API_KEY (or GOOGLE_API_KEY) is required for Imagen")
        self.model = os.environ.get("IMAGEN_MODEL", "imagen-3.0-generate-002")

    def generate(self, prompt: str, *, timeout: int = 120) -> Optional[bytes]:
        url = f"{API_ROOT}/{self.model}:predict?key={self.api_key}"
        payload = {
            "instances": [{"prompt": prompt}],
            "parameters": {"sampleCount": 1, "aspectRatio": "16:9"},
        }
        resp = requests.post(url, json=payload, timeout=timeout)
        resp.raise_for_status()
        predictions = resp.json().get("predictions") or []
        if predictions and predictions[0].get("bytesBase64Encoded"):
            return base64.b64decode(predictions[0]["bytesBase64Encoded"])
        return None
