from __future__ import annotations

import os
from typing import List, Optional

from .base import ImageGenerator, SearchClient, TextGenerator
from ...utils.logging import get_logger

logger = get_logger("postgen.ai.factory")


def create_text_client(*, backend: Optional[str] = None) -> TextGenerator:
    """Create the text-generation client from TEXT_BACKEND env or explicit value.

    Supported values: "anthropic" (default), "gemini" or "ollama". No local fallbacks.
    """
    selected = (backend or os.environ.get("TEXT_BACKEND", "anthropic")).lower()

    if selected == "anthropic":
        from .anthropic import AnthropicClient  # lazy import

        return AnthropicClient()
    if selected == "gemini":
        from .gemini import GeminiClient  # lazy import

        return GeminiClient()
    if selected == "ollama":
        from .ollama import OllamaClient  # lazy import

        return OllamaClient()

    raise ValueError(
        f"Unsupported TEXT_BACKEND '{selected}'. Use 'anthropic', 'gemini' or 'ollama'."
    )


def create_image_clients() -> List[ImageGenerator]:
    """Image generators in fallback order, limited to those with credentials.

    Order: Gemini native image output, Imagen, OpenAI.
    """
    clients: List[ImageGenerator] = []
    if os.environ.get("GEMINI_API_KEY") or os.environ.get("GOOGLE_API_KEY"):
        from .gemini import GeminiImageClient, ImagenClient

        clients.append(GeminiImageClient())
        clients.append(ImagenClient())
    if os.environ.get("OPENAI_API_KEY"):
        from .openai import OpenAIImageClient

        clients.append(OpenAIImageClient())
    if not clients:
        logger.info("No image generation credentials configured; placeholder images only")
    return clients


def create_search_client() -> Optional[SearchClient]:
    """Search/verification client, or ``None`` when PERPLEXITY_API_KEY is unset."""
    if not os.environ.get("PERPLEXITY_API_KEY"):
        logger.info("PERPLEXITY_API_KEY not set; fact-check and product lookup disabled")
        return None
    from .perplexity import PerplexityClient

    return PerplexityClient()
