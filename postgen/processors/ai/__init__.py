"""External generative service adapters (text, image, search)."""

from .base import ImageGenerator, SearchClient, SearchResponse, TextGenerator
from .factory import create_image_clients, create_search_client, create_text_client
from .parsing import MalformedResponse, ParseResult, ParseStatus

__all__ = [
    "ImageGenerator",
    "SearchClient",
    "SearchResponse",
    "TextGenerator",
    "create_image_clients",
    "create_search_client",
    "create_text_client",
    "MalformedResponse",
    "ParseResult",
    "ParseStatus",
]
