"""Article pipeline stages: topic research, drafting, review and enrichment."""

from .normalize import clean_html_to_text, normalize_plain_text, read_time_minutes, slugify, unique_slug
from .topic import research_topic
from .draft import write_draft
from .factcheck import fact_check
from .quality import QualityGate, QualityOutcome
from .monetize import inject_product
from .images import HeroImage, acquire_hero_image

__all__ = [
    "clean_html_to_text",
    "normalize_plain_text",
    "read_time_minutes",
    "slugify",
    "unique_slug",
    "research_topic",
    "write_draft",
    "fact_check",
    "QualityGate",
    "QualityOutcome",
    "inject_product",
    "HeroImage",
    "acquire_hero_image",
]
