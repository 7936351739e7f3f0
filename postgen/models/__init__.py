"""Typed models used across the pipeline."""

from .topic import Category, ContentType, TopicRecord
from .article import ArticleRecord, Draft, FaqEntry
from .review import FactCheckResult, ProductPick, QualityVerdict, SourceLink
from .site import Marketplace, SiteConfig

__all__ = [
    "Category",
    "ContentType",
    "TopicRecord",
    "ArticleRecord",
    "Draft",
    "FaqEntry",
    "FactCheckResult",
    "ProductPick",
    "QualityVerdict",
    "SourceLink",
    "Marketplace",
    "SiteConfig",
]
