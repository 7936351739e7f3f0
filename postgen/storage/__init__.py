"""Persistent article metadata."""

from .content_store import ContentStore, ContentStoreError

__all__ = ["ContentStore", "ContentStoreError"]
