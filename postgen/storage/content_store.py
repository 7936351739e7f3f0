from __future__ import annotations

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, List

from ..models import ArticleRecord
from ..utils.logging import get_logger

logger = get_logger("postgen.storage")

POSTS_FILE = "posts.json"
TOPICS_FILE = "topics-used.json"
REBUILD_MARKER = ".rebuild-pending"


class ContentStoreError(RuntimeError):
    """A store file exists but cannot be decoded; refuse to overwrite it."""


class ContentStore:
    """File-backed, append-only store of article metadata and used topics.

    Files live in ``data_dir``: ``posts.json`` (list of article records,
    oldest first) and ``topics-used.json`` (list of raw topic strings).
    Writes go through a temp file and ``os.replace`` so a crash never
    leaves a half-written list behind.
    """

    def __init__(self, data_dir: Path | str = "data") -> None:
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.posts_path = self.data_dir / POSTS_FILE
        self.topics_path = self.data_dir / TOPICS_FILE
        self.marker_path = self.data_dir / REBUILD_MARKER
        self._lock = threading.Lock()

    # ---------------- Persistence -----------------
    def _load_list(self, path: Path) -> List[Any]:
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text(encoding="utf-8") or "[]")
        except json.JSONDecodeError as exc:
            raise ContentStoreError(f"Corrupt store file {path}: {exc}") from exc
        if not isinstance(data, list):
            raise ContentStoreError(f"Store file {path} does not contain a list")
        return data

    def _write_list(self, path: Path, rows: List[Any]) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(rows, fh, ensure_ascii=False, indent=2)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    # ---------------- Articles -----------------
    def read_all(self) -> List[ArticleRecord]:
        return [ArticleRecord.from_dict(row) for row in self._load_list(self.posts_path)]

    def existing_slugs(self) -> List[str]:
        return [r.slug for r in self.read_all()]

    def append_article(self, record: ArticleRecord) -> None:
        with self._lock:
            rows = self._load_list(self.posts_path)
            rows.append(record.to_dict())
            self._write_list(self.posts_path, rows)
        logger.info("Stored article record %s (%d total)", record.slug, len(rows))

    # ---------------- Topics -----------------
    def read_used_topics(self) -> List[str]:
        return [str(t) for t in self._load_list(self.topics_path)]

    def append_used_topic(self, text: str) -> None:
        with self._lock:
            rows = self._load_list(self.topics_path)
            rows.append(text)
            self._write_list(self.topics_path, rows)

    # ---------------- Rebuild bookkeeping -----------------
    @property
    def rebuild_pending(self) -> bool:
        return self.marker_path.exists()

    def mark_rebuild_pending(self) -> None:
        self.marker_path.write_text("1\n", encoding="utf-8")

    def clear_rebuild_pending(self) -> None:
        self.marker_path.unlink(missing_ok=True)
