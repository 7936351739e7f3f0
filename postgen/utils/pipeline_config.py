from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


# default_factory so values are read at instantiation, after main() loaded .env
@dataclass(slots=True)
class PipelineConfig:
    articles_per_run: int = field(default_factory=lambda: _env_int("ARTICLES_PER_RUN", 2))
    cooldown_seconds: float = field(default_factory=lambda: _env_float("RUN_COOLDOWN_SECONDS", 30.0))
    quality_threshold: int = field(default_factory=lambda: _env_int("QUALITY_THRESHOLD", 6))
    quality_max_attempts: int = field(default_factory=lambda: _env_int("QUALITY_MAX_ATTEMPTS", 3))
    probe_timeout: float = field(default_factory=lambda: _env_float("PROBE_TIMEOUT_SECONDS", 5.0))
    factcheck_max_sources: int = field(default_factory=lambda: _env_int("FACTCHECK_MAX_SOURCES", 5))
    factcheck_max_chars: int = field(default_factory=lambda: _env_int("FACTCHECK_MAX_CHARS", 3000))
    data_dir: Path = field(default_factory=lambda: Path(os.getenv("DATA_DIR", "data")))
    docs_dir: Path = field(default_factory=lambda: Path(os.getenv("DOCS_DIR", "docs")))
    templates_dir: Path = field(default_factory=lambda: Path(os.getenv("TEMPLATES_DIR", "templates")))
    notify_email_csv: str = field(default_factory=lambda: os.getenv("NOTIFY_EMAIL", ""))
    publish_enabled: bool = field(default_factory=lambda: _env_bool("PUBLISH_ENABLED", True))

    @property
    def notify_recipients(self) -> list[str]:
        return [a.strip() for a in self.notify_email_csv.split(",") if a.strip()]
