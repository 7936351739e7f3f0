"""Logging setup for the generator.

:func:`configure_logging` is called once from ``main``; every module then
takes a named logger via :func:`get_logger` (``postgen.<area>``).

Environment:
  - LOG_LEVEL (default INFO)
  - LOG_OUTPUT: stdout | file | both (CI runs always log to stdout)
  - LOG_FILE_PATH (default logs/postgen.log)
  - LOG_FORMAT: text | json
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import List, Literal, Optional

DEFAULT_LEVEL = "INFO"
DEFAULT_OUTPUT = "stdout"
DEFAULT_FILE_PATH = "logs/postgen.log"

TEXT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
JSON_FORMAT = (
    '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "name": "%(name)s", '
    '"file": "%(filename)s:%(lineno)d", "message": "%(message)s"}'
)

# HTTP and GitHub client libraries log every request
QUIET_LOGGERS = ("urllib3", "github", "requests")

LogOutput = Literal["stdout", "file", "both"]
LogFormat = Literal["text", "json"]


def running_in_ci() -> bool:
    """True on GitHub Actions or any runner that sets ``CI``."""
    return os.environ.get("GITHUB_ACTIONS") == "true" or bool(os.environ.get("CI"))


def _handlers(output: str, file_path: str) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []
    if output in ("stdout", "both"):
        handlers.append(logging.StreamHandler(sys.stdout))
    if output in ("file", "both"):
        directory = os.path.dirname(file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        handlers.append(RotatingFileHandler(file_path, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"))
    return handlers


def configure_logging(
    level: str | int | None = None,
    output: LogOutput | None = None,
    file_path: str | None = None,
    log_format: LogFormat | None = None,
    module: Optional[str] = None,
) -> None:
    """Configure the root logger.

    Parameters
    ----------
    level:
        Level name (e.g. "DEBUG") or numeric value.
    output:
        "stdout", "file" or "both". Forced to "stdout" in CI unless
        LOG_OUTPUT is set explicitly.
    file_path:
        Log file used by the "file" and "both" outputs.
    log_format:
        "text" or "json".
    module:
        Optional logger name that gets ``level`` as well.
    """
    # Read at call time: main() loads .env before calling this
    level = level or os.environ.get("LOG_LEVEL", DEFAULT_LEVEL).upper()
    log_format = log_format or os.environ.get("LOG_FORMAT", "text").lower()
    if output is None:
        if running_in_ci() and "LOG_OUTPUT" not in os.environ:
            output = "stdout"
        else:
            output = os.environ.get("LOG_OUTPUT", DEFAULT_OUTPUT).lower()
    file_path = file_path or os.environ.get("LOG_FILE_PATH", DEFAULT_FILE_PATH)

    formatter = logging.Formatter(JSON_FORMAT if log_format == "json" else TEXT_FORMAT)
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    for handler in _handlers(output, file_path):
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    if module:
        logging.getLogger(module).setLevel(level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
