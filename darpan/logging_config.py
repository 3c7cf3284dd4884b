"""Logging setup for the API process.

JSON lines in production, a compact human-readable format for local runs.
"""
from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

from .config import settings

# Extra attributes worth surfacing when callers pass them via ``extra=``
_CONTEXT_FIELDS = ("analysis_id", "document_type", "filename", "user_id", "status")

_NOISY_LOGGERS = ("httpx", "httpcore", "openai", "pdfminer", "PIL", "multipart")


class JsonFormatter(logging.Formatter):
    """Single-line JSON records for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for field in _CONTEXT_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable formatter for development."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )


def setup_logging(level: str | None = None, fmt: str | None = None) -> None:
    """Configure the root logger from settings.

    Safe to call more than once; previously installed handlers are replaced.

    Args:
        level: Override for ``settings.logging.level``
        fmt: Override for ``settings.logging.format`` ("json" or "text")
    """
    level_name = (level or settings.logging.level).upper()
    formatter: logging.Formatter = (
        JsonFormatter() if (fmt or settings.logging.format).lower() == "json" else TextFormatter()
    )

    handlers: list[logging.Handler] = []

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    handlers.append(stream_handler)

    if settings.logging.file:
        file_handler = logging.FileHandler(settings.logging.file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(getattr(logging, level_name, logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(f"Logging configured: level={level_name}")
