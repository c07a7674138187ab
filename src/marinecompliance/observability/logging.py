"""Structured JSON logging with async-safe correlation IDs.

One dashboard request produces a status probe, a primary attempt, maybe a
fallback attempt, and a commit or rollback. They all share the request's
correlation_id, so a failed analysis can be followed across the async
calls it touched.
"""

import json
import logging
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Iterator, TextIO

correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

# Keys accepted through logger.x("...", extra={...})
EXTRA_FIELDS = ("api_type", "dedup_key", "project_type", "lat", "lon", "step", "duration_ms")

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_correlation_id() -> str:
    """Return the current correlation ID, or empty string if not set."""
    return correlation_id.get()


@contextmanager
def bind_correlation_id(cid: str | None = None) -> Iterator[str]:
    """Set the correlation ID for the enclosed block; a new UUID when ``cid`` is empty."""
    cid = cid or str(uuid.uuid4())
    token = correlation_id.set(cid)
    try:
        yield cid
    finally:
        correlation_id.reset(token)


class JSONFormatter(logging.Formatter):
    """Single-line JSON records."""

    def __init__(self, service: str = "marinecompliance") -> None:
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service,
            "logger": record.name,
            "message": record.getMessage(),
        }
        cid = correlation_id.get()
        if cid:
            entry["correlation_id"] = cid
        entry.update(
            (key, getattr(record, key))
            for key in EXTRA_FIELDS
            if getattr(record, key, None) is not None
        )
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(json_format: bool = True, level: str = "INFO", stream: TextIO | None = None) -> None:
    """Configure the root logger.

    Args:
        json_format: JSON lines for the API service, plain text for the CLI.
        level: Log level name; unknown names fall back to INFO.
        stream: Where records go (stderr by default).
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)

    for noisy in ("httpx", "httpcore", "uvicorn.access", "mlflow"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
