"""Centralized logging helpers.

Structured fields travel through ``extra=extra_context(...)`` so handlers can
render them; credentials never reach a log line because every URL goes
through ``safe_url`` first.
"""
from __future__ import annotations

import logging
import os
import time
import urllib.parse
from typing import Any, Dict, Optional

from constants import Constants

_STRUCTURED_KEYS = (
    "event",
    "component",
    "action",
    "outcome",
    "target",
    "notation",
    "repository",
    "status_code",
    "duration_ms",
    "attempt",
    "count",
)


class StructuredFormatter(logging.Formatter):
    """Formatter appending structured context fields as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        fields = []
        for key in _STRUCTURED_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                fields.append(f"{key}={value}")
        if fields:
            return f"{base} ({' '.join(fields)})"
        return base


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger once.

    The level comes from ``level`` or the NAETHER_LOG_LEVEL environment
    variable, defaulting to INFO. Repeated calls only adjust the level.
    """
    level_name = (level or os.environ.get(Constants.ENV_LOG_LEVEL) or "INFO").upper()
    level_value = getattr(logging, level_name, logging.INFO)
    root = logging.getLogger()
    if not any(getattr(h, "_naether_handler", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(StructuredFormatter(Constants.LOG_FORMAT))
        handler._naether_handler = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(level_value)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Return an ``extra`` mapping with None values dropped."""
    return {k: v for k, v in fields.items() if v is not None}


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Cheap guard around expensive DEBUG payloads."""
    return logger.isEnabledFor(logging.DEBUG)


def redact(value: Optional[str]) -> str:
    """Mask a secret, keeping nothing of it."""
    if not value:
        return ""
    return "[REDACTED]"


def safe_url(url: str) -> str:
    """Strip userinfo and sensitive query values from a URL for logging."""
    try:
        parts = urllib.parse.urlsplit(url)
    except ValueError:
        return "[INVALID URL]"
    netloc = parts.netloc
    if "@" in netloc:
        netloc = f"{redact('userinfo')}@{netloc.rsplit('@', 1)[1]}"
    query = parts.query
    if query:
        pairs = urllib.parse.parse_qsl(query, keep_blank_values=True)
        masked = [
            (k, redact(v) if k.lower() in ("token", "password", "access_token", "key") else v)
            for k, v in pairs
        ]
        query = urllib.parse.urlencode(masked)
    return urllib.parse.urlunsplit((parts.scheme, netloc, parts.path, query, parts.fragment))


class Timer:
    """Context manager measuring wall-clock duration."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *exc) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)
