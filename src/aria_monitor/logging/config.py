"""Structured logging configuration shared by every pipeline stage."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

__all__ = ["JsonFormatter", "setup_logging"]

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Attributes present on every LogRecord; anything else came from ``extra``.
_RESERVED = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None)).keys()
) | {"message", "asctime"}

_HANDLER_MARKER = "_aria_monitor_handler"


class JsonFormatter(logging.Formatter):
    """Render each record as one JSON object including its ``extra`` fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key in _RESERVED or key.startswith("_"):
                continue
            payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, ensure_ascii=False)


def _build_handler(output: str) -> logging.Handler:
    if output == "stdout":
        return logging.StreamHandler(sys.stdout)
    if output == "stderr":
        return logging.StreamHandler(sys.stderr)
    return logging.FileHandler(output, encoding="utf-8")


def setup_logging(config: Mapping[str, Any] | None = None) -> logging.Handler:
    """Install the root handler described by ``config["logging"]``.

    Recognised keys are ``level``, ``output`` (``stdout``, ``stderr`` or a
    file path) and ``format`` (``json`` or ``text``).  Repeated calls replace
    the handler installed previously.
    """

    section: Mapping[str, Any] = {}
    if config is not None:
        candidate = config.get("logging", {})
        if isinstance(candidate, Mapping):
            section = candidate

    level_name = str(section.get("level", "info")).lower()
    if level_name not in _LEVELS:
        raise ValueError(f"Unknown logging level: {level_name!r}")
    output = str(section.get("output", "stderr"))
    format_name = str(section.get("format", "json")).lower()
    if format_name not in {"json", "text"}:
        raise ValueError(f"Unknown logging format: {format_name!r}")

    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, _HANDLER_MARKER, False):
            root.removeHandler(existing)
            existing.close()

    handler = _build_handler(output)
    if format_name == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT))
    setattr(handler, _HANDLER_MARKER, True)
    root.addHandler(handler)
    root.setLevel(_LEVELS[level_name])
    return handler
