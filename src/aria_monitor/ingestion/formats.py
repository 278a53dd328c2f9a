"""Registry of the position formats available to the pipeline.

Formats are resolved from a configuration tag (``"csv"``, ``"nop"``) through
an explicit table populated at import time.  Third parties can add their own
format with :func:`register_format`.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Dict

from aria_monitor.errors import FormatRegistryError, UnknownFormatError
from aria_monitor.ingestion.aria_csv import parse_position_report
from aria_monitor.ingestion.nop import parse_nop_line
from aria_monitor.ingestion.reader import LineParser, PositionReader, open_reader
from aria_monitor.ingestion.records import PositionedRecord

__all__ = [
    "PositionFormat",
    "available_formats",
    "get_format",
    "register_format",
]


@dataclass(frozen=True)
class PositionFormat:
    """A named wire format able to parse and re-emit position records."""

    name: str
    parse_line: LineParser

    def as_raw_string(self, record: PositionedRecord) -> str:
        return record.raw_text

    def open(self, source: str | Path | Iterable[str]) -> PositionReader:
        """Return a reader over a file path or an iterable of raw lines."""

        if isinstance(source, (str, Path)):
            return open_reader(source, self.name)
        return PositionReader(source, self.parse_line, source=self.name)


_FORMAT_REGISTRY: Dict[str, PositionFormat] = {}


def _normalise_name(name: str) -> str:
    if not isinstance(name, str) or not name.strip():
        raise FormatRegistryError("format names must be non-empty strings")
    return name.strip().lower()


def register_format(name: str, parser: LineParser) -> PositionFormat:
    """Register ``parser`` under ``name`` and return the resulting format."""

    key = _normalise_name(name)
    if not callable(parser):
        raise FormatRegistryError(f"parser for format '{key}' must be callable")
    existing = _FORMAT_REGISTRY.get(key)
    if existing is not None:
        if existing.parse_line is not parser:
            raise FormatRegistryError(
                f"format '{key}' already registered with a different parser"
            )
        return existing
    position_format = PositionFormat(key, parser)
    _FORMAT_REGISTRY[key] = position_format
    return position_format


def get_format(name: str) -> PositionFormat:
    """Return the format registered under ``name`` (case-insensitive)."""

    key = _normalise_name(name)
    try:
        return _FORMAT_REGISTRY[key]
    except KeyError as exc:
        known = ", ".join(sorted(_FORMAT_REGISTRY))
        raise UnknownFormatError(
            f"unknown position format '{name}' (available: {known})"
        ) from exc


def available_formats() -> tuple[str, ...]:
    return tuple(sorted(_FORMAT_REGISTRY))


def _register_builtin_formats() -> None:
    register_format("csv", parse_position_report)
    register_format("nop", parse_nop_line)


def _clear_registry() -> None:
    """Test helper restoring the built-in formats; not part of the public API."""

    _FORMAT_REGISTRY.clear()
    _register_builtin_formats()


_register_builtin_formats()
