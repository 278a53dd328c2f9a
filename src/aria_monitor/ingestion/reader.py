"""Fail-soft, forward-only readers of raw position streams."""

from __future__ import annotations

import gzip
import logging
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path
from typing import IO, Optional, Union

from aria_monitor.errors import MalformedRecordError
from aria_monitor.ingestion.records import PositionedRecord

__all__ = ["LineParser", "PositionReader", "open_reader"]

logger = logging.getLogger(__name__)

LineParser = Callable[[str], Optional[PositionedRecord]]
RawLine = Union[str, bytes]

_COMPRESSED_SUFFIXES = frozenset({".gz", ".gzip"})
_ENCODING = "utf-8"


class PositionReader(Iterator[PositionedRecord]):
    """Lazily parse position records from an iterable of text lines.

    Lines may be text or raw bytes; bytes are decoded one line at a time.
    Malformed lines, including lines that are not valid UTF-8, never abort
    the stream: they are skipped and counted in :attr:`error_count`.  Lines
    the parser recognises but that carry no position (``None`` results) and
    blank lines are skipped and counted in :attr:`skipped_count`.  The reader
    is single pass; reopen the source to read it again.
    """

    def __init__(
        self,
        lines: Iterable[RawLine],
        parse_line: LineParser,
        *,
        source: str | None = None,
        handle: IO[bytes] | IO[str] | None = None,
    ) -> None:
        self._lines: Iterator[RawLine] | None = iter(lines)
        self._parse_line = parse_line
        self._handle = handle
        self.source = source
        self.line_count = 0
        self.error_count = 0
        self.skipped_count = 0

    def __iter__(self) -> "PositionReader":
        return self

    def __next__(self) -> PositionedRecord:
        while self._lines is not None:
            try:
                line = next(self._lines)
            except StopIteration:
                self.close()
                break
            self.line_count += 1
            try:
                text = _decode(line).rstrip("\r\n")
                if not text.strip():
                    self.skipped_count += 1
                    continue
                record = self._parse_line(text)
            except (MalformedRecordError, UnicodeDecodeError) as exc:
                self._record_error(exc)
                continue
            if record is None:
                self.skipped_count += 1
                continue
            return record
        raise StopIteration

    def _record_error(self, exc: Exception) -> None:
        self.error_count += 1
        logger.debug(
            "Skipping malformed position record",
            extra={
                "event": "ingestion.malformed_record",
                "source": self.source,
                "line_number": self.line_count,
                "reason": str(exc),
            },
        )

    @property
    def closed(self) -> bool:
        return self._lines is None

    def close(self) -> None:
        """Exhaust the reader and release any file handle it owns."""

        if self._lines is None:
            return
        self._lines = None
        if self._handle is not None:
            self._handle.close()
            self._handle = None
        logger.info(
            "Position reader closed",
            extra={
                "event": "ingestion.reader_closed",
                "source": self.source,
                "line_count": self.line_count,
                "error_count": self.error_count,
                "skipped_count": self.skipped_count,
            },
        )

    def __enter__(self) -> "PositionReader":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _decode(line: RawLine) -> str:
    if isinstance(line, bytes):
        return line.decode(_ENCODING)
    return line


def _open_binary(path: Path) -> IO[bytes]:
    if path.suffix.lower() in _COMPRESSED_SUFFIXES:
        return gzip.open(path, "rb")
    return path.open("rb")


def open_reader(path: str | Path, format: str = "csv") -> PositionReader:
    """Open ``path`` (plain text or gzip) as a reader of the named format."""

    from aria_monitor.ingestion.formats import get_format

    position_format = get_format(format)
    source = Path(path)
    if not source.exists():
        raise FileNotFoundError(f"Position file {source} does not exist")
    handle = _open_binary(source)
    return PositionReader(
        handle,
        position_format.parse_line,
        source=str(source),
        handle=handle,
    )
