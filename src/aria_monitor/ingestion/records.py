"""Delimited text records backed by an index of delimiter offsets.

Position feeds are sorted and joined overwhelmingly on time, identity and
location.  Records therefore keep their raw text as an owned UTF-8 buffer and
a compact ``int32`` array holding the byte offset of every delimiter.  Any
field can be sliced straight out of the buffer without splitting the whole
line again, while the handful of hot fields are parsed once at construction
by the concrete record types.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from functools import total_ordering
from typing import Optional

import numpy as np

from aria_monitor.errors import IndexOutOfRangeError, MalformedRecordError

__all__ = [
    "DELIMITER",
    "DelimitedRecord",
    "PositionedRecord",
    "check_latitude",
    "check_longitude",
    "find_delimiter_offsets",
    "parse_iso_instant",
    "parse_optional_float",
    "parse_optional_int",
    "parse_optional_string",
]

DELIMITER = ","
_DELIMITER_BYTE = ord(DELIMITER)
_ENCODING = "utf-8"


def find_delimiter_offsets(buffer: bytes) -> np.ndarray:
    """Return the byte offsets of every delimiter found in ``buffer``."""

    view = np.frombuffer(buffer, dtype=np.uint8)
    return np.flatnonzero(view == _DELIMITER_BYTE).astype(np.int32)


def parse_optional_string(token: str) -> Optional[str]:
    return token if token else None


def parse_optional_int(token: str) -> Optional[int]:
    if not token:
        return None
    try:
        return int(token)
    except ValueError:
        return None


def parse_optional_float(token: str) -> Optional[float]:
    """Return ``token`` as a float, or ``None`` when it is empty or not numeric."""

    try:
        value = float(token)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def parse_iso_instant(token: str) -> datetime:
    """Parse an ISO-8601 timestamp into an aware UTC ``datetime``.

    A trailing ``Z`` designator is accepted and naive timestamps are taken to
    be UTC already.
    """

    text = token.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise MalformedRecordError(f"Invalid timestamp {token!r}") from exc
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def check_latitude(value: float) -> float:
    if not -90.0 <= value <= 90.0:
        raise MalformedRecordError(f"Latitude out of range: {value}")
    return value


def check_longitude(value: float) -> float:
    if not -180.0 <= value <= 180.0:
        raise MalformedRecordError(f"Longitude out of range: {value}")
    return value


def _parse_coordinate(token: str, label: str) -> float:
    try:
        value = float(token)
    except ValueError as exc:
        raise MalformedRecordError(f"Invalid {label} {token!r}") from exc
    if math.isnan(value):
        raise MalformedRecordError(f"Invalid {label} {token!r}")
    return value


class DelimitedRecord:
    """Immutable comma-delimited text with lazy positional field access."""

    __slots__ = ("_buffer", "_offsets")

    def __init__(self, raw_text: str) -> None:
        if not isinstance(raw_text, str):
            raise TypeError("raw_text must be a string")
        self._buffer = raw_text.encode(_ENCODING)
        self._offsets = find_delimiter_offsets(self._buffer)

    @property
    def raw_text(self) -> str:
        return self._buffer.decode(_ENCODING)

    @property
    def delimiter_count(self) -> int:
        return int(self._offsets.size)

    @property
    def token_count(self) -> int:
        """Number of fields, including the (possibly empty) field after the last delimiter."""

        return self.delimiter_count + 1

    def token(self, index: int) -> str:
        """Return the ``index``-th delimited field as text."""

        count = self.delimiter_count
        if index < 0 or index > count:
            raise IndexOutOfRangeError(
                f"Requested token {index} but there are only {count} delimiters"
            )
        start = 0 if index == 0 else int(self._offsets[index - 1]) + 1
        end = len(self._buffer) if index == count else int(self._offsets[index])
        return self._buffer[start:end].decode(_ENCODING)

    def tokens(self) -> tuple[str, ...]:
        return tuple(self.token(index) for index in range(self.token_count))

    def _require_delimiters(self, minimum: int) -> None:
        if self.delimiter_count < minimum:
            raise MalformedRecordError(
                f"Expected at least {minimum} delimiters but found {self.delimiter_count}"
            )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DelimitedRecord) or type(other) is not type(self):
            return NotImplemented
        return self._buffer == other._buffer

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._buffer))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.raw_text!r})"


@total_ordering
class PositionedRecord(DelimitedRecord):
    """Delimited record whose time, identity and location are cached eagerly.

    Records order by time first and raw text second so that sorting a mixed
    batch is deterministic.
    """

    __slots__ = ("_time", "_link_id", "_latitude", "_longitude")

    def _cache_position(
        self,
        time: datetime,
        link_id: str,
        latitude_token: str,
        longitude_token: str,
    ) -> None:
        self._time = time
        self._link_id = link_id
        self._latitude = check_latitude(_parse_coordinate(latitude_token, "latitude"))
        self._longitude = check_longitude(_parse_coordinate(longitude_token, "longitude"))

    @property
    def time(self) -> datetime:
        return self._time

    @property
    def link_id(self) -> str:
        """Identifier linking every report of one physical vehicle."""

        return self._link_id

    @property
    def latitude(self) -> float:
        return self._latitude

    @property
    def longitude(self) -> float:
        return self._longitude

    @property
    def lat_long(self) -> tuple[float, float]:
        return self._latitude, self._longitude

    @property
    def altitude(self) -> Optional[float]:
        """Altitude in feet, ``None`` for formats that do not report one."""

        return None

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, PositionedRecord):
            return NotImplemented
        return (self._time, self._buffer) < (other._time, other._buffer)
