"""The compact comma-delimited position report format.

A report carries two partition fields, an ISO-8601 timestamp, the link id
shared by every report of one vehicle, latitude and longitude.  An optional
seventh field holds the altitude in feet; anything after it is preserved
verbatim and stays reachable through :meth:`PositionReport.token`.

``,,2018-03-24T14:41:09.371Z,vehicleIdNumber,-27.0,-175.8,,extraData``
"""

from __future__ import annotations

from typing import Optional

from aria_monitor.ingestion.records import (
    PositionedRecord,
    parse_iso_instant,
    parse_optional_float,
)

__all__ = ["MIN_DELIMITERS", "PositionReport", "parse_position_report"]

TIME_INDEX = 2
LINK_ID_INDEX = 3
LATITUDE_INDEX = 4
LONGITUDE_INDEX = 5
ALTITUDE_INDEX = 6

MIN_DELIMITERS = LONGITUDE_INDEX


class PositionReport(PositionedRecord):
    """One arrival of one vehicle in the compact CSV format."""

    __slots__ = ()

    def __init__(self, raw_text: str) -> None:
        super().__init__(raw_text)
        self._require_delimiters(MIN_DELIMITERS)
        self._cache_position(
            parse_iso_instant(self.token(TIME_INDEX)),
            self.token(LINK_ID_INDEX),
            self.token(LATITUDE_INDEX),
            self.token(LONGITUDE_INDEX),
        )

    @property
    def partitions(self) -> tuple[str, str]:
        return self.token(0), self.token(1)

    @property
    def altitude(self) -> Optional[float]:
        if self.delimiter_count < ALTITUDE_INDEX:
            return None
        return parse_optional_float(self.token(ALTITUDE_INDEX))

    @property
    def extra_fields(self) -> tuple[str, ...]:
        """Fields found after the altitude column."""

        return tuple(
            self.token(index) for index in range(ALTITUDE_INDEX + 1, self.token_count)
        )


def parse_position_report(raw_text: str) -> PositionReport:
    """Parse one raw line, raising :class:`MalformedRecordError` on bad input."""

    return PositionReport(raw_text.rstrip("\r\n"))
