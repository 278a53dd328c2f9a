"""Radar hits from the NOP feed, the second interchangeable position format.

A NOP stream interleaves radar hits with several other message kinds
(heartbeats, flight plans, hand-offs...).  Only the four radar hit flavours
carry positions; the remaining recognised messages are reported as ``None`` by
:func:`parse_nop_line` so that readers can skip them without treating them as
errors.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from aria_monitor.errors import MalformedRecordError
from aria_monitor.ingestion.records import (
    PositionedRecord,
    parse_optional_float,
    parse_optional_int,
    parse_optional_string,
)

__all__ = [
    "AgwRadarHit",
    "CenterRadarHit",
    "MeartsRadarHit",
    "NopMessageType",
    "RadarHit",
    "StarsRadarHit",
    "parse_nop_line",
    "parse_nop_time",
]

_NOP_TIME_FORMAT = "%m/%d/%Y %H:%M:%S.%f"

# Fields shared by every radar hit flavour.
FACILITY_INDEX = 2
DATE_INDEX = 3
TIME_INDEX = 4
CALLSIGN_INDEX = 5
AIRCRAFT_TYPE_INDEX = 6
EQUIPMENT_SUFFIX_INDEX = 7
BEACON_INDEX = 8
ALTITUDE_INDEX = 9
SPEED_INDEX = 10
HEADING_INDEX = 11
LATITUDE_INDEX = 12
LONGITUDE_INDEX = 13
TRACK_ID_INDEX = 14
SENSOR_INDEX = 21
ARRIVAL_AIRPORT_INDEX = 26
FLIGHT_RULES_INDEX = 28
WEIGHT_CLASS_INDEX = 36
ACTIVE_SENSOR_INDEX = 37


class NopMessageType(Enum):
    """Message kinds found in a NOP stream, keyed by their line prefix."""

    STARS_RADAR_HIT = "[RH],STARS,"
    CENTER_RADAR_HIT = "[RH],Center,"
    AGW_RADAR_HIT = "[RH],AGW,"
    MEARTS_RADAR_HIT = "[RH],MEARTS,"
    FLIGHT_PLAN = "[FP],"
    HEARTBEAT = "[HB],"
    BYTES = "[Bytes]"
    CONFLICT_ALERT = "[CA],"
    INSTRUMENT_APPROACH = "[IA],"
    HAND_OFF = "[OH],"
    HF = "[HF],"
    TRAFFIC_COUNT = "[TC],"
    SH = "[SH],"

    @property
    def prefix(self) -> str:
        return self.value

    @property
    def is_radar_hit(self) -> bool:
        return self in _RADAR_HIT_TYPES

    @classmethod
    def for_line(cls, text: str) -> Optional["NopMessageType"]:
        for candidate in cls:
            if text.startswith(candidate.value):
                return candidate
        return None


def parse_nop_time(date_token: str, time_token: str) -> datetime:
    """Combine the NOP date (``MM/dd/yyyy``) and time (``HH:mm:ss.SSS``) fields.

    Some feeds write the final millisecond as ``1.00`` instead of ``.999``
    (``00:57:121.00``); that single defect is repaired, anything else fails.
    """

    date_text = date_token.replace("-", "/")
    try:
        parsed = datetime.strptime(f"{date_text} {time_token}", _NOP_TIME_FORMAT)
    except ValueError as exc:
        if time_token.endswith("1.00"):
            repaired = time_token[: time_token.rindex("1.00")] + ".999"
            return parse_nop_time(date_token, repaired)
        raise MalformedRecordError(
            f"Invalid NOP time {date_token!r} {time_token!r}"
        ) from exc
    return parsed.replace(tzinfo=timezone.utc)


class RadarHit(PositionedRecord):
    """Common accessors of the four radar hit flavours."""

    __slots__ = ()

    message_type: NopMessageType

    def __init__(self, raw_text: str) -> None:
        super().__init__(raw_text)
        if not raw_text.startswith(self.message_type.prefix):
            raise MalformedRecordError(
                f"Expected a {self.message_type.name} message: {raw_text[:40]!r}"
            )
        self._require_delimiters(TRACK_ID_INDEX)
        self._cache_position(
            parse_nop_time(self.token(DATE_INDEX), self.token(TIME_INDEX)),
            self.token(TRACK_ID_INDEX),
            self.token(LATITUDE_INDEX),
            self.token(LONGITUDE_INDEX),
        )

    def _optional_token(self, index: int) -> Optional[str]:
        if index > self.delimiter_count:
            return None
        return parse_optional_string(self.token(index))

    @property
    def facility(self) -> str:
        # Backup facilities are written as "XXX_B".
        return self.token(FACILITY_INDEX)[:3]

    @property
    def callsign(self) -> Optional[str]:
        return parse_optional_string(self.token(CALLSIGN_INDEX))

    @property
    def aircraft_type(self) -> Optional[str]:
        return parse_optional_string(self.token(AIRCRAFT_TYPE_INDEX))

    @property
    def equipment_suffix(self) -> Optional[str]:
        return parse_optional_string(self.token(EQUIPMENT_SUFFIX_INDEX))

    @property
    def reported_beacon_code(self) -> Optional[str]:
        return parse_optional_string(self.token(BEACON_INDEX))

    @property
    def altitude_in_hundreds_of_feet(self) -> Optional[int]:
        return parse_optional_int(self.token(ALTITUDE_INDEX))

    @property
    def altitude(self) -> Optional[float]:
        hundreds = self.altitude_in_hundreds_of_feet
        return None if hundreds is None else float(hundreds * 100)

    @property
    def speed(self) -> Optional[float]:
        return parse_optional_float(self.token(SPEED_INDEX))

    @property
    def heading(self) -> Optional[float]:
        return parse_optional_float(self.token(HEADING_INDEX))

    @property
    def sensor_id_letters(self) -> Optional[str]:
        return self._optional_token(SENSOR_INDEX)

    @property
    def arrival_airport(self) -> Optional[str]:
        return self._optional_token(ARRIVAL_AIRPORT_INDEX)

    @property
    def flight_rules(self) -> Optional[str]:
        return self._optional_token(FLIGHT_RULES_INDEX)

    @property
    def weight_class(self) -> Optional[str]:
        """Heavy, large or small indicator."""

        return self._optional_token(WEIGHT_CLASS_INDEX)

    @property
    def on_active_sensor(self) -> Optional[bool]:
        token = self._optional_token(ACTIVE_SENSOR_INDEX)
        if token == "1":
            return True
        if token == "0":
            return False
        return None


class _TerminalRadarHit(RadarHit):
    """STARS and AGW hits share the terminal track layout."""

    __slots__ = ()

    @property
    def track_number(self) -> str:
        return self.token(TRACK_ID_INDEX)

    @property
    def assigned_beacon_code(self) -> Optional[int]:
        return parse_optional_int(self._optional_token(15) or "")

    @property
    def x(self) -> Optional[float]:
        return parse_optional_float(self._optional_token(16) or "")

    @property
    def y(self) -> Optional[float]:
        return parse_optional_float(self._optional_token(17) or "")

    @property
    def scratchpad(self) -> Optional[str]:
        return self._optional_token(22)

    @property
    def entry_fix(self) -> Optional[str]:
        return self._optional_token(23)

    @property
    def exit_fix(self) -> Optional[str]:
        return self._optional_token(24)


class _EnRouteRadarHit(RadarHit):
    """Center and MEARTS hits are keyed by the host computer id."""

    __slots__ = ()

    @property
    def computer_id(self) -> Optional[str]:
        return parse_optional_string(self.token(TRACK_ID_INDEX))

    @property
    def controlling_facility_sector(self) -> Optional[str]:
        return self._optional_token(19)

    @property
    def departure_airport(self) -> Optional[str]:
        return self._optional_token(32)

    @property
    def eta(self) -> Optional[str]:
        return self._optional_token(33)


class StarsRadarHit(_TerminalRadarHit):
    __slots__ = ()
    message_type = NopMessageType.STARS_RADAR_HIT


class AgwRadarHit(_TerminalRadarHit):
    __slots__ = ()
    message_type = NopMessageType.AGW_RADAR_HIT

    @property
    def departure_airport(self) -> Optional[str]:
        return self._optional_token(32)


class CenterRadarHit(_EnRouteRadarHit):
    __slots__ = ()
    message_type = NopMessageType.CENTER_RADAR_HIT


class MeartsRadarHit(_EnRouteRadarHit):
    __slots__ = ()
    message_type = NopMessageType.MEARTS_RADAR_HIT


_RADAR_HIT_TYPES = frozenset(
    {
        NopMessageType.STARS_RADAR_HIT,
        NopMessageType.CENTER_RADAR_HIT,
        NopMessageType.AGW_RADAR_HIT,
        NopMessageType.MEARTS_RADAR_HIT,
    }
)

_HIT_CLASSES: dict[NopMessageType, type[RadarHit]] = {
    NopMessageType.STARS_RADAR_HIT: StarsRadarHit,
    NopMessageType.CENTER_RADAR_HIT: CenterRadarHit,
    NopMessageType.AGW_RADAR_HIT: AgwRadarHit,
    NopMessageType.MEARTS_RADAR_HIT: MeartsRadarHit,
}


def parse_nop_line(raw_text: str) -> Optional[RadarHit]:
    """Return the radar hit encoded in ``raw_text``.

    Recognised non-position messages yield ``None``; unrecognised text raises
    :class:`MalformedRecordError`.
    """

    text = raw_text.rstrip("\r\n")
    message_type = NopMessageType.for_line(text)
    if message_type is None:
        raise MalformedRecordError(f"Unrecognised NOP message: {text[:40]!r}")
    hit_class = _HIT_CLASSES.get(message_type)
    if hit_class is None:
        return None
    return hit_class(text)
