"""Parsing of raw aircraft position streams."""

from aria_monitor.ingestion.aria_csv import PositionReport, parse_position_report
from aria_monitor.ingestion.formats import (
    PositionFormat,
    available_formats,
    get_format,
    register_format,
)
from aria_monitor.ingestion.nop import (
    AgwRadarHit,
    CenterRadarHit,
    MeartsRadarHit,
    NopMessageType,
    RadarHit,
    StarsRadarHit,
    parse_nop_line,
)
from aria_monitor.ingestion.reader import PositionReader, open_reader
from aria_monitor.ingestion.records import DelimitedRecord, PositionedRecord

__all__ = [
    "AgwRadarHit",
    "CenterRadarHit",
    "DelimitedRecord",
    "MeartsRadarHit",
    "NopMessageType",
    "PositionFormat",
    "PositionReader",
    "PositionReport",
    "PositionedRecord",
    "RadarHit",
    "StarsRadarHit",
    "available_formats",
    "get_format",
    "open_reader",
    "parse_nop_line",
    "parse_position_report",
    "register_format",
]
