"""Top-level package for the ARIA monitoring pipeline.

This package parses raw aircraft position streams, classifies the geometry
between aircraft headings, gives detected events a content-derived identity
and aggregates them into bounded, mergeable statistics.
"""

from ._version import __version__
from .configuration import PipelineSettings, load_settings
from .events import AirborneEvent, build_event
from .geometry import ConflictAngle, classify_conflict
from .ingestion import (
    PositionReader,
    PositionReport,
    RadarHit,
    get_format,
    open_reader,
    parse_nop_line,
    parse_position_report,
    register_format,
)
from .metrics import (
    MIXED,
    DailyMetric,
    EventStatisticsCollector,
    EventSummarizer,
    RollingTimeHistogram,
    Single,
    TimeWindow,
    combine_metrics,
)
from .output import (
    add_unique_id,
    canonicalize,
    hash_json,
    hash_of,
    with_injected_field,
)
from .pipeline import EventPipeline, summarize_partitions

__all__ = [
    "AirborneEvent",
    "ConflictAngle",
    "DailyMetric",
    "EventPipeline",
    "EventStatisticsCollector",
    "EventSummarizer",
    "MIXED",
    "PipelineSettings",
    "PositionReader",
    "PositionReport",
    "RadarHit",
    "RollingTimeHistogram",
    "Single",
    "TimeWindow",
    "__version__",
    "add_unique_id",
    "build_event",
    "canonicalize",
    "classify_conflict",
    "combine_metrics",
    "get_format",
    "hash_json",
    "hash_of",
    "load_settings",
    "open_reader",
    "parse_nop_line",
    "parse_position_report",
    "register_format",
    "summarize_partitions",
    "with_injected_field",
]
