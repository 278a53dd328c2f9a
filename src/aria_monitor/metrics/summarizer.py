"""Streaming reduction of airborne events into per-day, per-facility metrics."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date as date_type, datetime, timezone
from typing import Union

import pandas as pd

from aria_monitor.errors import ValidationError
from aria_monitor.events import AirborneEvent
from aria_monitor.metrics.daily import NUM_HISTOGRAM_BINS, DailyMetric, is_valid_date

__all__ = ["EventSummarizer"]

logger = logging.getLogger(__name__)

DateKey = Union[str, date_type, datetime]


def _date_key(value: DateKey) -> str:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.strftime("%Y-%m-%d")
    if isinstance(value, date_type):
        return value.isoformat()
    if isinstance(value, str) and is_valid_date(value):
        return value
    raise ValidationError(f"Invalid date {value!r}, expected YYYY-MM-DD")


class EventSummarizer:
    """Route events into :class:`DailyMetric` buckets keyed by date and facility.

    Direct ingestion uses the strict :meth:`DailyMetric.extend` path, while
    :meth:`ingest_all` merges another summarizer through
    :meth:`DailyMetric.combine`.  Instances are not synchronised; give each
    worker its own summarizer and merge them from one thread.
    """

    def __init__(self, events: Iterable[AirborneEvent] = ()) -> None:
        self._metrics: dict[str, dict[str, DailyMetric]] = {}
        for event in events:
            self.accept(event)

    def accept(self, event: AirborneEvent) -> DailyMetric:
        """Fold ``event`` into its bucket and return the updated metric."""

        by_facility = self._metrics.setdefault(event.date, {})
        existing = by_facility.get(event.facility)
        if existing is None:
            updated = DailyMetric.from_event(event)
        else:
            updated = existing.extend(event)
        by_facility[event.facility] = updated
        return updated

    def ingest_all(self, other: "EventSummarizer") -> None:
        """Merge every bucket held by ``other`` into this summarizer."""

        combined = 0
        inserted = 0
        for day, foreign in other._metrics.items():
            by_facility = self._metrics.setdefault(day, {})
            for facility, metric in foreign.items():
                existing = by_facility.get(facility)
                if existing is None:
                    by_facility[facility] = metric
                    inserted += 1
                else:
                    by_facility[facility] = existing.combine(metric)
                    combined += 1
        logger.debug(
            "Merged event summaries",
            extra={"event": "summaries.merged", "combined": combined, "inserted": inserted},
        )

    def summaries_for(self, day: DateKey) -> dict[str, DailyMetric]:
        """Return the facility to metric mapping recorded for ``day``."""

        return dict(self._metrics.get(_date_key(day), {}))

    def summaries_for_facility(self, facility: str) -> dict[str, DailyMetric]:
        return {
            day: by_facility[facility]
            for day, by_facility in sorted(self._metrics.items())
            if facility in by_facility
        }

    def all_summaries(self) -> list[DailyMetric]:
        return [
            by_facility[facility]
            for day, by_facility in sorted(self._metrics.items())
            for facility in sorted(by_facility)
        ]

    def date_keys(self) -> list[str]:
        return sorted(day for day, by_facility in self._metrics.items() if by_facility)

    def facility_keys(self) -> list[str]:
        return sorted({facility for by_facility in self._metrics.values() for facility in by_facility})

    @property
    def event_count(self) -> int:
        return sum(metric.event_count for metric in self.all_summaries())

    def __len__(self) -> int:
        return sum(len(by_facility) for by_facility in self._metrics.values())

    def to_frame(self) -> pd.DataFrame:
        """Return one row per (date, facility) bucket."""

        columns = ["date", "facility", "eventCount", "avgEventScore"] + [
            f"bin_{index:02d}" for index in range(NUM_HISTOGRAM_BINS)
        ]
        rows = []
        for metric in self.all_summaries():
            rows.append(
                [
                    metric.date_value,
                    metric.facility_value,
                    metric.event_count,
                    metric.avg_event_score,
                    *metric.histogram,
                ]
            )
        return pd.DataFrame(rows, columns=columns)
