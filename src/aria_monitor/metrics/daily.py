"""Immutable, mergeable per-day event statistics.

A :class:`DailyMetric` summarises the events of one facility on one UTC
date: how many there were, their mean score and a fixed-width histogram of
the scores.  Metrics are never mutated; extending or combining them returns
a new instance, so partial results computed by independent workers can be
merged in any grouping.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

from aria_monitor.errors import MismatchError, ValidationError
from aria_monitor.metrics.scope import MIXED, Scope, Single, merge_scopes, scope_from_optional
from aria_monitor.output.hashing import load_json

if TYPE_CHECKING:  # pragma: no cover - import for type checkers only
    from aria_monitor.events import AirborneEvent

__all__ = [
    "DailyMetric",
    "HISTOGRAM_BIN_WIDTH",
    "NUM_HISTOGRAM_BINS",
    "bin_for_score",
    "is_valid_date",
    "combine_metrics",
]

NUM_HISTOGRAM_BINS = 20
HISTOGRAM_BIN_WIDTH = 5.0

_FIELDS = ("date", "facility", "eventCount", "avgEventScore", "histogram")
_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")


def bin_for_score(score: float) -> int:
    """Return the histogram bin of ``score``, clamping to the outer bins."""

    if not math.isfinite(score):
        raise ValidationError(f"Event scores must be finite, got {score!r}")
    if score < 0:
        return 0
    return min(NUM_HISTOGRAM_BINS - 1, int(score // HISTOGRAM_BIN_WIDTH))


def _with_bin(histogram: tuple[int, ...], index: int) -> tuple[int, ...]:
    counts = list(histogram)
    counts[index] += 1
    return tuple(counts)


@dataclass(frozen=True)
class DailyMetric:
    date: Scope[str]
    facility: Scope[str]
    event_count: int
    avg_event_score: float
    histogram: tuple[int, ...]

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Check the count, histogram and scope invariants."""

        for label, scope in (("date", self.date), ("facility", self.facility)):
            if scope is not MIXED and not isinstance(scope, Single):
                raise ValidationError(f"{label} must be Single(...) or MIXED, got {scope!r}")
            if isinstance(scope, Single) and not isinstance(scope.value, str):
                raise ValidationError(f"{label} must hold a string, got {scope.value!r}")
        if isinstance(self.date, Single) and not is_valid_date(self.date.value):
            raise ValidationError(f"Invalid date {self.date.value!r}, expected YYYY-MM-DD")
        if isinstance(self.event_count, bool) or not isinstance(self.event_count, int):
            raise ValidationError(f"eventCount must be an integer, got {self.event_count!r}")
        if self.event_count < 1:
            raise ValidationError(f"eventCount must be at least 1, got {self.event_count}")
        if not math.isfinite(self.avg_event_score):
            raise ValidationError(f"avgEventScore must be finite, got {self.avg_event_score!r}")
        if len(self.histogram) != NUM_HISTOGRAM_BINS:
            raise ValidationError(
                f"histogram must have {NUM_HISTOGRAM_BINS} bins, got {len(self.histogram)}"
            )
        if any(isinstance(c, bool) or not isinstance(c, int) or c < 0 for c in self.histogram):
            raise ValidationError("histogram bins must be non-negative integers")
        if sum(self.histogram) != self.event_count:
            raise ValidationError(
                f"histogram holds {sum(self.histogram)} events but eventCount is {self.event_count}"
            )

    @classmethod
    def from_event(cls, event: "AirborneEvent") -> "DailyMetric":
        empty = (0,) * NUM_HISTOGRAM_BINS
        return cls(
            date=Single(event.date),
            facility=Single(event.facility),
            event_count=1,
            avg_event_score=float(event.score),
            histogram=_with_bin(empty, bin_for_score(event.score)),
        )

    def extend(self, event: "AirborneEvent") -> "DailyMetric":
        """Add one event from the same facility and date.

        Raises :class:`MismatchError` when the event belongs to another
        facility or date, or when this metric is already mixed.
        """

        if self.facility != Single(event.facility):
            raise MismatchError(
                f"Cannot extend metric for facility {self.facility_value!r} "
                f"with an event from {event.facility!r}"
            )
        if self.date != Single(event.date):
            raise MismatchError(
                f"Cannot extend metric for date {self.date_value!r} "
                f"with an event from {event.date!r}"
            )
        count = self.event_count + 1
        return DailyMetric(
            date=self.date,
            facility=self.facility,
            event_count=count,
            avg_event_score=(self.avg_event_score * self.event_count + event.score) / count,
            histogram=_with_bin(self.histogram, bin_for_score(event.score)),
        )

    def combine(self, other: "DailyMetric") -> "DailyMetric":
        """Merge two metrics; differing facilities or dates become ``MIXED``."""

        count = self.event_count + other.event_count
        average = (
            self.avg_event_score * self.event_count + other.avg_event_score * other.event_count
        ) / count
        return DailyMetric(
            date=merge_scopes(self.date, other.date),
            facility=merge_scopes(self.facility, other.facility),
            event_count=count,
            avg_event_score=average,
            histogram=tuple(a + b for a, b in zip(self.histogram, other.histogram)),
        )

    @property
    def date_value(self) -> Optional[str]:
        return self.date.or_none()

    @property
    def facility_value(self) -> Optional[str]:
        return self.facility.or_none()

    def as_canonical_json(self) -> str:
        histogram = ", ".join(str(count) for count in self.histogram)
        lines = [
            "{",
            f'  "date": {json.dumps(self.date_value)},',
            f'  "facility": {json.dumps(self.facility_value, ensure_ascii=False)},',
            f'  "eventCount": {self.event_count},',
            f'  "avgEventScore": {json.dumps(float(self.avg_event_score))},',
            f'  "histogram": [{histogram}]',
            "}",
        ]
        return "\n".join(lines)

    @classmethod
    def parse_canonical_json(cls, json_text: str) -> "DailyMetric":
        """Rebuild a metric written by :meth:`as_canonical_json`.

        Raises :class:`ParseError` for malformed JSON and
        :class:`ValidationError` for missing or invalid fields.
        """

        payload = load_json(json_text)
        if not isinstance(payload, dict):
            raise ValidationError("A daily metric must be a JSON object")
        missing = [name for name in _FIELDS if name not in payload]
        if missing:
            raise ValidationError(f"Daily metric is missing fields: {', '.join(missing)}")

        date = payload["date"]
        if date is not None and not isinstance(date, str):
            raise ValidationError(f"date must be a string or null, got {date!r}")
        facility = payload["facility"]
        if facility is not None and not isinstance(facility, str):
            raise ValidationError(f"facility must be a string or null, got {facility!r}")
        average = payload["avgEventScore"]
        if isinstance(average, bool) or not isinstance(average, (int, float)):
            raise ValidationError(f"avgEventScore must be a number, got {average!r}")
        histogram = payload["histogram"]
        if not isinstance(histogram, list):
            raise ValidationError("histogram must be an array")

        return cls(
            date=scope_from_optional(date),
            facility=scope_from_optional(facility),
            event_count=payload["eventCount"],
            avg_event_score=float(average),
            histogram=tuple(histogram),
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "date": self.date_value,
            "facility": self.facility_value,
            "eventCount": self.event_count,
            "avgEventScore": self.avg_event_score,
            "histogram": list(self.histogram),
        }


def is_valid_date(text: str) -> bool:
    if not isinstance(text, str) or not _DATE_PATTERN.fullmatch(text):
        return False
    try:
        datetime.strptime(text, "%Y-%m-%d")
    except ValueError:
        return False
    return True


def combine_metrics(left: DailyMetric, right: DailyMetric) -> DailyMetric:
    return left.combine(right)
