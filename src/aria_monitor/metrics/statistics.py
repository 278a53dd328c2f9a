"""Audit statistics over a stream of airborne events."""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional

import numpy as np

from aria_monitor.events import AirborneEvent

__all__ = ["EventStatisticsCollector", "Histogram", "SCORE_BIN_WIDTH", "AGE_BIN_HOURS"]

SCORE_BIN_WIDTH = 5.0
AGE_BIN_HOURS = 24.0
_TOTALS_LABEL = "TOTALS"


@dataclass(frozen=True)
class Histogram:
    """Equal-width histogram starting at zero.

    Negative values are counted in the first bin.
    """

    edges: np.ndarray
    counts: np.ndarray

    @classmethod
    def from_values(cls, values: Iterable[float], bin_width: float) -> "Histogram":
        data = np.clip(np.fromiter(values, dtype=float), 0.0, None)
        upper = float(data.max()) if data.size else 0.0
        columns = int(upper // bin_width) + 1
        counts, edges = np.histogram(data, bins=columns, range=(0.0, columns * bin_width))
        return cls(edges=edges, counts=counts)

    @property
    def total(self) -> int:
        return int(self.counts.sum())

    def render(self) -> str:
        lines = []
        for low, high, count in zip(self.edges[:-1], self.edges[1:], self.counts):
            lines.append(f"  [{low:.0f}, {high:.0f}): {int(count)}")
        return "\n".join(lines)


def _format_time(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3] + "Z"


class EventStatisticsCollector:
    """Collect per-facility counts, scores, times and payload sizes.

    Event ages are measured against ``now``, fixed when the collector is
    created unless supplied explicitly.
    """

    def __init__(self, now: Optional[datetime] = None) -> None:
        self.now = now or datetime.now(timezone.utc)
        self._counts: Counter[str] = Counter()
        self._scores: dict[str, list[float]] = defaultdict(list)
        self._times: dict[str, list[datetime]] = defaultdict(list)
        self._bytes: Counter[str] = Counter()

    def accept(self, event: AirborneEvent) -> None:
        facility = event.facility
        self._counts[facility] += 1
        self._scores[facility].append(event.score)
        self._times[facility].append(event.time)
        self._bytes[facility] += len(event.as_json().encode("utf-8"))

    def accept_all(self, events: Iterable[AirborneEvent]) -> None:
        for event in events:
            self.accept(event)

    @property
    def facilities(self) -> list[str]:
        return sorted(self._counts)

    def event_count(self, facility: Optional[str] = None) -> int:
        if facility is None:
            return sum(self._counts.values())
        return self._counts.get(facility, 0)

    def total_bytes(self, facility: Optional[str] = None) -> int:
        if facility is None:
            return sum(self._bytes.values())
        return self._bytes.get(facility, 0)

    def _select_scores(self, facility: Optional[str]) -> list[float]:
        if facility is not None:
            return list(self._scores.get(facility, ()))
        return [score for scores in self._scores.values() for score in scores]

    def _select_times(self, facility: Optional[str]) -> list[datetime]:
        if facility is not None:
            return list(self._times.get(facility, ()))
        return [moment for times in self._times.values() for moment in times]

    def score_histogram(self, facility: Optional[str] = None) -> Histogram:
        return Histogram.from_values(self._select_scores(facility), SCORE_BIN_WIDTH)

    def age_histogram(self, facility: Optional[str] = None) -> Histogram:
        """Histogram of event ages in whole hours, one bin per day."""

        ages = [
            float(abs(self.now - moment).total_seconds() // 3600)
            for moment in self._select_times(facility)
        ]
        return Histogram.from_values(ages, AGE_BIN_HOURS)

    def facility_report(self, facility: str) -> str:
        return self._report(facility, facility)

    def summary_report(self) -> str:
        return self._report(None, _TOTALS_LABEL)

    def _report(self, facility: Optional[str], name: str) -> str:
        times = self._select_times(facility)
        first = _format_time(min(times)) if times else "N/A"
        last = _format_time(max(times)) if times else "N/A"
        lines = [
            name,
            f"  Number Airborne Events Found: {len(times)}",
            f"  Total Bytes: {self.total_bytes(facility)}",
            f"  Min Event Time: {first}",
            f"  Max Event Time: {last}",
            "Event count by facility:",
        ]
        lines.extend(f"  {key}: {self._counts[key]}" for key in self.facilities)
        lines.append("")
        lines.append("Event Age (in hours) Histogram:")
        lines.append(self.age_histogram(facility).render())
        lines.append("Event Score Histogram:")
        lines.append(self.score_histogram(facility).render())
        return "\n".join(lines) + "\n"
