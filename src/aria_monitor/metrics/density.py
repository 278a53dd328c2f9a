"""Bounded time-bucketed arrival counters used to audit stream density."""

from __future__ import annotations

import logging
from bisect import bisect_left, insort
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from aria_monitor.errors import EmptyStateError

__all__ = [
    "DEFAULT_BUCKET_WIDTH",
    "DEFAULT_MAX_BUCKETS",
    "RollingTimeHistogram",
    "TimeWindow",
]

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
DEFAULT_BUCKET_WIDTH = timedelta(seconds=60)
DEFAULT_MAX_BUCKETS = 1440


def _as_utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant


@dataclass(frozen=True)
class TimeWindow:
    """Closed interval ``[start, end]`` of absolute time."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError("TimeWindow end must not precede its start")

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def contains(self, instant: datetime) -> bool:
        return self.start <= _as_utc(instant) <= self.end

    def steps(self, width: timedelta) -> Iterator[datetime]:
        """Yield instants from ``start`` to ``end`` inclusive, ``width`` apart."""

        if width <= timedelta(0):
            raise ValueError("step width must be positive")
        current = self.start
        while current <= self.end:
            yield current
            current += width


class RollingTimeHistogram:
    """Count arrivals per fixed-width time bucket, keeping the newest buckets.

    Buckets are keyed by their start instant, the arrival truncated down to a
    multiple of ``bucket_width`` since the epoch.  Once more than
    ``max_buckets`` buckets exist, those with the smallest start instants are
    dropped regardless of how recently they were incremented.
    """

    def __init__(
        self,
        bucket_width: timedelta = DEFAULT_BUCKET_WIDTH,
        max_buckets: int = DEFAULT_MAX_BUCKETS,
    ) -> None:
        if bucket_width <= timedelta(0):
            raise ValueError("bucket_width must be positive")
        if max_buckets <= 0:
            raise ValueError("max_buckets must be positive")
        self._bucket_width = bucket_width
        self._max_buckets = max_buckets
        self._counts: dict[int, int] = {}
        # Sorted bucket indices, kept in step with ``_counts``.
        self._indices: list[int] = []
        self._evicted = 0

    @property
    def bucket_width(self) -> timedelta:
        return self._bucket_width

    @property
    def max_buckets(self) -> int:
        return self._max_buckets

    @property
    def evicted_count(self) -> int:
        """Number of buckets dropped so far to honour ``max_buckets``."""

        return self._evicted

    def __len__(self) -> int:
        return len(self._indices)

    def _bucket_index(self, instant: datetime) -> int:
        return (_as_utc(instant) - EPOCH) // self._bucket_width

    def _bucket_start(self, index: int) -> datetime:
        return EPOCH + index * self._bucket_width

    def truncate(self, instant: datetime) -> datetime:
        """Return the start of the bucket ``instant`` falls into."""

        return self._bucket_start(self._bucket_index(instant))

    def record(self, instant: datetime) -> None:
        index = self._bucket_index(instant)
        if index in self._counts:
            self._counts[index] += 1
            return
        self._counts[index] = 1
        insort(self._indices, index)
        self._enforce_cap()

    def _enforce_cap(self) -> None:
        excess = len(self._indices) - self._max_buckets
        if excess <= 0:
            return
        dropped = self._indices[:excess]
        del self._indices[:excess]
        for index in dropped:
            del self._counts[index]
        self._evicted += excess
        logger.debug(
            "Evicted oldest density buckets",
            extra={
                "event": "density.evicted",
                "evicted": excess,
                "oldest_retained": self._bucket_start(self._indices[0]).isoformat(),
            },
        )

    def count_at(self, instant: datetime) -> int:
        return self._counts.get(self._bucket_index(instant), 0)

    def counts(self) -> dict[datetime, int]:
        """Return the retained counts ordered by bucket start."""

        return {self._bucket_start(index): self._counts[index] for index in self._indices}

    def total_count(self) -> int:
        return sum(self._counts.values())

    def spanning_window(self) -> TimeWindow:
        """Return the interval from the first to the last retained bucket start."""

        if not self._indices:
            raise EmptyStateError("No buckets have been recorded")
        return TimeWindow(
            self._bucket_start(self._indices[0]),
            self._bucket_start(self._indices[-1]),
        )

    def bucketed_timeline(self) -> Iterator[datetime]:
        """Return every bucket start across the spanning window, gaps included."""

        window = self.spanning_window()
        return window.steps(self._bucket_width)

    def __contains__(self, instant: object) -> bool:
        if not isinstance(instant, datetime):
            return False
        index = self._bucket_index(instant)
        position = bisect_left(self._indices, index)
        return position < len(self._indices) and self._indices[position] == index
