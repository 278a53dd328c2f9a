"""Categorical relationship between the headings of two aircraft."""

from __future__ import annotations

from enum import Enum

from aria_monitor.errors import RangeError

__all__ = [
    "ConflictAngle",
    "SAME_MAX_DEGREES",
    "CROSSING_MAX_DEGREES",
    "angle_difference",
    "classify_conflict",
]

SAME_MAX_DEGREES = 45.0
CROSSING_MAX_DEGREES = 135.0


def _check_heading(heading: float) -> float:
    value = float(heading)
    if not 0.0 <= value <= 360.0:
        raise RangeError(f"Heading must be within [0, 360]: {heading!r}")
    return value


def angle_difference(heading_a: float, heading_b: float) -> float:
    """Return the smallest angle between two headings, in ``[0, 180]`` degrees."""

    delta = abs(_check_heading(heading_a) - _check_heading(heading_b))
    return min(delta, 360.0 - delta)


class ConflictAngle(Enum):
    SAME = "SAME"
    CROSSING = "CROSSING"
    OPPOSITE = "OPPOSITE"

    @classmethod
    def between(cls, heading_a: float, heading_b: float) -> "ConflictAngle":
        """Classify two headings.

        Differences up to and including 45 degrees are ``SAME``, up to and
        including 135 degrees ``CROSSING``, anything wider ``OPPOSITE``.
        """

        difference = angle_difference(heading_a, heading_b)
        if difference <= SAME_MAX_DEGREES:
            return cls.SAME
        if difference <= CROSSING_MAX_DEGREES:
            return cls.CROSSING
        return cls.OPPOSITE

    @classmethod
    def parse(cls, label: str) -> "ConflictAngle":
        try:
            return cls[label.strip().upper()]
        except KeyError as exc:
            raise ValueError(f"Unknown conflict angle: {label!r}") from exc


def classify_conflict(heading_a: float, heading_b: float) -> ConflictAngle:
    return ConflictAngle.between(heading_a, heading_b)
