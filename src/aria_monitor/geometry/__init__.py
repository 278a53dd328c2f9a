"""Geometric classification helpers."""

from aria_monitor.geometry.conflict_angle import (
    ConflictAngle,
    angle_difference,
    classify_conflict,
)

__all__ = ["ConflictAngle", "angle_difference", "classify_conflict"]
