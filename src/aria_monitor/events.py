"""JSON-backed airborne event records."""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from types import MappingProxyType
from typing import Any, Optional

from aria_monitor.errors import MalformedRecordError, ValidationError
from aria_monitor.geometry.conflict_angle import ConflictAngle
from aria_monitor.ingestion.records import parse_iso_instant
from aria_monitor.output.hashing import UNIQUE_ID_FIELD, add_unique_id, load_json

__all__ = ["AirborneEvent", "EPOCH", "build_event", "epoch_millis"]

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MILLISECOND = timedelta(milliseconds=1)


def epoch_millis(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return (moment - EPOCH) // _ONE_MILLISECOND


def _format_instant(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _event_time(payload: Mapping[str, Any]) -> datetime:
    if "eventEpochMsTime" in payload:
        millis = payload["eventEpochMsTime"]
        if not isinstance(millis, int) or isinstance(millis, bool):
            raise ValidationError(f"'eventEpochMsTime' must be an integer, got {millis!r}")
        return EPOCH + timedelta(milliseconds=millis)
    if "eventTime" in payload:
        text = payload["eventTime"]
        if not isinstance(text, str):
            raise ValidationError(f"'eventTime' must be a string, got {text!r}")
        try:
            return parse_iso_instant(text)
        except MalformedRecordError as exc:
            raise ValidationError(str(exc)) from exc
    raise ValidationError("Event is missing 'eventEpochMsTime' and 'eventTime'")


@dataclass(frozen=True)
class AirborneEvent:
    """An event detected between two tracks, backed by its JSON payload.

    ``payload`` keeps the original key order; the identity of the event is a
    digest of that ordered content.
    """

    facility: str
    time: datetime
    score: float
    conflict_angle: Optional[ConflictAngle] = None
    payload: Mapping[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "AirborneEvent":
        if not isinstance(payload, Mapping):
            raise ValidationError("An event must be a JSON object")

        facility = payload.get("facility")
        if not isinstance(facility, str) or not facility:
            raise ValidationError(f"'facility' must be a non-empty string, got {facility!r}")

        if "eventScore" not in payload:
            raise ValidationError("Event is missing 'eventScore'")
        score = payload["eventScore"]
        if not _is_number(score) or not math.isfinite(score):
            raise ValidationError(f"'eventScore' must be a finite number, got {score!r}")

        conflict_angle = None
        label = payload.get("conflictAngle")
        if label is not None:
            if not isinstance(label, str):
                raise ValidationError(f"'conflictAngle' must be a string, got {label!r}")
            try:
                conflict_angle = ConflictAngle.parse(label)
            except ValueError as exc:
                raise ValidationError(str(exc)) from exc

        return cls(
            facility=facility,
            time=_event_time(payload),
            score=float(score),
            conflict_angle=conflict_angle,
            payload=MappingProxyType(dict(payload)),
        )

    @classmethod
    def from_json(cls, json_text: str) -> "AirborneEvent":
        """Parse an event, raising :class:`ParseError` on malformed JSON."""

        return cls.from_mapping(load_json(json_text))

    @property
    def date(self) -> str:
        return self.time.astimezone(timezone.utc).strftime("%Y-%m-%d")

    @property
    def unique_id(self) -> Optional[str]:
        value = self.payload.get(UNIQUE_ID_FIELD)
        return value if isinstance(value, str) else None

    def as_json(self, indent: int | None = None) -> str:
        return json.dumps(dict(self.payload), indent=indent, ensure_ascii=False)

    def with_unique_id(self) -> "AirborneEvent":
        """Return this event with its content hash stored as the first field."""

        if self.unique_id is not None:
            return self
        return AirborneEvent.from_json(add_unique_id(self.as_json()))

    def __hash__(self) -> int:
        return hash(self.as_json())


def build_event(
    facility: str,
    time: datetime,
    score: float,
    **fields: Any,
) -> AirborneEvent:
    """Create an event with the standard leading field layout."""

    if time.tzinfo is None:
        time = time.replace(tzinfo=timezone.utc)
    payload: dict[str, Any] = {
        "eventDate": time.astimezone(timezone.utc).strftime("%Y-%m-%d"),
        "eventTime": _format_instant(time),
        "eventEpochMsTime": epoch_millis(time),
        "eventScore": score,
        "facility": facility,
    }
    for key, value in fields.items():
        if isinstance(value, ConflictAngle):
            value = value.value
        payload[key] = value
    return AirborneEvent.from_mapping(payload)
