from __future__ import annotations

from datetime import timedelta

import pytest

from aria_monitor.errors import MismatchError, ParseError, ValidationError
from aria_monitor.metrics import MIXED, DailyMetric, Single, bin_for_score, combine_metrics

from tests.helpers import EPOCH, build_daily_metric, build_test_event


def test_single_event_fills_one_bin() -> None:
    metric = DailyMetric.from_event(build_test_event("D10", 19.0))

    assert metric.event_count == 1
    assert metric.avg_event_score == 19.0
    assert metric.histogram[3] == 1
    assert sum(metric.histogram) == 1
    assert metric.date == Single("1970-01-02")
    assert metric.facility == Single("D10")


@pytest.mark.parametrize(
    "score, expected_bin",
    [(0.0, 0), (4.99, 0), (5.0, 1), (19.0, 3), (51.0, 10), (99.9, 19), (250.0, 19), (-3.0, 0)],
)
def test_scores_clamp_into_the_histogram(score: float, expected_bin: int) -> None:
    assert bin_for_score(score) == expected_bin


def test_extend_accumulates_events() -> None:
    metric = DailyMetric.from_event(build_test_event("D10", 22.0))

    extended = metric.extend(build_test_event("D10", 18.0))

    assert extended.event_count == 2
    assert extended.avg_event_score == 20.0
    assert extended.histogram[3] == 1
    assert extended.histogram[4] == 1
    assert metric.event_count == 1


def test_extend_three_events_averages_scores() -> None:
    metric = DailyMetric.from_event(build_test_event("D10", 12.0))
    for score in (21.0, 51.0):
        metric = metric.extend(build_test_event("D10", score))

    assert metric.event_count == 3
    assert metric.avg_event_score == 28.0


def test_extend_rejects_other_facilities_and_dates() -> None:
    metric = DailyMetric.from_event(build_test_event("D10", 12.0))

    with pytest.raises(MismatchError):
        metric.extend(build_test_event("A80", 12.0))
    with pytest.raises(MismatchError):
        metric.extend(build_test_event("D10", 12.0, EPOCH + timedelta(days=5)))


def test_extend_rejects_mixed_metrics() -> None:
    mixed = build_daily_metric([12.0, 21.0], facility=None)

    with pytest.raises(MismatchError):
        mixed.extend(build_test_event("D10", 30.0))


def test_combine_matching_keys_keeps_them() -> None:
    left = DailyMetric.from_event(build_test_event("D10", 12.0))
    right = DailyMetric.from_event(build_test_event("D10", 21.0))

    combined = left.combine(right)

    assert combined.facility == Single("D10")
    assert combined.date == Single("1970-01-02")
    assert combined.event_count == 2
    assert combined.avg_event_score == 16.5
    assert combined.histogram[2] == 1
    assert combined.histogram[4] == 1


def test_combine_mismatched_keys_marks_them_mixed() -> None:
    d10 = build_daily_metric([12.0, 21.0], facility="D10")
    a80 = DailyMetric.from_event(build_test_event("A80", 51.0, EPOCH + timedelta(days=2)))

    combined = combine_metrics(d10, a80)

    assert combined.facility is MIXED
    assert combined.date is MIXED
    assert combined.event_count == 3
    assert combined.avg_event_score == 28.0
    assert combined.histogram[10] == 1
    assert combined.facility_value is None


def test_combine_is_associative() -> None:
    a = build_daily_metric([12.0])
    b = build_daily_metric([21.0, 30.0], facility="A80")
    c = build_daily_metric([51.0], date="1970-01-03")

    left = a.combine(b).combine(c)
    right = a.combine(b.combine(c))

    assert left.histogram == right.histogram
    assert left.event_count == right.event_count
    assert left.avg_event_score == pytest.approx(right.avg_event_score)
    assert left.facility is right.facility is MIXED


def test_canonical_json_layout() -> None:
    metric = DailyMetric.from_event(build_test_event("D10", 22.0))

    expected = (
        "{\n"
        '  "date": "1970-01-02",\n'
        '  "facility": "D10",\n'
        '  "eventCount": 1,\n'
        '  "avgEventScore": 22.0,\n'
        '  "histogram": [0, 0, 0, 0, 1, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0]\n'
        "}"
    )
    assert metric.as_canonical_json() == expected


def test_mixed_keys_serialize_as_null() -> None:
    metric = build_daily_metric([12.0], date=None, facility=None)

    text = metric.as_canonical_json()

    assert '"date": null' in text
    assert '"facility": null' in text
    assert DailyMetric.parse_canonical_json(text) == metric


@pytest.mark.parametrize("field", ["date", "facility", "eventCount", "avgEventScore", "histogram"])
def test_parsing_requires_every_field(field: str) -> None:
    lines = build_daily_metric([12.0]).as_canonical_json().splitlines()
    kept = [line for line in lines if f'"{field}"' not in line]
    text = "\n".join(kept).replace(",\n}", "\n}")

    with pytest.raises(ValidationError):
        DailyMetric.parse_canonical_json(text)


@pytest.mark.parametrize(
    "replacement",
    [
        ('"eventCount": 1', '"eventCount": 2'),
        ('"eventCount": 1', '"eventCount": 0'),
        ('"eventCount": 1', '"eventCount": "1"'),
        ('"date": "1970-01-02"', '"date": "02/01/1970"'),
        ('"date": "1970-01-02"', '"date": "1970-02-30"'),
        ('"avgEventScore": 12.0', '"avgEventScore": "12"'),
        ('[0, 0, 1,', '[0, 0, -1,'),
        ('"facility": "D10"', '"facility": 10'),
    ],
)
def test_parsing_rejects_invalid_values(replacement: tuple[str, str]) -> None:
    text = build_daily_metric([12.0]).as_canonical_json().replace(*replacement)

    with pytest.raises(ValidationError):
        DailyMetric.parse_canonical_json(text)


def test_parsing_rejects_short_histograms() -> None:
    text = build_daily_metric([12.0]).as_canonical_json().replace("[0, 0, 1, 0,", "[0, 1,")

    with pytest.raises(ValidationError):
        DailyMetric.parse_canonical_json(text)


def test_parsing_malformed_json_raises_parse_error() -> None:
    with pytest.raises(ParseError):
        DailyMetric.parse_canonical_json('{"date": ')


def test_non_finite_scores_are_rejected() -> None:
    with pytest.raises(ValidationError):
        bin_for_score(float("nan"))


@pytest.mark.parametrize("facility", [Single(None), Single(10)])
def test_scopes_must_hold_strings(facility: Single) -> None:
    with pytest.raises(ValidationError):
        DailyMetric(
            date=Single("1970-01-02"),
            facility=facility,
            event_count=1,
            avg_event_score=12.0,
            histogram=(0, 0, 1) + (0,) * 17,
        )
