from __future__ import annotations

from datetime import timedelta

import numpy as np

from aria_monitor.metrics import EventStatisticsCollector, Histogram

from tests.helpers import EPOCH, build_test_event

NOW = EPOCH + timedelta(days=3)


def _collector() -> EventStatisticsCollector:
    collector = EventStatisticsCollector(now=NOW)
    collector.accept_all(
        [
            build_test_event("D10", 12.0, EPOCH + timedelta(days=2, hours=12)),
            build_test_event("D10", 21.0, EPOCH + timedelta(days=1)),
            build_test_event("A80", 51.0, EPOCH),
        ]
    )
    return collector


def test_counts_and_bytes_per_facility() -> None:
    collector = _collector()

    assert collector.facilities == ["A80", "D10"]
    assert collector.event_count() == 3
    assert collector.event_count("D10") == 2
    assert collector.event_count("ZZZ") == 0
    assert collector.total_bytes() == sum(collector.total_bytes(f) for f in collector.facilities)
    assert collector.total_bytes("A80") > 0


def test_score_histogram_spans_the_maximum_score() -> None:
    histogram = _collector().score_histogram()

    assert histogram.edges[-1] == 55.0
    assert histogram.total == 3
    assert histogram.counts[2] == 1
    assert histogram.counts[4] == 1
    assert histogram.counts[10] == 1


def test_age_histogram_uses_day_wide_bins() -> None:
    histogram = _collector().age_histogram("D10")

    np.testing.assert_array_equal(histogram.counts, [1, 0, 1])
    assert histogram.edges[1] == 24.0


def test_negative_scores_land_in_the_first_bin() -> None:
    collector = EventStatisticsCollector(now=NOW)
    collector.accept_all(
        [build_test_event("D10", -2.0, EPOCH), build_test_event("D10", 3.0, EPOCH)]
    )

    histogram = collector.score_histogram()

    assert histogram.total == collector.event_count() == 2
    np.testing.assert_array_equal(histogram.counts, [2])


def test_empty_histograms_have_one_empty_bin() -> None:
    histogram = Histogram.from_values([], 5.0)

    assert histogram.total == 0
    assert len(histogram.counts) == 1


def test_reports_describe_the_stream() -> None:
    collector = _collector()

    summary = collector.summary_report()
    facility = collector.facility_report("D10")

    assert summary.startswith("TOTALS\n")
    assert "Number Airborne Events Found: 3" in summary
    assert "  A80: 1" in summary
    assert "Min Event Time: 1970-01-01 00:00:00.000Z" in summary
    assert facility.startswith("D10\n")
    assert "Number Airborne Events Found: 2" in facility
    assert "Event Score Histogram:" in facility


def test_reports_without_events() -> None:
    report = EventStatisticsCollector(now=NOW).facility_report("D10")

    assert "Min Event Time: N/A" in report
    assert "Number Airborne Events Found: 0" in report
