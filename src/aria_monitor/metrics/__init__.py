"""Rolling and mergeable aggregates over events and arrivals."""

from aria_monitor.metrics.daily import (
    HISTOGRAM_BIN_WIDTH,
    NUM_HISTOGRAM_BINS,
    DailyMetric,
    bin_for_score,
    combine_metrics,
)
from aria_monitor.metrics.density import RollingTimeHistogram, TimeWindow
from aria_monitor.metrics.scope import MIXED, Mixed, Single
from aria_monitor.metrics.statistics import EventStatisticsCollector, Histogram
from aria_monitor.metrics.summarizer import EventSummarizer

__all__ = [
    "DailyMetric",
    "EventStatisticsCollector",
    "EventSummarizer",
    "HISTOGRAM_BIN_WIDTH",
    "Histogram",
    "MIXED",
    "Mixed",
    "NUM_HISTOGRAM_BINS",
    "RollingTimeHistogram",
    "Single",
    "TimeWindow",
    "bin_for_score",
    "combine_metrics",
]
