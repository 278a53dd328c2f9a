"""Wiring of identity, summarisation and density auditing for event streams."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from aria_monitor.configuration import PipelineSettings
from aria_monitor.events import AirborneEvent
from aria_monitor.ingestion.formats import PositionFormat, get_format
from aria_monitor.ingestion.records import PositionedRecord
from aria_monitor.metrics.density import RollingTimeHistogram
from aria_monitor.metrics.summarizer import EventSummarizer
from aria_monitor.output.hashing import UNIQUE_ID_FIELD, add_unique_id, load_json

__all__ = ["EventPipeline", "summarize_partition", "summarize_partitions"]

logger = logging.getLogger(__name__)


def summarize_partition(events: Iterable[AirborneEvent]) -> EventSummarizer:
    return EventSummarizer(events)


def summarize_partitions(
    partitions: Sequence[Iterable[AirborneEvent]],
    max_workers: Optional[int] = None,
) -> EventSummarizer:
    """Summarise each partition on a worker thread and merge the results.

    Every worker owns its summarizer; the partial results are merged on the
    calling thread in partition order.
    """

    merged = EventSummarizer()
    if not partitions:
        return merged
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        partials = list(executor.map(summarize_partition, partitions))
    for partial in partials:
        merged.ingest_all(partial)
    logger.info(
        "Summarised event partitions",
        extra={
            "event": "pipeline.partitions_summarized",
            "partitions": len(partials),
            "events": merged.event_count,
        },
    )
    return merged


class EventPipeline:
    """Assign identities to events, summarise them and audit their density."""

    def __init__(self, settings: PipelineSettings | None = None) -> None:
        self.settings = settings or PipelineSettings()
        self.summarizer = EventSummarizer()
        self.event_density = RollingTimeHistogram(
            self.settings.density_bucket_width, self.settings.density_max_buckets
        )
        self.position_density = RollingTimeHistogram(
            self.settings.density_bucket_width, self.settings.density_max_buckets
        )

    @property
    def position_format(self) -> PositionFormat:
        return get_format(self.settings.input_format)

    def ingest_event(self, json_text: str) -> AirborneEvent:
        """Identify, summarise and count one event given as JSON text."""

        payload = load_json(json_text)
        if isinstance(payload, dict) and UNIQUE_ID_FIELD not in payload:
            json_text = add_unique_id(json_text)
        event = AirborneEvent.from_json(json_text)
        self.summarizer.accept(event)
        self.event_density.record(event.time)
        return event

    def ingest_events(self, json_texts: Iterable[str]) -> list[AirborneEvent]:
        return [self.ingest_event(text) for text in json_texts]

    def audit_positions(self, records: Iterable[PositionedRecord]) -> int:
        """Record the arrival time of every position and return how many were seen."""

        count = 0
        for record in records:
            self.position_density.record(record.time)
            count += 1
        return count

    def audit_lines(self, lines: Iterable[str]) -> int:
        """Parse raw lines in the configured format and audit their arrivals."""

        with self.position_format.open(lines) as reader:
            return self.audit_positions(reader)
