from __future__ import annotations

from datetime import datetime, timezone

import pytest

from aria_monitor.errors import MalformedRecordError
from aria_monitor.ingestion.nop import (
    AgwRadarHit,
    CenterRadarHit,
    MeartsRadarHit,
    NopMessageType,
    StarsRadarHit,
    parse_nop_line,
    parse_nop_time,
)

from tests.helpers import AGW_LINE, CENTER_LINE, MEARTS_LINE, STARS_LINE


def test_stars_hit_exposes_shared_fields() -> None:
    hit = parse_nop_line(STARS_LINE)

    assert isinstance(hit, StarsRadarHit)
    assert hit.facility == "A80"
    assert hit.time == datetime(2016, 7, 10, 12, 48, 2, 483000, tzinfo=timezone.utc)
    assert hit.callsign == "DAL1419"
    assert hit.aircraft_type == "B752"
    assert hit.equipment_suffix == "D"
    assert hit.reported_beacon_code == "2672"
    assert hit.altitude_in_hundreds_of_feet == 59
    assert hit.altitude == 5900.0
    assert hit.speed == 282.0
    assert hit.heading == 357.0
    assert hit.latitude == pytest.approx(33.47637)
    assert hit.longitude == pytest.approx(-84.04471)
    assert hit.sensor_id_letters == "A80"
    assert hit.arrival_airport == "ATL"
    assert hit.flight_rules == "IFR"
    assert hit.weight_class == "L"
    assert hit.on_active_sensor is True


def test_stars_hit_is_linked_by_track_number() -> None:
    hit = parse_nop_line(STARS_LINE)

    assert hit.track_number == "2874"
    assert hit.link_id == "2874"
    assert hit.assigned_beacon_code == 2672
    assert hit.x == pytest.approx(37.2195)
    assert hit.entry_fix == "ONY"


def test_center_hit_is_linked_by_computer_id() -> None:
    hit = parse_nop_line(CENTER_LINE)

    assert isinstance(hit, CenterRadarHit)
    assert hit.facility == "ZLA"
    assert hit.time == datetime(2016, 7, 10, 6, 35, 40, tzinfo=timezone.utc)
    assert hit.computer_id == "790"
    assert hit.link_id == "790"
    assert hit.altitude == 31200.0
    assert hit.controlling_facility_sector == "ZLA/19"
    assert hit.arrival_airport == "CYYZ"
    assert hit.departure_airport == "SAN"


def test_agw_hit_parses() -> None:
    hit = parse_nop_line(AGW_LINE)

    assert isinstance(hit, AgwRadarHit)
    assert hit.facility == "ABI"
    assert hit.track_number == "088"
    assert hit.time == datetime(2016, 7, 12, 19, 21, 8, 848000, tzinfo=timezone.utc)
    assert hit.lat_long == pytest.approx((32.62683, -99.43983))


def test_mearts_hit_reads_empty_fields_as_missing() -> None:
    hit = parse_nop_line(MEARTS_LINE)

    assert isinstance(hit, MeartsRadarHit)
    assert hit.facility == "ZUA"
    assert hit.callsign is None
    assert hit.aircraft_type is None
    assert hit.computer_id is None
    assert hit.altitude == 0.0
    assert hit.time == datetime(2019, 11, 5, 15, 26, 41, 20000, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "line",
    [
        "[HB],ZOB,11/05/2019,15:26:41.020",
        "[FP],Center,ZLA,ABC123",
        "[Bytes] 1024",
        "[CA],A80,alert",
    ],
)
def test_non_position_messages_are_recognised(line: str) -> None:
    assert parse_nop_line(line) is None


def test_unknown_messages_are_malformed() -> None:
    with pytest.raises(MalformedRecordError):
        parse_nop_line("this is not a NOP message")


def test_invalid_radar_hit_is_malformed() -> None:
    broken = STARS_LINE.replace("033.47637", "north")

    with pytest.raises(MalformedRecordError):
        parse_nop_line(broken)


def test_message_type_lookup_by_prefix() -> None:
    assert NopMessageType.for_line(CENTER_LINE) is NopMessageType.CENTER_RADAR_HIT
    assert NopMessageType.for_line("[OH],x") is NopMessageType.HAND_OFF
    assert NopMessageType.CENTER_RADAR_HIT.is_radar_hit
    assert not NopMessageType.HEARTBEAT.is_radar_hit
    assert NopMessageType.for_line("[ZZ],x") is None


def test_hit_class_rejects_other_message_kinds() -> None:
    with pytest.raises(MalformedRecordError):
        StarsRadarHit(CENTER_LINE)


def test_time_with_misplaced_millisecond_is_repaired() -> None:
    repaired = parse_nop_time("10/18/2016", "00:57:121.00")

    assert repaired == datetime(2016, 10, 18, 0, 57, 12, 999000, tzinfo=timezone.utc)


def test_other_time_errors_fail() -> None:
    with pytest.raises(MalformedRecordError):
        parse_nop_time("10/18/2016", "25:61:00.000")


def test_radar_hits_sort_by_time() -> None:
    hits = [parse_nop_line(line) for line in (MEARTS_LINE, AGW_LINE, STARS_LINE, CENTER_LINE)]

    ordered = sorted(hits)

    assert [hit.facility for hit in ordered] == ["ZLA", "A80", "ABI", "ZUA"]
