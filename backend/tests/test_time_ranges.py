from datetime import date, datetime, time, timedelta

import pytest

from app.services.time_ranges import (
    describe_range,
    format_time,
    normalize_date,
    parse_date,
    parse_time,
    ranges_overlap,
    to_seconds,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("09:30", 9 * 3600 + 30 * 60),
        ("9:05:07", 9 * 3600 + 5 * 60 + 7),
        (time(14, 0), 14 * 3600),
        (timedelta(hours=8, minutes=15), 8 * 3600 + 15 * 60),
        (datetime(2026, 1, 1, 7, 45), 7 * 3600 + 45 * 60),
        (b"10:00", 10 * 3600),
        (3600, 3600),
        ("5400", 5400.0),
    ],
)
def test_to_seconds_accepts_driver_and_payload_shapes(value, expected):
    assert to_seconds(value) == expected


@pytest.mark.parametrize("value", [None, True, "", "24:00", "noon", float("nan")])
def test_to_seconds_rejects_unparsable_values(value):
    assert to_seconds(value) is None


def test_touching_ranges_do_not_overlap():
    assert not ranges_overlap("09:00", "10:00", "10:00", "11:00")
    assert not ranges_overlap("10:00", "11:00", "09:00", "10:00")


def test_overlap_is_strict_intersection():
    assert ranges_overlap("09:00", "10:30", "10:00", "11:00")
    assert ranges_overlap("09:00", "12:00", "10:00", "11:00")
    assert ranges_overlap(time(10), time(11), "10:00:00", "11:00:00")


def test_overlap_is_symmetric():
    a, b = ("08:00", "09:15"), ("09:00", "10:00")
    assert ranges_overlap(*a, *b) == ranges_overlap(*b, *a)


def test_unparsable_bounds_never_overlap():
    assert not ranges_overlap("bad", "10:00", "09:00", "11:00")
    assert not ranges_overlap("09:00", None, "09:00", "11:00")


def test_format_and_parse_time():
    assert format_time("9:05") == "09:05:00"
    assert format_time(timedelta(hours=13, seconds=5)) == "13:00:05"
    assert format_time("garbage") is None
    assert parse_time("17:45") == time(17, 45)
    assert parse_time(time(8, 0, 0, 500)) == time(8, 0)
    assert parse_time(25 * 3600) is None


def test_dates_normalize_to_calendar_day():
    assert normalize_date("2026-11-02T15:00:00Z") == "2026-11-02"
    assert normalize_date(date(2026, 11, 2)) == "2026-11-02"
    assert normalize_date(datetime(2026, 11, 2, 23, 59)) == "2026-11-02"
    assert normalize_date("") is None
    assert parse_date("2026-11-02") == date(2026, 11, 2)
    assert parse_date("02/11/2026") is None


def test_describe_range():
    assert describe_range("9:00", time(10, 30)) == "09:00:00 - 10:30:00"
