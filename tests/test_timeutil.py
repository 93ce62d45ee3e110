from datetime import timedelta

import pytest

from kiteclient.timeutil import parse_time

IST_OFFSET = timedelta(hours=5, minutes=30)


@pytest.mark.parametrize(
    "value",
    ["2006-01-02", "2006-01-02 15:04:05", "2006-01-02T15:04:05-0700"],
)
def test_known_formats_parse(value):
    parsed = parse_time(value)
    assert parsed.year == 2006
    assert parsed.month == 1
    assert parsed.day == 2


@pytest.mark.parametrize("value", ["2006-01-02T", "2006-01-02:"])
def test_unknown_formats_raise(value):
    with pytest.raises(ValueError):
        parse_time(value)


@pytest.mark.parametrize("value", ["null", "", "   ", '"null"'])
def test_empty_values_give_none(value):
    assert parse_time(value) is None


def test_date_only_is_ist_midnight():
    parsed = parse_time("2006-01-02")
    assert (parsed.hour, parsed.minute, parsed.second) == (0, 0, 0)
    assert parsed.utcoffset() == IST_OFFSET


def test_datetime_without_zone_is_ist():
    parsed = parse_time("2006-01-02 15:04:05")
    assert (parsed.hour, parsed.minute, parsed.second) == (15, 4, 5)
    assert parsed.utcoffset() == IST_OFFSET


def test_zoned_layout_keeps_offset():
    parsed = parse_time("2006-01-02T15:04:05-0700")
    assert parsed.utcoffset() == timedelta(hours=-7)
    assert parsed.hour == 15


def test_rfc3339_utc():
    parsed = parse_time("2006-01-02T15:04:05Z")
    assert parsed.utcoffset() == timedelta(0)
    assert parsed.second == 5


def test_rfc3339_with_fraction_and_colon_offset():
    parsed = parse_time("2006-01-02T15:04:05.5+05:30")
    assert parsed.microsecond == 500000
    assert parsed.utcoffset() == IST_OFFSET


def test_surrounding_whitespace_and_quotes_are_trimmed():
    assert parse_time('  "2006-01-02 15:04:05"  ') == parse_time("2006-01-02 15:04:05")