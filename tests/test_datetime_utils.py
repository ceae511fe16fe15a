"""Tests for the datetime helpers."""

from datetime import datetime, time, timezone, timedelta

import pytest

from app.utils import format_khmer_datetime, parse_time_of_day, resolve_timezone


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (datetime(2024, 3, 5, 14, 7), "5 មីនា 2024, 2:07 ល្ងាច"),
        (datetime(2024, 12, 31, 0, 30), "31 ធ្នូ 2024, 12:30 ព្រឹក"),
        (datetime(2025, 1, 1, 12, 0), "1 មករា 2025, 12:00 ល្ងាច"),
        (datetime(2025, 6, 9, 9, 5), "9 មិថុនា 2025, 9:05 ព្រឹក"),
    ],
)
def test_format_khmer_datetime(value, expected):
    assert format_khmer_datetime(value) == expected


def test_format_khmer_datetime_keeps_the_value_timezone():
    value = datetime(2024, 7, 1, 23, 15, tzinfo=timezone.utc)

    assert format_khmer_datetime(value) == "1 កក្កដា 2024, 11:15 ល្ងាច"


def test_resolve_timezone_accepts_fixed_offsets():
    assert resolve_timezone("UTC+07:00") == timezone(timedelta(hours=7))
    assert resolve_timezone("Not/AZone") is None
    assert resolve_timezone("") is None


def test_parse_time_of_day():
    assert parse_time_of_day("08:30") == time(8, 30)
    with pytest.raises(ValueError):
        parse_time_of_day("25:00")
