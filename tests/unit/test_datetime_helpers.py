"""Unit tests for date/time helpers"""
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from quest_engine.utils.datetime_helpers import (
    align_to,
    days_between,
    end_of_next_day,
    now_utc,
    start_of_week,
)


def test_now_utc_is_aware():
    assert now_utc().tzinfo is not None


def test_align_naive_to_aware_reference():
    reference = datetime(2024, 1, 1, tzinfo=ZoneInfo("Europe/Stockholm"))
    aligned = align_to(datetime(2024, 1, 1, 10), reference)
    assert aligned.tzinfo == reference.tzinfo
    assert aligned.hour == 10


def test_align_aware_to_other_zone():
    reference = datetime(2024, 1, 1, tzinfo=ZoneInfo("Europe/Stockholm"))
    aligned = align_to(datetime(2024, 1, 1, 23, 30, tzinfo=timezone.utc), reference)
    assert aligned.day == 2
    assert aligned.hour == 0


def test_align_aware_to_naive_reference_uses_default_zone():
    aligned = align_to(datetime(2024, 1, 1, 10, tzinfo=timezone.utc), datetime(2024, 1, 1))
    assert aligned.tzinfo is None
    assert aligned.hour == 10


def test_days_between():
    assert days_between(datetime(2024, 1, 1, 23), datetime(2024, 1, 2, 0, 1)) == 1
    assert days_between(datetime(2024, 1, 1, 1), datetime(2024, 1, 1, 23)) == 0
    assert days_between(datetime(2024, 1, 3), datetime(2024, 1, 1)) == -2


def test_end_of_next_day_keeps_tz():
    dt = datetime(2024, 2, 28, 8, tzinfo=timezone.utc)
    assert end_of_next_day(dt) == datetime(2024, 2, 29, 23, 59, 59, tzinfo=timezone.utc)


def test_start_of_week_is_monday():
    assert start_of_week(datetime(2024, 6, 5, 14)) == datetime(2024, 6, 3)
