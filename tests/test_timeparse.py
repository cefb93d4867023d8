"""提醒时间解析测试。"""
from datetime import datetime, time, timezone

import pytest

from home_organizer.errors import ReminderParseError
from home_organizer.reminders.timeparse import parse_instant, parse_time_of_day, to_local_naive


def test_time_of_day_from_timestamp_and_clock_text() -> None:
    assert parse_time_of_day("2024-05-01T08:00") == (8, 0)
    assert parse_time_of_day("2024-05-01T08:05:59") == (8, 5)
    assert parse_time_of_day("21:30") == (21, 30)
    assert parse_time_of_day(time(7, 15)) == (7, 15)
    assert parse_time_of_day(datetime(2020, 1, 1, 23, 59)) == (23, 59)


def test_time_of_day_aware_timestamp_uses_local_clock() -> None:
    aware = datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)
    local = aware.astimezone()
    assert parse_time_of_day("2024-05-01T08:00:00Z") == (local.hour, local.minute)


@pytest.mark.parametrize("value", ["", "   ", None, "garbage", "25:00", "12:61", "2024-13-01T08:00", 42])
def test_time_of_day_rejects_bad_values(value) -> None:
    with pytest.raises(ReminderParseError):
        parse_time_of_day(value)


def test_parse_instant() -> None:
    assert parse_instant("2024-05-01T08:30") == datetime(2024, 5, 1, 8, 30)
    assert parse_instant(datetime(2024, 5, 1, 8, 30)) == datetime(2024, 5, 1, 8, 30)
    with pytest.raises(ReminderParseError):
        parse_instant("next tuesday")
    with pytest.raises(ReminderParseError):
        parse_instant(None)


def test_to_local_naive() -> None:
    naive = datetime(2024, 5, 1, 8, 30)
    assert to_local_naive(naive) is naive
    aware = datetime(2024, 5, 1, 8, 30, tzinfo=timezone.utc)
    converted = to_local_naive(aware)
    assert converted.tzinfo is None
    assert converted == aware.astimezone().replace(tzinfo=None)
