from datetime import date, datetime, time, timedelta

import pytest

from syllabus_scanner.pipeline.dates import combine_due_date, days_until, format_date, parse_date, parse_time


def test_date_round_trip():
    day = date(2000, 1, 1)
    while day <= date(2100, 12, 31):
        value = day.isoformat()
        assert format_date(parse_date(value)) == value
        assert parse_date(format_date(day)) == day
        day += timedelta(days=1)


@pytest.mark.parametrize("value", ["TBD", "Feb 12", "2026/02/12", "2026-02-30", ""])
def test_parse_date_rejects_non_iso(value):
    with pytest.raises(ValueError):
        parse_date(value)


def test_parse_date_rejects_non_strings():
    with pytest.raises(ValueError):
        parse_date(None)


def test_missing_time_means_midnight():
    assert parse_time(None) == time(0, 0)
    assert parse_time("  ") == time(0, 0)
    assert parse_time("09:05") == time(9, 5)


def test_combine_due_date():
    assert combine_due_date("2026-03-05", "23:59") == datetime(2026, 3, 5, 23, 59)
    assert combine_due_date("2026-03-05") == datetime(2026, 3, 5)


def test_days_until_ignores_time_of_day():
    assert days_until(datetime(2026, 1, 17, 0, 1), date(2026, 1, 15)) == 2
    assert days_until(datetime(2026, 1, 14, 23, 0), date(2026, 1, 15)) == -1
