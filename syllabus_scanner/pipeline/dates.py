from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def parse_date(value: str) -> date:
    """
    Strict YYYY-MM-DD parsing. Raises ValueError for anything else
    (e.g. "TBD", "Feb 12").
    """
    if not isinstance(value, str):
        raise ValueError(f"Expected a date string, got {type(value).__name__}")
    return datetime.strptime(value.strip(), DATE_FORMAT).date()


def parse_time(value: Optional[str]) -> time:
    if value is None or not value.strip():
        return time(0, 0)
    return datetime.strptime(value.strip(), TIME_FORMAT).time()


def combine_due_date(date_str: str, time_str: Optional[str] = None) -> datetime:
    """
    Combine a separately edited day and time-of-day into one timestamp.
    """
    return datetime.combine(parse_date(date_str), parse_time(time_str))


def days_until(due: datetime, today: date) -> int:
    return (due.date() - today).days
