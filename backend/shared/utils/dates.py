"""
UTC day boundaries. Reporting days and date filters are UTC days.
"""

from datetime import date, datetime, time, timedelta, timezone


def utc_day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def utc_day_end(day: date) -> datetime:
    """Exclusive upper bound: midnight of the following day."""
    return utc_day_start(day + timedelta(days=1))
