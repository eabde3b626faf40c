"""
Calendar date helpers

Date-only fields (due dates, visit dates, expiries) are calendar dates in the
school's time zone, never instants. Older records carry full ISO timestamps for
the same fields, so parsing accepts both forms and always lands on a date.
"""

import math
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

DateInput = Union[None, str, date, datetime]


def get_zone(time_zone: str) -> ZoneInfo:
    """Resolve an IANA time zone name"""
    try:
        return ZoneInfo(time_zone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown time zone: {time_zone}") from e


def _instant_to_date(value: datetime, time_zone: str) -> date:
    # Naive timestamps are stored as UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(get_zone(time_zone)).date()


def parse_calendar_date(value: DateInput, time_zone: str = "UTC") -> Optional[date]:
    """
    Normalise a date-only field to a calendar date.

    Accepts a date, a datetime, a 'YYYY-MM-DD' string or an ISO-8601 timestamp
    ('Z' or offset suffix). Timestamps are converted to the calendar date they
    fall on in `time_zone`. None and empty strings give None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return _instant_to_date(value, time_zone)
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Unsupported date value: {value!r}")

    text = value.strip()
    if not text:
        return None
    if 'T' not in text and ' ' not in text:
        try:
            return datetime.strptime(text, '%Y-%m-%d').date()
        except ValueError as e:
            raise ValueError(f"Invalid date: {value}") from e
    try:
        instant = datetime.fromisoformat(text.replace('Z', '+00:00'))
    except ValueError as e:
        raise ValueError(f"Invalid date: {value}") from e
    return _instant_to_date(instant, time_zone)


def normalize_date_fields(data: dict, fields, time_zone: str) -> dict:
    """Rewrite the given keys of `data` as 'YYYY-MM-DD' strings (or None)"""
    for field in fields:
        if field in data:
            data[field] = format_calendar_date(parse_calendar_date(data[field], time_zone))
    return data


def format_calendar_date(value: Optional[date]) -> Optional[str]:
    """Render a calendar date as 'YYYY-MM-DD'"""
    if value is None:
        return None
    return value.strftime('%Y-%m-%d')


def today_in(time_zone: str, now: Optional[datetime] = None) -> date:
    """Today's date in the given time zone"""
    now = now or datetime.now(timezone.utc)
    return _instant_to_date(now, time_zone)


def add_days(value: date, days: float) -> date:
    """Add a (possibly fractional) number of days, dropping any partial day"""
    return value + timedelta(days=math.floor(days))
