"""Date parsing utilities.

Allocation dates and rent periods are calendar dates. Values entering the
system as timestamps are reduced to their UTC calendar day here, so a shop
allocated "2024-01-01" never slides into December because of a local offset.
"""

import re
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

_ISO_DAY = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DateLike = Union[date, datetime, str]


def utc_now() -> datetime:
    """Current time as an aware UTC datetime. Default clock for services."""
    return datetime.now(timezone.utc)


def parse_date(date_str: str, today: Optional[date] = None) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2024-01-15", "January 15, 2024", etc.
    - Relative dates: "today", "yesterday", "last month", "this month".

    Args:
        date_str: Date string in various formats
        today: Reference day for relative dates (defaults to the UTC day)

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    if today is None:
        today = utc_now().date()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
        "this month": today.replace(day=1),
        "last month": (today - relativedelta(months=1)).replace(day=1),
        "next month": (today + relativedelta(months=1)).replace(day=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    return to_calendar_date(date_str)


def to_calendar_date(value: DateLike) -> date:
    """Normalize a date-only value to a calendar date.

    - ``date`` is returned unchanged.
    - ``datetime`` is converted to UTC first when aware, then truncated.
    - ``"YYYY-MM-DD"`` is read literally as that calendar day.
    - Any other string goes through dateutil and is treated like a datetime.

    Raises:
        ValueError: If the value cannot be interpreted as a date
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Could not parse date {value!r}: unsupported type")

    text = value.strip()
    if _ISO_DAY.match(text):
        try:
            return date.fromisoformat(text)
        except ValueError as e:
            raise ValueError(f"Could not parse date '{text}': {e}")
    return to_calendar_date(parse_datetime(text))


def parse_datetime(value: Union[datetime, date, str]) -> datetime:
    """Parse a timestamp value (ISO string, datetime or date) to a naive UTC datetime.

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            dt = date_parser.isoparse(value.strip())
        except (ValueError, TypeError):
            try:
                dt = date_parser.parse(value.strip())
            except (ValueError, TypeError, OverflowError) as e:
                raise ValueError(f"Could not parse date '{value}': {e}")
    else:
        raise ValueError(f"Could not parse date {value!r}: unsupported type")

    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt
