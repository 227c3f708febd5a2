"""Date parsing utilities."""

from datetime import date, datetime, timedelta
from typing import Optional, Union

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-15", "January 15, 2024", ISO
    timestamps) and a few relative forms: "today", "yesterday",
    "this month", "last month", "this year", "last year".

    Args:
        date_str: Date string

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    text = date_str.strip().lower()
    today = date.today()

    if text == "today":
        return today
    if text == "yesterday":
        return today - timedelta(days=1)
    if text == "this month":
        return today.replace(day=1)
    if text == "last month":
        return (today - relativedelta(months=1)).replace(day=1)
    if text == "this year":
        return today.replace(month=1, day=1)
    if text == "last year":
        return today.replace(month=1, day=1) - relativedelta(years=1)

    try:
        return date_parser.parse(text).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def coerce_date(value: Union[str, date, datetime, None]) -> Optional[date]:
    """Turn a stored date value into a date, keeping None as None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date_parser.isoparse(value).date()
    except ValueError:
        return parse_date(value)


def coerce_datetime(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Parse a timestamp value, keeping None as None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return date_parser.isoparse(value)


def get_date_range(period: str) -> tuple[date, date]:
    """Get start and end dates for a named period.

    Args:
        period: One of this-month, this-year, last-month, last-year

    Returns:
        Tuple of (start_date, end_date)
    """
    period = period.strip().lower()
    today = date.today()

    if period == "this-month":
        return (today.replace(day=1), today)
    if period == "this-year":
        return (today.replace(month=1, day=1), today)
    if period == "last-month":
        end_date = today.replace(day=1) - timedelta(days=1)
        return (end_date.replace(day=1), end_date)
    if period == "last-year":
        start_date = today.replace(month=1, day=1) - relativedelta(years=1)
        return (start_date, today.replace(month=1, day=1) - timedelta(days=1))

    raise ValueError(
        f"Unknown period: '{period}'. Supported periods: this-month, this-year, last-month, last-year"
    )
