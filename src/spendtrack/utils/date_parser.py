"""Date parsing utilities."""

import re
from datetime import date, timedelta
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

SPENDING_PERIODS = (
    "current_month",
    "last_month",
    "last_3_months",
    "last_6_months",
    "year_to_date",
    "custom",
)

_NUMERIC_DATE = re.compile(r"^(\d{1,2})[/.](\d{1,2})[/.](\d{4})$")


def _parse_numeric_date(date_str: str) -> Optional[date]:
    """Parse D/M/YYYY or M/D/YYYY, preferring day-first when ambiguous."""
    match = _NUMERIC_DATE.match(date_str)
    if match is None:
        return None
    first, second, year = (int(part) for part in match.groups())
    if second > 12 and first <= 12:
        # Only valid as month/day
        month, day = first, second
    else:
        day, month = first, second
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - ISO dates: "2024-01-15"
    - Numeric bank export dates: "15/01/2024", "15.01.2024", "01/31/2024"
      (day-first unless only month-first is valid)
    - Textual dates: "January 15, 2024", "15 Jan 2024"
    - Relative dates: "today", "yesterday", "this month", "last month", etc.

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    if date_str is None or not str(date_str).strip():
        raise ValueError("Empty date string")

    date_str = str(date_str).strip().lower()
    today = date.today()

    # Handle relative dates
    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
        "this month": today.replace(day=1),
        "this year": today.replace(month=1, day=1),
        "last month": (today - relativedelta(months=1)).replace(day=1),
        "last year": today.replace(month=1, day=1) - relativedelta(years=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    numeric = _parse_numeric_date(date_str)
    if numeric is not None:
        return numeric

    # Try parsing as absolute date
    try:
        dt = date_parser.parse(date_str)
        return dt.date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def _month_end(day: date) -> date:
    return day.replace(day=1) + relativedelta(months=1) - timedelta(days=1)


def get_period_range(
    period: str,
    date_from: Optional[str | date] = None,
    date_to: Optional[str | date] = None,
    today: Optional[date] = None,
) -> tuple[date, date]:
    """Get start and end dates for a named spending period.

    Calendar periods always end on the last day of a month, so the current
    month is counted in full.

    Args:
        period: One of current_month, last_month, last_3_months,
            last_6_months, year_to_date, custom
        date_from: Start date, required for custom
        date_to: End date, required for custom
        today: Reference day (defaults to date.today())

    Returns:
        Tuple of (start_date, end_date), both inclusive

    Raises:
        ValueError: If the period is unknown, or custom lacks either date
    """
    period = period.strip().lower()
    today = today or date.today()
    month_start = today.replace(day=1)

    if period == "current_month":
        return (month_start, _month_end(today))

    elif period == "last_month":
        start_date = month_start - relativedelta(months=1)
        return (start_date, month_start - timedelta(days=1))

    elif period == "last_3_months":
        return (month_start - relativedelta(months=2), _month_end(today))

    elif period == "last_6_months":
        return (month_start - relativedelta(months=5), _month_end(today))

    elif period == "year_to_date":
        return (today.replace(month=1, day=1), _month_end(today))

    elif period == "custom":
        if not date_from or not date_to:
            raise ValueError("Custom period requires dateFrom and dateTo")
        start_date = date_from if isinstance(date_from, date) else parse_date(date_from)
        end_date = date_to if isinstance(date_to, date) else parse_date(date_to)
        if start_date > end_date:
            raise ValueError(f"Start date {start_date} is after end date {end_date}")
        return (start_date, end_date)

    else:
        raise ValueError(
            f"Unknown period: '{period}'. Supported periods: {', '.join(SPENDING_PERIODS)}"
        )
