"""Tests for date parsing and spending periods."""

import pytest
from datetime import date, timedelta
from dateutil.relativedelta import relativedelta
from spendtrack.utils.date_parser import SPENDING_PERIODS, get_period_range, parse_date


def test_parse_absolute_date():
    """Test parsing ISO dates."""
    assert parse_date("2024-01-15") == date(2024, 1, 15)


def test_parse_day_first_bank_dates():
    """Ambiguous numeric dates are read day-first."""
    assert parse_date("05/03/2024") == date(2024, 3, 5)
    assert parse_date("05.03.2024") == date(2024, 3, 5)


def test_parse_month_first_when_day_first_impossible():
    assert parse_date("01/31/2024") == date(2024, 1, 31)


def test_parse_textual_date():
    assert parse_date("January 15, 2024") == date(2024, 1, 15)
    assert parse_date("15 Jan 2024") == date(2024, 1, 15)


def test_parse_relative_dates():
    """Test parsing 'today', 'yesterday' and 'last month'."""
    today = date.today()
    assert parse_date("today") == today
    assert parse_date(" Yesterday ") == today - timedelta(days=1)
    assert parse_date("last month") == (today - relativedelta(months=1)).replace(day=1)


@pytest.mark.parametrize("value", ["", "   ", "not a date", "31/02/2024"])
def test_parse_invalid_date(value):
    with pytest.raises(ValueError):
        parse_date(value)


@pytest.mark.parametrize(
    "period, expected",
    [
        ("current_month", (date(2024, 3, 1), date(2024, 3, 31))),
        ("last_month", (date(2024, 2, 1), date(2024, 2, 29))),
        ("last_3_months", (date(2024, 1, 1), date(2024, 3, 31))),
        ("last_6_months", (date(2023, 10, 1), date(2024, 3, 31))),
        ("year_to_date", (date(2024, 1, 1), date(2024, 3, 31))),
    ],
)
def test_period_ranges(period, expected):
    assert get_period_range(period, today=date(2024, 3, 15)) == expected


def test_last_month_in_january():
    assert get_period_range("last_month", today=date(2024, 1, 10)) == (date(2023, 12, 1), date(2023, 12, 31))


def test_custom_period():
    result = get_period_range("custom", "2024-01-05", date(2024, 2, 10))
    assert result == (date(2024, 1, 5), date(2024, 2, 10))


def test_custom_period_errors():
    with pytest.raises(ValueError, match="requires"):
        get_period_range("custom", date_from="2024-01-01")
    with pytest.raises(ValueError, match="after"):
        get_period_range("custom", "2024-02-01", "2024-01-01")


def test_unknown_period_lists_supported():
    with pytest.raises(ValueError) as exc_info:
        get_period_range("fortnight")
    for period in SPENDING_PERIODS:
        assert period in str(exc_info.value)
