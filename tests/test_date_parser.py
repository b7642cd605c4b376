"""Tests for date parsing."""

import pytest
from datetime import date, datetime, timedelta
from ledgerimport.utils.date_parser import parse_date, parse_statement_date, period_date


def test_parse_absolute_date():
    """Test parsing ISO dates."""
    assert parse_date("2024-01-15") == date(2024, 1, 15)


def test_parse_day_first_dates():
    """Test that local exports are read day-first."""
    assert parse_date("15.01.2024") == date(2024, 1, 15)
    assert parse_date("05/03/2024") == date(2024, 3, 5)
    assert parse_date("05-03-2024") == date(2024, 3, 5)


def test_parse_relative_dates():
    """Test parsing 'today', 'yesterday' and 'tomorrow'."""
    today = date.today()
    assert parse_date("today") == today
    assert parse_date("Yesterday") == today - timedelta(days=1)
    assert parse_date("tomorrow") == today + timedelta(days=1)


def test_parse_date_values():
    """Test that spreadsheet date values pass through."""
    assert parse_date(date(2024, 3, 1)) == date(2024, 3, 1)
    assert parse_date(datetime(2024, 3, 1, 12, 30)) == date(2024, 3, 1)


def test_parse_invalid_date():
    """Test that invalid dates raise ValueError."""
    with pytest.raises(ValueError):
        parse_date("not a date")
    with pytest.raises(ValueError):
        parse_date("")
    with pytest.raises(ValueError):
        parse_date(None)


def test_parse_statement_date():
    """Test six-digit statement dates."""
    assert parse_statement_date("240305") == date(2024, 3, 5)
    assert parse_statement_date("241305") is None
    assert parse_statement_date("2403") is None
    assert parse_statement_date("") is None


def test_period_date():
    """Test that settlement periods post on the 15th."""
    assert period_date(2024, 3) == date(2024, 3, 15)
