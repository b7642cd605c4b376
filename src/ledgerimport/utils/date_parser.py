"""Date parsing utilities."""

from datetime import date, datetime, timedelta
import re
from typing import Any, Optional

from dateutil import parser as date_parser

ISO_DATE = re.compile(r"^\d{4}-\d{1,2}-\d{1,2}$")
STATEMENT_DATE = re.compile(r"^(\d{2})(\d{2})(\d{2})$")


def parse_date(date_str: Any) -> date:
    """Parse a date string into a date object.

    Supports:
    - ISO dates: "2024-01-15"
    - Day-first dates used by local exports: "15.01.2024", "15/01/2024", "15-01-2024"
    - Other formats understood by dateutil: "January 15, 2024"
    - Relative dates: "today", "yesterday", "tomorrow"
    - date/datetime values coming from spreadsheet cells

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    if isinstance(date_str, datetime):
        return date_str.date()
    if isinstance(date_str, date):
        return date_str
    if date_str is None:
        raise ValueError("Empty date string")

    date_str = str(date_str).strip().lower()
    if not date_str:
        raise ValueError("Empty date string")

    today = date.today()
    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    try:
        # Year-first strings must not be read day-first
        dt = date_parser.parse(date_str, dayfirst=not ISO_DATE.match(date_str))
        return dt.date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def parse_statement_date(value: str) -> Optional[date]:
    """Parse a six-digit YYMMDD statement date.

    Years are taken from the 2000s. Returns None for malformed values.
    """
    match = STATEMENT_DATE.match(value or "")
    if match is None:
        return None
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(2000 + year, month, day)
    except ValueError:
        return None


def period_date(year: int, month: int, day: int = 15) -> date:
    """Return the posting date used for a monthly settlement period."""
    return date(year, month, day)
