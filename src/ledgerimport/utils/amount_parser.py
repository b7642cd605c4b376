"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re
from typing import Any

THREE_DIGIT_GROUP = re.compile(r"^-?[1-9]\d{0,2}\.\d{3}$")


def _normalize_separators(amount_str: str) -> str:
    """Drop thousands separators and turn the decimal separator into a dot."""
    last_comma = amount_str.rfind(",")
    last_dot = amount_str.rfind(".")

    if last_comma != -1 and last_dot != -1:
        # Whichever separator comes last is the decimal one
        if last_comma > last_dot:
            return amount_str.replace(".", "").replace(",", ".")
        return amount_str.replace(",", "")

    if last_comma != -1:
        if amount_str.count(",") > 1:
            return amount_str.replace(",", "")
        return amount_str.replace(",", ".")

    if last_dot != -1:
        if amount_str.count(".") > 1 or THREE_DIGIT_GROUP.match(amount_str):
            # "6.020" is a grouped integer in decimal-comma locales
            return amount_str.replace(".", "")

    return amount_str


def parse_amount(amount_str: Any) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45" and "123,45"
    - "6.020,00", "6 020,00" and "6020,00" (all 6020.00)
    - "1,234.56"
    - "-123,45" and "(123,45)" (negative in parentheses)
    - "123,45 zł", "€123.45"

    Numbers coming from spreadsheet cells are converted directly.

    Args:
        amount_str: Amount string or number

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount cannot be parsed
    """
    if isinstance(amount_str, bool):
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if isinstance(amount_str, Decimal):
        return amount_str
    if isinstance(amount_str, (int, float)):
        return Decimal(str(amount_str))

    if amount_str is None or not str(amount_str).strip():
        raise ValueError("Empty amount string")

    # Remove whitespace, including non-breaking and narrow spaces used for grouping
    amount_str = re.sub(r"[\s\u00a0\u202f]", "", str(amount_str))

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    # Remove currency symbols and codes
    amount_str = re.sub(r"(?i)zł|pln|eur|usd|[$€£¥]", "", amount_str)

    # Grouping apostrophes
    amount_str = amount_str.replace("'", "")

    amount_str = _normalize_separators(amount_str)

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e!r}")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return -amount if is_negative else amount


def parse_amount_or_zero(amount_str: Any) -> Decimal:
    """Parse an amount, degrading to zero for empty or malformed input."""
    try:
        return parse_amount(amount_str)
    except ValueError:
        return Decimal("0")
