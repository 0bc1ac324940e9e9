"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re


def _normalize_separators(amount_str: str) -> str:
    """Turn US or European digit grouping into a plain decimal string."""
    dots = amount_str.count(".")
    commas = amount_str.count(",")

    if dots and commas:
        if amount_str.rfind(",") > amount_str.rfind("."):
            # European format: 1.234,56
            return amount_str.replace(".", "").replace(",", ".")
        # US format: 1,234.56
        return amount_str.replace(",", "")
    if commas == 1:
        # Lone comma is a decimal separator: 12,50
        return amount_str.replace(",", ".")
    if commas > 1:
        return amount_str.replace(",", "")
    if dots > 1:
        return amount_str.replace(".", "")
    return amount_str


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45"
    - "-123.45"
    - "-$123.45"
    - "1,234.56"
    - "1.234,56" (European grouping)
    - "12,50" (comma decimal separator)
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if amount_str is None or not str(amount_str).strip():
        raise ValueError("Empty amount string")

    # Remove whitespace
    amount_str = str(amount_str).strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    # Remove currency symbols and inner whitespace
    amount_str = re.sub(r"[$€£¥\s]", "", amount_str)

    amount_str = _normalize_separators(amount_str)

    try:
        amount = Decimal(amount_str)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if is_negative:
        amount = -amount
    return amount
