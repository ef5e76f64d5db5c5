"""Amount and rate parsing utilities."""

from decimal import Decimal, InvalidOperation
import re


def _normalize_separators(amount_str: str) -> str:
    """Turn "1.234,56", "1,234.56" and "12,5" into plain "1234.56" / "12.5"."""
    if "," in amount_str and "." in amount_str:
        # Whichever separator comes last is the decimal one
        if amount_str.rfind(",") > amount_str.rfind("."):
            return amount_str.replace(".", "").replace(",", ".")
        return amount_str.replace(",", "")
    if "," in amount_str:
        whole, _, fraction = amount_str.rpartition(",")
        if len(fraction) in (1, 2) and amount_str.count(",") == 1:
            return f"{whole}.{fraction}"
        return amount_str.replace(",", "")
    return amount_str


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45" / "R$ 123,45"
    - "-123.45"
    - "1,234.56" / "1.234,56"
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    # Remove whitespace
    amount_str = amount_str.strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    # Remove currency symbols
    amount_str = re.sub(r"R\$|[$€£¥]", "", amount_str).strip()
    amount_str = _normalize_separators(amount_str).replace(" ", "")

    try:
        amount = Decimal(amount_str)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return -amount if is_negative else amount


def parse_rate(rate_str: str) -> Decimal:
    """Parse a monthly interest rate into a decimal fraction.

    "1.5%" and "1,5%" mean 0.015; a bare number is taken as a fraction
    already ("0.015").

    Raises:
        ValueError: If the rate cannot be parsed or is negative
    """
    value = rate_str.strip()
    is_percent = value.endswith("%")
    if is_percent:
        value = value[:-1]
    rate = parse_amount(value)
    if is_percent:
        rate = rate / 100
    if rate < 0:
        raise ValueError(f"Rate must not be negative: '{rate_str}'")
    return rate
