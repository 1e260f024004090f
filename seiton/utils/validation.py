"""
Input parsing shared by forms and the JSON API
"""
import re
from decimal import Decimal, InvalidOperation

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_NUMBER_RE = re.compile(r"^-?\d+(?:\.(\d+))?$")


def parse_amount(value: str, max_decimal_places: int = 2) -> Decimal:
    """
    Parse a typed number; a decimal comma is accepted.

    Raises:
        ValueError: not a plain number, or more than `max_decimal_places` decimals

    Example:
        >>> parse_amount("100,50")
        Decimal('100.50')
        >>> parse_amount("1,5", max_decimal_places=3)
        Decimal('1.5')
    """
    text = str(value).strip().replace(",", ".")
    match = _NUMBER_RE.match(text)
    if not match:
        raise ValueError("Invalid amount")
    decimals = match.group(1) or ""
    if len(decimals) > max_decimal_places:
        raise ValueError(f"At most {max_decimal_places} decimal places")
    try:
        return Decimal(text)
    except InvalidOperation:
        raise ValueError("Invalid amount")


def normalize_email(value: str) -> str:
    return value.strip().lower()


def is_valid_email(value: str) -> bool:
    return bool(_EMAIL_RE.match(value))
