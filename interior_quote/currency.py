"""
Currency display. Amounts are stored and summed unrounded.
"""

from .calculators.base import parse_number
from .config import settings


def _group_indian(digits: str) -> str:
    """12345678 -> 1,23,45,678 (last three digits, then pairs)."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs) + "," + tail


def format_amount(amount, currency_code: str = None) -> str:
    """Two-decimal amount with digit grouping, no symbol."""
    code = (currency_code or settings.CURRENCY_CODE).upper()
    value = parse_number(amount)
    rounded = f"{abs(value):.2f}"
    sign = "-" if value < 0 and rounded != "0.00" else ""
    whole, fraction = rounded.split(".")
    if code == "INR":
        whole = _group_indian(whole)
    else:
        whole = f"{int(whole):,}"
    return f"{sign}{whole}.{fraction}"


def format_money(amount, symbol: str = None, currency_code: str = None) -> str:
    """
    Format a number as money, e.g. ₹1,23,456.78 (INR) or $123,456.78.

    Non-numeric input formats as 0.00.
    """
    if symbol is None:
        symbol = settings.CURRENCY_SYMBOL
    formatted = format_amount(amount, currency_code)
    if formatted.startswith("-"):
        return f"-{symbol}{formatted[1:]}"
    return f"{symbol}{formatted}"
