"""
Display formatting for currency and numbers (en-IN conventions).

Presentation only: nothing in the calculators depends on these strings.
"""
import math
from typing import Any, Optional

from app.core.numbers import round_half_up

CURRENCY_SYMBOLS = {"INR": "₹", "USD": "$", "EUR": "€", "GBP": "£"}


def _is_missing(amount: Any) -> bool:
    if amount is None or isinstance(amount, bool):
        return True
    if not isinstance(amount, (int, float)):
        return True
    return math.isnan(amount) or math.isinf(amount)


def group_indian(digits: str) -> str:
    """Groups an unsigned digit string as 12,34,56,789."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_currency(amount: Any, currency: str = "INR") -> str:
    symbol = CURRENCY_SYMBOLS.get(currency, f"{currency} ")
    if _is_missing(amount):
        return f"{symbol}0"

    rounded = int(round_half_up(amount))
    sign = "-" if rounded < 0 else ""
    return f"{sign}{symbol}{group_indian(str(abs(rounded)))}"


def format_large_number(amount: Any) -> str:
    """Compact rupee figure with K (thousand), L (lakh) or Cr (crore) suffix."""
    if _is_missing(amount):
        return "₹0"

    abs_amount = abs(amount)
    if abs_amount >= 10_000_000:
        return f"₹{amount / 10_000_000:.1f}Cr"
    elif abs_amount >= 100_000:
        return f"₹{amount / 100_000:.1f}L"
    elif abs_amount >= 1_000:
        return f"₹{amount / 1_000:.1f}K"
    return f"₹{amount:.0f}"


def format_percentage(value: Optional[float], decimals: int = 1) -> str:
    if _is_missing(value):
        return "0%"
    return f"{value:.{decimals}f}%"


def format_number(number: Any, max_fraction_digits: int = 3) -> str:
    if _is_missing(number):
        return "0"

    rounded = round_half_up(number, max_fraction_digits)
    sign = "-" if rounded < 0 else ""
    whole, _, fraction = f"{abs(rounded):.{max_fraction_digits}f}".partition(".")
    fraction = fraction.rstrip("0")
    text = group_indian(whole)
    return f"{sign}{text}.{fraction}" if fraction else f"{sign}{text}"
