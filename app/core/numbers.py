import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Any


def to_number(value: Any, default: float = 0.0) -> float:
    """
    Coerces a raw input value to a finite float.

    None, booleans, blank strings, unparseable text, NaN and infinities all
    collapse to `default`. Numeric strings ("1,50,000" included) are parsed.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        value = value.replace(",", "").strip()
        if not value:
            return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def to_amount(value: Any) -> float:
    """Coerces a monetary leaf value. Amounts are never negative."""
    return max(0.0, to_number(value))


def round_half_up(value: float, places: int = 0) -> float:
    # Currency figures round half away from zero, not to even.
    quant = Decimal(1).scaleb(-places)
    rounded = Decimal(str(value)).quantize(quant, rounding=ROUND_HALF_UP)
    return float(rounded)


def round_currency(value: float) -> int:
    return int(round_half_up(value))
