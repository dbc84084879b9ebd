from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

Number = Union[int, float, Decimal]


def _to_decimal(value: Number) -> Decimal:
    # str() keeps 0.1 as 0.1 instead of its binary expansion.
    return value if isinstance(value, Decimal) else Decimal(str(value))


def round_half_up(value: Number) -> int:
    """Round to whole minor units, halves away from zero."""
    return int(_to_decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def apply_rate(amount: int, rate: Number) -> int:
    """``round_half_up(amount * rate)``."""
    return round_half_up(Decimal(int(amount)) * _to_decimal(rate))


def percentage_of(amount: int, percentage: Number) -> int:
    """``round_half_up(amount * percentage / 100)``."""
    return round_half_up(Decimal(int(amount)) * _to_decimal(percentage) / Decimal(100))


def ceil_div(amount: int, parts: int) -> int:
    return -(-int(amount) // int(parts))
