"""Currency helpers for the storefront.

Prices and totals are stored as ``numeric(10, 2)`` and handled in Python as
``Decimal`` quantised to cents. Floats are never used for money.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Union

# ─── constants ───────────────────────────────────────────────────────────────

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

Number = Union[Decimal, int, float, str]


# ─── conversion helpers ───────────────────────────────────────────────────────


def to_money(value: Number) -> Decimal:
    """Coerce a price-like value to a Decimal with two places (round half-up).

    Floats go through ``str`` first so 19.99 stays 19.99 and not
    19.989999999999998436805981327779591083526611328125.
    """
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def line_total(price: Number, quantity: int) -> Decimal:
    """Price × quantity at currency precision."""
    return to_money(to_money(price) * quantity)


def sum_money(values: Iterable[Number]) -> Decimal:
    """Sum money values at currency precision. Empty input sums to 0.00."""
    total = ZERO
    for value in values:
        total += to_money(value)
    return to_money(total)
