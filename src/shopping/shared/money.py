"""Monetary arithmetic helpers.

Amounts are stored as floats on aggregates and computed with ``Decimal``.
Every monetary result is rounded to cents with ROUND_HALF_UP, so a half
cent always rounds away from zero (0.125 -> 0.13).
"""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value) -> Decimal:
    """Convert a float/int/str amount to Decimal without binary noise."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def round_money(value) -> float:
    """Round an amount to cents and return it as a float."""
    return float(quantize(value))


def line_total(unit_price, quantity: int) -> Decimal:
    return to_decimal(unit_price) * quantity


def same_amount(left, right) -> bool:
    """Compare two amounts at cent precision."""
    return quantize(left) == quantize(right)


def format_money(value, currency_symbol: str = "$") -> str:
    return f"{currency_symbol}{quantize(value):,.2f}"
