"""Decimal helpers for monetary totals and percentages."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Union

CENT = Decimal("0.01")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """Convert a number to Decimal without binary float artefacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value: Number) -> Decimal:
    """Round to cents, halves away from zero."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def sum_money(values: Iterable[Number]) -> Decimal:
    """Sum exactly, then round once to cents."""
    return round_money(sum((to_decimal(v) for v in values), Decimal("0")))


def round_percent(numerator: int, denominator: int) -> int:
    """Integer percentage, halves away from zero; 0 when the denominator is 0."""
    if denominator <= 0:
        return 0
    ratio = Decimal(numerator) * 100 / Decimal(denominator)
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
