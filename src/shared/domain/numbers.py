"""Decimal helpers shared by pricing, statistics and ratings."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Union

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """Convert catalog/JSON numbers without binary float noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_half_up(value: Number, places: int = 0) -> Decimal:
    """Round like a cashier: ``0.5`` always goes up (``2.45`` -> ``2.5``)."""
    exponent = Decimal(1).scaleb(-places)
    return to_decimal(value).quantize(exponent, rounding=ROUND_HALF_UP)


def mean(values: Iterable[Number]) -> Decimal:
    """Arithmetic mean of ``values``; ``0`` for an empty sequence."""
    numbers = [to_decimal(v) for v in values]
    if not numbers:
        return Decimal("0")
    return sum(numbers, Decimal("0")) / len(numbers)


def percentage(part: int, whole: int) -> int:
    """``round_half_up(100 * part / whole)``; ``0`` when ``whole`` is zero."""
    if not whole:
        return 0
    return int(round_half_up(Decimal(100 * part) / Decimal(whole)))
