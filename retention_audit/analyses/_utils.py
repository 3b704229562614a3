"""Shared rounding and ratio helpers for report calculations."""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

# Standard percentage precision: 2 decimal places (e.g., 45.67%)
PERCENTAGE_PRECISION = Decimal("0.01")


def round2(value: Decimal) -> Decimal:
    return value.quantize(PERCENTAGE_PRECISION, rounding=ROUND_HALF_UP)


def safe_ratio(numerator: Decimal | int, denominator: Decimal | int) -> Decimal | None:
    """Return ``numerator / denominator`` or None when the denominator is zero."""
    if denominator == 0:
        return None
    return Decimal(numerator) / Decimal(denominator)


def safe_percentage(
    numerator: Decimal | int, denominator: Decimal | int
) -> Decimal | None:
    """Return the percentage rounded to 2 decimals, or None for a zero denominator.

    >>> safe_percentage(1, 3)
    Decimal('33.33')
    >>> safe_percentage(5, 0) is None
    True
    """
    ratio = safe_ratio(numerator, denominator)
    if ratio is None:
        return None
    return round2(ratio * 100)


def safe_average(values: list[Decimal]) -> Decimal | None:
    if not values:
        return None
    return round2(sum(values, Decimal("0")) / len(values))
