"""Monetary helpers shared by pricing, late fees and totals."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def to_decimal(value: Decimal | int | float | str | None) -> Decimal:
    """Convert a stored or user supplied amount to ``Decimal``."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    # str() keeps floats like 0.1 from expanding to their binary representation.
    return Decimal(str(value))


def round2(value: Decimal | int | float | str | None) -> Decimal:
    """Round an amount to 2 decimal places using round-half-up."""
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def percent_multiplier(percent: Decimal | int | float | str | None) -> Decimal:
    """Return ``1 - percent/100``; 10 becomes 0.90."""
    return Decimal("1") - to_decimal(percent) / HUNDRED


def format_money(value: Decimal | int | float | str | None) -> str:
    return f"{round2(value):,.2f}"
