"""
Money helpers.

All amounts are Decimal and rounded half-up to cents at result boundaries.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


def to_decimal(value: Decimal | int | float | str | None) -> Decimal:
    """Convert a numeric value to Decimal, treating None as zero."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    # str() avoids binary float artefacts (0.1 -> 0.1000000000000000055...)
    return Decimal(str(value))


def round_money(value: Decimal, places: int = 2) -> Decimal:
    """Round an amount half-up to the given number of decimal places."""
    quantum = Decimal(1).scaleb(-places)
    return value.quantize(quantum, rounding=ROUND_HALF_UP)


def percentage_of(amount: Decimal, percentage: Decimal) -> Decimal:
    """Return ``percentage`` percent of ``amount``."""
    return amount * percentage / HUNDRED


def clamp(value: Decimal, minimum: Decimal | None = None, maximum: Decimal | None = None) -> Decimal:
    """Clamp a value to optional bounds."""
    if minimum is not None and value < minimum:
        value = minimum
    if maximum is not None and value > maximum:
        value = maximum
    return value


def max_or_zero(values: Iterable[Decimal]) -> Decimal:
    """Maximum of the values, or zero when there are none."""
    return max(values, default=ZERO)
