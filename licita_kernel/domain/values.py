"""
Monetary rounding helpers.

All money in the engine is ``Decimal`` rounded half-up to two places.
Quantities keep whatever precision they were recorded with.
"""

from decimal import ROUND_HALF_UP, Decimal

ZERO = Decimal("0")
_CENTS = Decimal("0.01")


def quantize(value: Decimal, places: int = 2) -> Decimal:
    """Round ``value`` half-up to ``places`` decimal places."""
    exponent = _CENTS if places == 2 else Decimal(1).scaleb(-places)
    return value.quantize(exponent, rounding=ROUND_HALF_UP)

