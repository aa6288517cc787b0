"""Closeness comparators used by round-trip and price checks.

Integer rounding at the edges of a trade costs a handful of base units, so
acceptable relative error grows as amounts shrink.
"""

from __future__ import annotations

import math

# Relative precision floor for large amounts
DEFAULT_PRECISION_FLOOR = 1e-10

# Base units of rounding slack accepted on each side of a round trip
ROUND_TRIP_BASE_UNITS = 100

# Base units of slack accepted in the reciprocal price identity
PRICE_BASE_UNITS = 10


def relative_error(a: float, b: float) -> float:
    """Return |a/b - 1|, with 0 for a == b and inf when only b is zero."""
    if a == b:
        return 0.0
    if b == 0:
        return math.inf
    return abs(a / b - 1)


def close_values(a: float, b: float, precision: float) -> bool:
    """Check that a and b agree within a relative precision.

    Args:
        a: Value under test
        b: Reference value
        precision: Maximum accepted |a/b - 1|

    Returns:
        True when the values are close (equal values are always close)
    """
    if a == b:
        return True
    if math.isnan(a) or math.isnan(b):
        return False
    return relative_error(a, b) < precision


def round_trip_tolerance(
    amount_out: float,
    amount_in: float,
    *,
    base_units: int = ROUND_TRIP_BASE_UNITS,
    floor: float = DEFAULT_PRECISION_FLOOR,
) -> float:
    """Tolerance for quote_input(quote_output(x).amount).amount ≈ x.

    Returns max(floor, base_units/out, base_units/in); inf when either amount
    is zero since nothing meaningful can be recovered from a zero quote.
    """
    if amount_out <= 0 or amount_in <= 0:
        return math.inf
    return max(floor, base_units / amount_out, base_units / amount_in)


def price_product_tolerance(
    reserve0: int,
    reserve1: int,
    *,
    base_units: int = PRICE_BASE_UNITS,
    floor: float = DEFAULT_PRECISION_FLOOR,
) -> float:
    """Tolerance for current_price(True) * current_price(False) ≈ 1."""
    if reserve0 <= 0 or reserve1 <= 0:
        return math.inf
    return max(floor, base_units / reserve0, base_units / reserve1)
