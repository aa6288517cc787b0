"""Validation of caller-supplied token amounts.

Quotes work on integer base units. Callers that computed an amount as a
float (e.g. ``reserve * 0.01``) may pass it directly; it is rounded to the
nearest base unit here, once, at the boundary.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation

from amm_engine.errors import InvalidAmountError


def to_amount(value: int | float | Decimal, name: str = "amount") -> int:
    """Convert a caller amount to non-negative integer base units.

    Args:
        value: int, or finite non-negative float/Decimal
        name: Parameter name for error messages

    Returns:
        Amount in base units

    Raises:
        InvalidAmountError: If value is negative, NaN, infinite, a bool or not numeric
    """
    if isinstance(value, bool):
        raise InvalidAmountError(f"{name} must be a number, got bool")

    if isinstance(value, int):
        result = value
    elif isinstance(value, float):
        if not math.isfinite(value):
            raise InvalidAmountError(f"{name} must be finite, got {value}")
        result = round(value)
    elif isinstance(value, Decimal):
        if not value.is_finite():
            raise InvalidAmountError(f"{name} must be finite, got {value}")
        result = int(value.to_integral_value(rounding=ROUND_HALF_EVEN))
    else:
        raise InvalidAmountError(
            f"{name} must be int, float or Decimal, got {type(value).__name__}"
        )

    if result < 0:
        raise InvalidAmountError(f"{name} cannot be negative: {value}")
    return result


def apply_slippage(amount_out: int, slippage: float | Decimal | str) -> int:
    """Calculate the minimum acceptable output for a slippage tolerance.

    Args:
        amount_out: Quoted output amount
        slippage: Tolerated fraction in [0, 1), e.g. 0.005 for 0.5%

    Returns:
        floor(amount_out * (1 - slippage))

    Raises:
        InvalidAmountError: If amount_out is invalid or slippage is out of range
    """
    amount = to_amount(amount_out, "amount_out")
    try:
        fraction = Decimal(str(slippage))
    except InvalidOperation as err:
        raise InvalidAmountError(f"slippage must be numeric: '{slippage}'") from err
    if not fraction.is_finite() or fraction < 0 or fraction >= 1:
        raise InvalidAmountError(f"slippage must be in [0, 1), got {slippage}")

    numerator, denominator = fraction.as_integer_ratio()
    return amount * (denominator - numerator) // denominator
