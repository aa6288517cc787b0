"""Fee and precision-scaling helpers.

Fees are converted once from a Decimal fraction to integer units over
FEE_DENOMINATOR. Stable pools scale small reserves up before solving so the
integer Newton iterations keep enough significant digits, then scale results
back down in the pool's favour.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from amm_engine.constants import FEE_DENOMINATOR
from amm_engine.errors import InvalidFeeError, InvalidInputError


def to_fee(fee: Decimal | float | int | str) -> Decimal:
    """Normalize a fee fraction to Decimal.

    Floats go through str() so 0.003 stays 0.003 rather than its binary
    expansion.

    Raises:
        InvalidFeeError: If fee is not numeric or not in [0, 1)
    """
    if isinstance(fee, bool):
        raise InvalidFeeError("Fee must be numeric, got bool")
    try:
        value = fee if isinstance(fee, Decimal) else Decimal(str(fee))
    except InvalidOperation as err:
        raise InvalidFeeError(f"Fee must be numeric: '{fee}'") from err
    if not value.is_finite() or value < 0 or value >= 1:
        raise InvalidFeeError(f"Fee must be in [0, 1), got {fee}")
    return value


def fee_to_units(fee: Decimal | float | int | str) -> int:
    """Convert a fee fraction to integer units over FEE_DENOMINATOR.

    Args:
        fee: Fee as a fraction (e.g. 0.003 for 0.3%)

    Returns:
        Fee units, rounded down (e.g. 3 * 10**15 for 0.3%)

    Raises:
        InvalidFeeError: If fee is not in [0, 1)
    """
    numerator, denominator = to_fee(fee).as_integer_ratio()
    units = numerator * FEE_DENOMINATOR // denominator
    if units >= FEE_DENOMINATOR:
        raise InvalidFeeError(f"Fee {fee} rounds to 100%")
    return units


def subtract_fee(amount: int, fee_units: int) -> int:
    """Amount left after taking the fee, rounded down."""
    return amount * (FEE_DENOMINATOR - fee_units) // FEE_DENOMINATOR


def add_fee(amount: int, fee_units: int) -> int:
    """Gross amount whose fee-less part covers ``amount``, rounded up.

    subtract_fee(add_fee(x, f), f) >= x for all x >= 0.
    """
    complement = FEE_DENOMINATOR - fee_units
    return -((-amount * FEE_DENOMINATOR) // complement)


def precision_scaling_factor(*reserves: int, digits: int) -> int:
    """Power of ten that lifts the smallest reserve to at least ``digits`` digits.

    Args:
        reserves: Pool reserves in base units
        digits: Minimum number of digits wanted for the smallest reserve

    Returns:
        10**k for the smallest k >= 0 that does it, or 1 when any reserve is zero
    """
    smallest = min(reserves)
    if smallest <= 0:
        return 1
    shortfall = digits - len(str(smallest))
    return 10 ** max(0, shortfall)


def scale_up(amount: int, scaling_factor: int) -> int:
    """Scale a base-unit amount up for internal math.

    Raises:
        InvalidInputError: If scaling_factor <= 0
    """
    _check_scaling_factor(scaling_factor)
    return amount * scaling_factor


def scale_down_down(amount: int, scaling_factor: int) -> int:
    """Scale an internal result back to base units, rounding down (outputs)."""
    _check_scaling_factor(scaling_factor)
    return amount // scaling_factor


def scale_down_up(amount: int, scaling_factor: int) -> int:
    """Scale an internal result back to base units, rounding up (inputs)."""
    _check_scaling_factor(scaling_factor)
    return -((-amount) // scaling_factor)


def _check_scaling_factor(scaling_factor: int) -> None:
    if scaling_factor <= 0:
        raise InvalidInputError(f"Scaling factor must be positive, got {scaling_factor}")
