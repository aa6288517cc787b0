"""Token amounts and price movement inside a single liquidity range.

Within one range a concentrated-liquidity pool behaves like a constant
product pool on virtual reserves x = L / sqrtP, y = L * sqrtP. These are the
closed forms for that segment, in Q64.96 integer arithmetic with explicit
rounding (Uniswap V3 SqrtPriceMath).
"""

from __future__ import annotations

from amm_engine.errors import InsufficientLiquidityError, MathDomainError

from .full_math import div_round_up, mul_div, mul_div_round_up
from .tick_math import Q96

RESOLUTION = 96


def get_amount0_delta(
    sqrt_ratio_a_x96: int,
    sqrt_ratio_b_x96: int,
    liquidity: int,
    round_up: bool,
) -> int:
    """Token0 amount between two sqrt prices: L * (sqrtB - sqrtA) / (sqrtA * sqrtB).

    Arguments may come in either order.

    Raises:
        MathDomainError: If the lower sqrt price is zero
    """
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96
    if sqrt_ratio_a_x96 <= 0:
        raise MathDomainError("sqrt price must be positive")

    numerator1 = liquidity << RESOLUTION
    numerator2 = sqrt_ratio_b_x96 - sqrt_ratio_a_x96

    if round_up:
        return div_round_up(
            mul_div_round_up(numerator1, numerator2, sqrt_ratio_b_x96),
            sqrt_ratio_a_x96,
        )
    return mul_div(numerator1, numerator2, sqrt_ratio_b_x96) // sqrt_ratio_a_x96


def get_amount1_delta(
    sqrt_ratio_a_x96: int,
    sqrt_ratio_b_x96: int,
    liquidity: int,
    round_up: bool,
) -> int:
    """Token1 amount between two sqrt prices: L * (sqrtB - sqrtA)."""
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96

    if round_up:
        return mul_div_round_up(liquidity, sqrt_ratio_b_x96 - sqrt_ratio_a_x96, Q96)
    return mul_div(liquidity, sqrt_ratio_b_x96 - sqrt_ratio_a_x96, Q96)


def _next_sqrt_price_from_amount0_rounding_up(
    sqrt_price_x96: int,
    liquidity: int,
    amount: int,
    add: bool,
) -> int:
    # Rounds up so the price never moves further than the amount pays for
    if amount == 0:
        return sqrt_price_x96
    numerator1 = liquidity << RESOLUTION
    product = amount * sqrt_price_x96

    if add:
        return mul_div_round_up(numerator1, sqrt_price_x96, numerator1 + product)

    if numerator1 <= product:
        raise InsufficientLiquidityError("Output exceeds token0 available in range")
    return mul_div_round_up(numerator1, sqrt_price_x96, numerator1 - product)


def _next_sqrt_price_from_amount1_rounding_down(
    sqrt_price_x96: int,
    liquidity: int,
    amount: int,
    add: bool,
) -> int:
    if add:
        return sqrt_price_x96 + (amount << RESOLUTION) // liquidity

    quotient = div_round_up(amount << RESOLUTION, liquidity)
    if sqrt_price_x96 <= quotient:
        raise InsufficientLiquidityError("Output exceeds token1 available in range")
    return sqrt_price_x96 - quotient


def get_next_sqrt_price_from_input(
    sqrt_price_x96: int,
    liquidity: int,
    amount_in: int,
    zero_for_one: bool,
) -> int:
    """Sqrt price after adding ``amount_in`` of the input token.

    Raises:
        MathDomainError: If price or liquidity is not positive
    """
    if sqrt_price_x96 <= 0 or liquidity <= 0:
        raise MathDomainError("sqrt price and liquidity must be positive")
    if zero_for_one:
        return _next_sqrt_price_from_amount0_rounding_up(sqrt_price_x96, liquidity, amount_in, True)
    return _next_sqrt_price_from_amount1_rounding_down(sqrt_price_x96, liquidity, amount_in, True)


def get_next_sqrt_price_from_output(
    sqrt_price_x96: int,
    liquidity: int,
    amount_out: int,
    zero_for_one: bool,
) -> int:
    """Sqrt price after removing ``amount_out`` of the output token.

    Raises:
        MathDomainError: If price or liquidity is not positive
        InsufficientLiquidityError: If the range cannot supply amount_out
    """
    if sqrt_price_x96 <= 0 or liquidity <= 0:
        raise MathDomainError("sqrt price and liquidity must be positive")
    if zero_for_one:
        return _next_sqrt_price_from_amount1_rounding_down(
            sqrt_price_x96, liquidity, amount_out, False
        )
    return _next_sqrt_price_from_amount0_rounding_up(sqrt_price_x96, liquidity, amount_out, False)
