"""One step of a concentrated-liquidity swap.

A step moves the price from its current value toward a target (the next
initialized tick) using the active liquidity only, stopping early if the
remaining amount runs out first.
"""

from __future__ import annotations

from dataclasses import dataclass

from amm_engine.constants import FEE_DENOMINATOR

from .full_math import mul_div, mul_div_round_up
from .sqrt_price_math import (
    get_amount0_delta,
    get_amount1_delta,
    get_next_sqrt_price_from_input,
    get_next_sqrt_price_from_output,
)


@dataclass(frozen=True)
class SwapStep:
    """Result of a single swap step.

    Attributes:
        sqrt_price_next_x96: Price after the step (equals the target when reached)
        amount_in: Input consumed, excluding fee
        amount_out: Output produced
        fee_amount: Fee charged on the input
    """

    sqrt_price_next_x96: int
    amount_in: int
    amount_out: int
    fee_amount: int


def compute_swap_step(
    sqrt_ratio_current_x96: int,
    sqrt_ratio_target_x96: int,
    liquidity: int,
    amount_remaining: int,
    fee_units: int,
) -> SwapStep:
    """Swap as far as possible toward the target within one liquidity range.

    Direction is implied: target below current means token0 -> token1.
    Rounding always favours the pool: inputs round up, outputs round down.

    Args:
        sqrt_ratio_current_x96: Current sqrt price
        sqrt_ratio_target_x96: Price the step must not pass
        liquidity: Active liquidity in the range
        amount_remaining: Positive for exact input (input left incl. fee),
            negative for exact output (minus the output still wanted)
        fee_units: Fee over FEE_DENOMINATOR

    Returns:
        SwapStep with the new price and the amounts moved
    """
    zero_for_one = sqrt_ratio_current_x96 >= sqrt_ratio_target_x96
    exact_in = amount_remaining >= 0
    fee_complement = FEE_DENOMINATOR - fee_units

    amount_in = 0
    amount_out = 0

    if exact_in:
        remaining_less_fee = mul_div(amount_remaining, fee_complement, FEE_DENOMINATOR)
        if zero_for_one:
            amount_in = get_amount0_delta(
                sqrt_ratio_target_x96, sqrt_ratio_current_x96, liquidity, True
            )
        else:
            amount_in = get_amount1_delta(
                sqrt_ratio_current_x96, sqrt_ratio_target_x96, liquidity, True
            )
        if remaining_less_fee >= amount_in:
            sqrt_ratio_next_x96 = sqrt_ratio_target_x96
        else:
            sqrt_ratio_next_x96 = get_next_sqrt_price_from_input(
                sqrt_ratio_current_x96, liquidity, remaining_less_fee, zero_for_one
            )
    else:
        if zero_for_one:
            amount_out = get_amount1_delta(
                sqrt_ratio_target_x96, sqrt_ratio_current_x96, liquidity, False
            )
        else:
            amount_out = get_amount0_delta(
                sqrt_ratio_current_x96, sqrt_ratio_target_x96, liquidity, False
            )
        if -amount_remaining >= amount_out:
            sqrt_ratio_next_x96 = sqrt_ratio_target_x96
        else:
            sqrt_ratio_next_x96 = get_next_sqrt_price_from_output(
                sqrt_ratio_current_x96, liquidity, -amount_remaining, zero_for_one
            )

    reached_target = sqrt_ratio_target_x96 == sqrt_ratio_next_x96

    # Recompute whichever amounts the branch above did not pin down exactly
    if zero_for_one:
        if not (reached_target and exact_in):
            amount_in = get_amount0_delta(
                sqrt_ratio_next_x96, sqrt_ratio_current_x96, liquidity, True
            )
        if not (reached_target and not exact_in):
            amount_out = get_amount1_delta(
                sqrt_ratio_next_x96, sqrt_ratio_current_x96, liquidity, False
            )
    else:
        if not (reached_target and exact_in):
            amount_in = get_amount1_delta(
                sqrt_ratio_current_x96, sqrt_ratio_next_x96, liquidity, True
            )
        if not (reached_target and not exact_in):
            amount_out = get_amount0_delta(
                sqrt_ratio_current_x96, sqrt_ratio_next_x96, liquidity, False
            )

    # Cap output at what was asked for
    if not exact_in and amount_out > -amount_remaining:
        amount_out = -amount_remaining

    if exact_in and not reached_target:
        # Whatever input is left over after the price move is kept as fee
        fee_amount = amount_remaining - amount_in
    else:
        fee_amount = mul_div_round_up(amount_in, fee_units, fee_complement)

    return SwapStep(
        sqrt_price_next_x96=sqrt_ratio_next_x96,
        amount_in=amount_in,
        amount_out=amount_out,
        fee_amount=fee_amount,
    )
