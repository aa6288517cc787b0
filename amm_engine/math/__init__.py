"""Mathematical primitives for pool calculations.

- full_math / amounts / scaling: integer helpers, input validation, fees
- tolerance / sampling: closeness checks and seeded randomness for fuzzing
- tick_math / sqrt_price_math / swap_math: concentrated-liquidity math
- stable_math: two-coin StableSwap invariant solver
"""

from amm_engine.math.amounts import apply_slippage, to_amount
from amm_engine.math.full_math import div_round_up, mul_div, mul_div_round_up
from amm_engine.math.sampling import random_exponential, random_linear, seeded_rng
from amm_engine.math.scaling import add_fee, fee_to_units, subtract_fee
from amm_engine.math.tolerance import close_values, relative_error, round_trip_tolerance

__all__ = [
    "to_amount",
    "apply_slippage",
    "mul_div",
    "mul_div_round_up",
    "div_round_up",
    "seeded_rng",
    "random_linear",
    "random_exponential",
    "fee_to_units",
    "subtract_fee",
    "add_fee",
    "close_values",
    "relative_error",
    "round_trip_tolerance",
]
