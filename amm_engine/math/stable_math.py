"""Two-coin StableSwap (Curve-style) math.

Invariant, with Ann = A * n**n and n = 2:

    Ann * (x + y) + D = Ann * D + D**3 / (4 * x * y)

Amplification is carried as ``amp = A * AMP_PRECISION`` where A follows the
Curve storage convention (already multiplied by n**(n-1)), so the solver
uses ``amp * n`` for Ann.

Both swap directions go through the same invariant D and the same balance
solver, so out-given-in and in-given-out are inverses up to one unit of
rounding protection on each side.

All balances passed here are expected to be already scaled up
(see scaling.precision_scaling_factor).
"""

from __future__ import annotations

from amm_engine.constants import AMP_PRECISION, STABLE_MAX_ITERATIONS, STABLE_N_COINS
from amm_engine.errors import (
    InsufficientLiquidityError,
    StableBalanceDidNotConverge,
    StableInvariantDidNotConverge,
)

N_COINS = STABLE_N_COINS

# Newton stops once a step moves the estimate by at most 1/CONVERGENCE_DIVISOR
# of it; truncation noise of a few units never settles below that.
CONVERGENCE_DIVISOR = 10**15


def _converged(current: int, previous: int) -> bool:
    return abs(current - previous) <= max(1, current // CONVERGENCE_DIVISOR)


def calculate_invariant(
    amp: int,
    balances: tuple[int, int],
    max_iterations: int = STABLE_MAX_ITERATIONS,
) -> int:
    """Calculate StableSwap invariant D using Newton-Raphson iteration.

    Algorithm:
        1. Initial guess: D = sum(balances)
        2. Iterate until a step moves D by at most max(1, D / 1e15)
        3. Give up after max_iterations

    Args:
        amp: Amplification parameter (scaled by AMP_PRECISION)
        balances: Scaled token balances
        max_iterations: Iteration cap

    Returns:
        The invariant D

    Raises:
        InsufficientLiquidityError: If any balance is not positive
        StableInvariantDidNotConverge: If iteration doesn't converge
    """
    for i, balance in enumerate(balances):
        if balance <= 0:
            raise InsufficientLiquidityError(f"Balance at index {i} must be positive")

    balance_x, balance_y = balances
    sum_balances = balance_x + balance_y
    ann = amp * N_COINS
    d = sum_balances

    for _ in range(max_iterations):
        # d_p = D**3 / (4 * x * y), truncated once
        d_p = d**3 // (N_COINS**N_COINS * balance_x * balance_y)

        numerator = (ann * sum_balances // AMP_PRECISION + d_p * N_COINS) * d
        denominator = (ann - AMP_PRECISION) * d // AMP_PRECISION + (N_COINS + 1) * d_p
        if denominator <= 0:
            raise StableInvariantDidNotConverge("Invariant denominator became non-positive")

        d_prev = d
        d = numerator // denominator

        if _converged(d, d_prev):
            return d

    raise StableInvariantDidNotConverge(
        f"Stable invariant did not converge after {max_iterations} iterations"
    )


def get_balance_given_invariant(
    amp: int,
    other_balance: int,
    invariant: int,
    max_iterations: int = STABLE_MAX_ITERATIONS,
) -> int:
    """Solve for one balance given D and the other balance.

    Newton-Raphson on y**2 + (b - D) * y - c = 0 with
    c = D**3 / (4 * x * Ann) and b = x + D / Ann.

    Args:
        amp: Amplification parameter (scaled by AMP_PRECISION)
        other_balance: The known (scaled) balance x
        invariant: The invariant D to preserve
        max_iterations: Iteration cap

    Returns:
        The balance y

    Raises:
        InsufficientLiquidityError: If other_balance is not positive
        StableBalanceDidNotConverge: If iteration doesn't converge
    """
    if other_balance <= 0:
        raise InsufficientLiquidityError("Known balance must be positive")

    d = invariant
    ann = amp * N_COINS

    c = d * d // (other_balance * N_COINS)
    c = c * d * AMP_PRECISION // (ann * N_COINS)
    b = other_balance + d * AMP_PRECISION // ann

    # Initial guess: (D**2 + c) / (D + b), close to the root from above
    y = (d * d + c) // (d + b)

    for _ in range(max_iterations):
        y_prev = y
        denominator = 2 * y + b - d
        if denominator <= 0:
            raise StableBalanceDidNotConverge("Denominator became non-positive")

        y = (y * y + c) // denominator

        if _converged(y, y_prev):
            return y

    raise StableBalanceDidNotConverge(
        f"Stable get_balance did not converge after {max_iterations} iterations"
    )


def stable_calc_out_given_in(
    amp: int,
    balance_in: int,
    balance_out: int,
    amount_in: int,
    invariant: int | None = None,
    max_iterations: int = STABLE_MAX_ITERATIONS,
) -> int:
    """Calculate output amount for a given input.

    Fee should be subtracted from amount_in BEFORE calling this function.

    Algorithm:
        1. D for current balances (or the cached one)
        2. Solve y for balance_in + amount_in
        3. Return: balance_out - y - 1 (1 unit rounding protection)

    Returns:
        Scaled output amount, never negative
    """
    if invariant is None:
        invariant = calculate_invariant(amp, (balance_in, balance_out), max_iterations)

    new_balance_out = get_balance_given_invariant(
        amp, balance_in + amount_in, invariant, max_iterations
    )
    if new_balance_out >= balance_out:
        return 0
    return max(0, balance_out - new_balance_out - 1)


def stable_calc_in_given_out(
    amp: int,
    balance_in: int,
    balance_out: int,
    amount_out: int,
    invariant: int | None = None,
    max_iterations: int = STABLE_MAX_ITERATIONS,
) -> int:
    """Calculate input amount for a given output.

    Fee should be added to the result AFTER calling this function.

    Algorithm:
        1. D for current balances (or the cached one)
        2. Solve x for balance_out - amount_out
        3. Return: x - balance_in + 1 (1 unit rounding protection)

    Returns:
        Scaled input amount (before fee addition)

    Raises:
        InsufficientLiquidityError: If amount_out >= balance_out
    """
    if amount_out >= balance_out:
        raise InsufficientLiquidityError("amount_out must be less than balance_out")

    if invariant is None:
        invariant = calculate_invariant(amp, (balance_in, balance_out), max_iterations)

    new_balance_in = get_balance_given_invariant(
        amp, balance_out - amount_out, invariant, max_iterations
    )
    return max(0, new_balance_in - balance_in + 1)


def stable_spot_price(amp: int, balance_in: int, balance_out: int, invariant: int) -> float:
    """Marginal output per unit of input at current balances, fee excluded.

    This is -dy/dx of the invariant:

        (Ann + D**3 / (4 x**2 y)) / (Ann + D**3 / (4 x y**2))

    evaluated on u = x / D and v = y / D so the floats stay in range for any
    reserve magnitude. Swapping the arguments gives the exact reciprocal.
    """
    ann = amp * N_COINS / AMP_PRECISION
    u = balance_in / invariant
    v = balance_out / invariant
    k = 4 * ann * u * u * v * v
    return (k + v) / (k + u)
