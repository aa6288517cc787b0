"""Engine error classes.

Two families:
- InvalidInputError: the caller handed us something malformed (negative
  amounts, bad fees, inconsistent pool state). Also a ValueError.
- PoolDomainError: the request is well formed but the pool cannot serve it
  (not enough liquidity, solver did not converge). Also an ArithmeticError.
"""

from __future__ import annotations


class AmmEngineError(Exception):
    """Base error for all engine operations."""

    pass


# =============================================================================
# Invalid input
# =============================================================================


class InvalidInputError(AmmEngineError, ValueError):
    """Input rejected at construction or call time."""

    pass


class InvalidAmountError(InvalidInputError):
    """Amount is negative, NaN, infinite or not a number."""

    pass


class InvalidFeeError(InvalidInputError):
    """Fee must be in range [0, 1)."""

    pass


class InvalidPoolStateError(InvalidInputError):
    """Pool state snapshot is malformed or internally inconsistent."""

    pass


class TickOutOfRangeError(InvalidInputError):
    """Tick index is outside [MIN_TICK, MAX_TICK]."""

    pass


class UnknownTokenError(InvalidInputError):
    """Token does not belong to the pool."""

    pass


class InvalidConfigError(InvalidInputError):
    """Engine configuration value is out of range."""

    pass


# =============================================================================
# Domain errors
# =============================================================================


class PoolDomainError(AmmEngineError, ArithmeticError):
    """Requested trade is structurally infeasible."""

    pass


class MathDomainError(PoolDomainError):
    """Fixed-point operation has no valid result (e.g. division by zero)."""

    pass


class InsufficientLiquidityError(PoolDomainError):
    """Pool does not hold enough liquidity to serve the trade."""

    pass


class LiquidityExhaustedError(InsufficientLiquidityError):
    """Concentrated-liquidity walk ran out of initialized ticks.

    Carries the partial fill so callers can fall back to it.

    Attributes:
        requested: Amount the caller asked for (input for exact-input
            quotes, output for exact-output quotes)
        filled: Part of ``requested`` the pool could serve
        amount_in: Input actually consumed by the partial walk
        amount_out: Output actually produced by the partial walk
    """

    def __init__(
        self,
        message: str,
        *,
        requested: int,
        filled: int,
        amount_in: int,
        amount_out: int,
    ) -> None:
        super().__init__(message)
        self.requested = requested
        self.filled = filled
        self.amount_in = amount_in
        self.amount_out = amount_out


class DidNotConvergeError(PoolDomainError):
    """Iterative solver hit its iteration cap."""

    pass


class StableInvariantDidNotConverge(DidNotConvergeError):
    """Newton-Raphson iteration for stable invariant D did not converge."""

    pass


class StableBalanceDidNotConverge(DidNotConvergeError):
    """Newton-Raphson iteration for stable balance Y did not converge."""

    pass
