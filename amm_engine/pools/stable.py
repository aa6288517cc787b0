"""Two-coin stable pool (Curve-style StableSwap).

Quoting flow for exact input:
    1. Scale the input up by the snapshot's precision factor
    2. Subtract the fee
    3. Solve the invariant for the new output balance
    4. Scale the output down, rounding down

Exact output runs the same steps backwards, adding the fee after the solve
and scaling the input down rounding up.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from functools import cached_property

import structlog

from amm_engine.config import DEFAULT_ENGINE_CONFIG, EngineConfig
from amm_engine.constants import AMP_PRECISION
from amm_engine.errors import (
    DidNotConvergeError,
    InsufficientLiquidityError,
    InvalidInputError,
    InvalidPoolStateError,
)
from amm_engine.math.amounts import to_amount
from amm_engine.math.scaling import (
    add_fee,
    precision_scaling_factor,
    scale_down_down,
    scale_down_up,
    scale_up,
    subtract_fee,
)
from amm_engine.math.stable_math import (
    calculate_invariant,
    stable_calc_in_given_out,
    stable_calc_out_given_in,
    stable_spot_price,
)

from .base import PoolInfo, QuoteResult

logger = structlog.get_logger()


@dataclass(frozen=True)
class StableState:
    """Reserve snapshot of a stable pool."""

    reserve0: int
    reserve1: int

    def __post_init__(self) -> None:
        for name in ("reserve0", "reserve1"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidPoolStateError(f"{name} must be a non-negative int, got {value!r}")


def amplification_to_amp(amplification: Decimal | float | int | str) -> int:
    """Convert A to the integer ``amp = A * AMP_PRECISION`` used by the solver.

    Raises:
        InvalidInputError: If A is not a positive number
    """
    if isinstance(amplification, bool):
        raise InvalidInputError("Amplification must be numeric, got bool")
    try:
        value = (
            amplification if isinstance(amplification, Decimal) else Decimal(str(amplification))
        )
    except InvalidOperation as err:
        raise InvalidInputError(f"Amplification must be numeric: '{amplification}'") from err
    if not value.is_finite() or value <= 0:
        raise InvalidInputError(f"Amplification must be positive, got {amplification}")

    # Use explicit rounding for Decimal-to-int conversion
    amp = int((value * AMP_PRECISION).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if amp <= 0:
        raise InvalidInputError(
            f"Amplification {amplification} is below 1/{AMP_PRECISION} resolution"
        )
    return amp


@dataclass(eq=False)
class _StableSnapshot:
    """Everything derived from one StableState, replaced as a unit."""

    state: StableState
    scaling_factor: int
    amp: int
    max_iterations: int

    def balances(self, direction: bool) -> tuple[int, int]:
        """Scaled balances ordered as (balance_in, balance_out)."""
        r0 = scale_up(self.state.reserve0, self.scaling_factor)
        r1 = scale_up(self.state.reserve1, self.scaling_factor)
        return (r0, r1) if direction else (r1, r0)

    @cached_property
    def invariant(self) -> int:
        return calculate_invariant(
            self.amp,
            (
                scale_up(self.state.reserve0, self.scaling_factor),
                scale_up(self.state.reserve1, self.scaling_factor),
            ),
            self.max_iterations,
        )


class StablePool:
    """Stable pool with amplification coefficient A.

    Args:
        info: Pool identity and fee
        amplification: A (> 0, fractional values allowed)
        state: Initial reserves
        config: Gas figures and solver limits
    """

    def __init__(
        self,
        info: PoolInfo,
        amplification: Decimal | float | int | str,
        state: StableState,
        config: EngineConfig = DEFAULT_ENGINE_CONFIG,
    ) -> None:
        self.info = info
        self.config = config
        self.amp = amplification_to_amp(amplification)
        self._snapshot = self._build_snapshot(state)

    @property
    def amplification(self) -> Decimal:
        return Decimal(self.amp) / AMP_PRECISION

    @property
    def state(self) -> StableState:
        return self._snapshot.state

    @property
    def gas_estimate(self) -> int:
        return self.config.stable_swap_gas

    def _build_snapshot(self, state: StableState) -> _StableSnapshot:
        if not isinstance(state, StableState):
            raise InvalidPoolStateError(f"Expected StableState, got {type(state).__name__}")
        return _StableSnapshot(
            state=state,
            scaling_factor=precision_scaling_factor(
                state.reserve0, state.reserve1, digits=self.config.stable_precision_digits
            ),
            amp=self.amp,
            max_iterations=self.config.stable_max_iterations,
        )

    def refresh_state(self, state: StableState) -> None:
        """Replace the reserve snapshot; the invariant is recomputed on next use."""
        snapshot = self._build_snapshot(state)
        self._snapshot = snapshot
        logger.debug(
            "stable_state_refreshed",
            pool=self.info.address,
            reserve0=state.reserve0,
            reserve1=state.reserve1,
            scaling_factor=snapshot.scaling_factor,
        )

    def quote_output(self, amount_in: int | float | Decimal, direction: bool) -> QuoteResult:
        """Calculate output amount for an exact input.

        Raises:
            InvalidAmountError: If amount_in is invalid
            InsufficientLiquidityError: If either reserve is empty
            DidNotConvergeError: If the solver hits its iteration cap
        """
        amount = to_amount(amount_in, "amount_in")
        if amount == 0:
            return QuoteResult(amount=0, gas_estimate=self.gas_estimate)

        snapshot = self._snapshot
        self._check_reserves(snapshot, amount_in=amount)
        balance_in, balance_out = snapshot.balances(direction)

        amount_in_scaled = scale_up(amount, snapshot.scaling_factor)
        amount_in_after_fee = subtract_fee(amount_in_scaled, self.info.fee_units)

        try:
            amount_out_scaled = stable_calc_out_given_in(
                snapshot.amp,
                balance_in,
                balance_out,
                amount_in_after_fee,
                invariant=snapshot.invariant,
                max_iterations=snapshot.max_iterations,
            )
        except DidNotConvergeError as e:
            self._log_not_converged(e, amount_in=amount, direction=direction)
            raise

        amount_out = scale_down_down(amount_out_scaled, snapshot.scaling_factor)
        return QuoteResult(amount=amount_out, gas_estimate=self.gas_estimate)

    def quote_input(self, amount_out: int | float | Decimal, direction: bool) -> QuoteResult:
        """Calculate required input for a desired output.

        Raises:
            InvalidAmountError: If amount_out is invalid
            InsufficientLiquidityError: If a reserve is empty or
                amount_out >= reserve_out
            DidNotConvergeError: If the solver hits its iteration cap
        """
        amount = to_amount(amount_out, "amount_out")
        if amount == 0:
            return QuoteResult(amount=0, gas_estimate=self.gas_estimate)

        snapshot = self._snapshot
        self._check_reserves(snapshot, amount_out=amount)
        reserve_out = snapshot.state.reserve1 if direction else snapshot.state.reserve0
        if amount >= reserve_out:
            logger.debug(
                "stable_output_exceeds_reserve",
                pool=self.info.address,
                amount_out=amount,
                reserve_out=reserve_out,
            )
            raise InsufficientLiquidityError(
                f"Requested output {amount} >= reserve {reserve_out} in pool {self.info.address}"
            )
        balance_in, balance_out = snapshot.balances(direction)

        try:
            amount_in_scaled = stable_calc_in_given_out(
                snapshot.amp,
                balance_in,
                balance_out,
                scale_up(amount, snapshot.scaling_factor),
                invariant=snapshot.invariant,
                max_iterations=snapshot.max_iterations,
            )
        except DidNotConvergeError as e:
            self._log_not_converged(e, amount_out=amount, direction=direction)
            raise

        amount_in_with_fee = add_fee(amount_in_scaled, self.info.fee_units)
        amount_in = scale_down_up(amount_in_with_fee, snapshot.scaling_factor)
        return QuoteResult(amount=amount_in, gas_estimate=self.gas_estimate)

    def current_price(self, direction: bool) -> float:
        """Marginal price excluding fee, from the invariant's slope.

        Raises:
            InsufficientLiquidityError: If either reserve is empty
        """
        snapshot = self._snapshot
        self._check_reserves(snapshot)
        balance_in, balance_out = snapshot.balances(direction)
        return stable_spot_price(snapshot.amp, balance_in, balance_out, snapshot.invariant)

    def _check_reserves(self, snapshot: _StableSnapshot, **context: int) -> None:
        state = snapshot.state
        if state.reserve0 <= 0 or state.reserve1 <= 0:
            logger.debug(
                "stable_empty_reserve",
                pool=self.info.address,
                reserve0=state.reserve0,
                reserve1=state.reserve1,
                **context,
            )
            raise InsufficientLiquidityError(f"Pool {self.info.address} has an empty reserve")

    def _log_not_converged(self, error: DidNotConvergeError, **context: int | bool) -> None:
        logger.warning(
            "stable_solver_did_not_converge",
            pool=self.info.address,
            amp=self.amp,
            max_iterations=self.config.stable_max_iterations,
            error=str(error),
            **context,
        )


__all__ = ["StableState", "StablePool", "amplification_to_amp"]
