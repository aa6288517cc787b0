"""Constant product pool: x * y = k.

The fee is taken from the input amount before it reaches the curve.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

import structlog

from amm_engine.config import DEFAULT_ENGINE_CONFIG, EngineConfig
from amm_engine.constants import FEE_DENOMINATOR
from amm_engine.errors import InsufficientLiquidityError, InvalidPoolStateError
from amm_engine.math.amounts import to_amount

from .base import PoolInfo, QuoteResult

logger = structlog.get_logger()


@dataclass(frozen=True)
class ConstantProductState:
    """Reserve snapshot of a constant product pool."""

    reserve0: int
    reserve1: int

    def __post_init__(self) -> None:
        for name in ("reserve0", "reserve1"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidPoolStateError(f"{name} must be a non-negative int, got {value!r}")


class ConstantProductPool:
    """Constant product pool.

    Formula: amount_out = (in * (B - fee) * res_out) / (res_in * B + in * (B - fee))
    with B = FEE_DENOMINATOR.
    """

    def __init__(
        self,
        info: PoolInfo,
        state: ConstantProductState,
        config: EngineConfig = DEFAULT_ENGINE_CONFIG,
    ) -> None:
        self.info = info
        self.config = config
        self._state = state

    @property
    def state(self) -> ConstantProductState:
        return self._state

    @property
    def gas_estimate(self) -> int:
        return self.config.constant_product_swap_gas

    def refresh_state(self, state: ConstantProductState) -> None:
        """Replace the reserve snapshot."""
        if not isinstance(state, ConstantProductState):
            raise InvalidPoolStateError(
                f"Expected ConstantProductState, got {type(state).__name__}"
            )
        self._state = state
        logger.debug(
            "constant_product_state_refreshed",
            pool=self.info.address,
            reserve0=state.reserve0,
            reserve1=state.reserve1,
        )

    def _reserves(self, direction: bool) -> tuple[int, int]:
        """Get reserves ordered as (reserve_in, reserve_out)."""
        state = self._state
        if direction:
            return state.reserve0, state.reserve1
        return state.reserve1, state.reserve0

    def quote_output(self, amount_in: int | float | Decimal, direction: bool) -> QuoteResult:
        """Calculate output amount for an exact input.

        Args:
            amount_in: Input token amount
            direction: True sells token0, False sells token1

        Returns:
            QuoteResult with the output amount, rounded down

        Raises:
            InvalidAmountError: If amount_in is invalid
            InsufficientLiquidityError: If either reserve is empty
        """
        amount = to_amount(amount_in, "amount_in")
        if amount == 0:
            return QuoteResult(amount=0, gas_estimate=self.gas_estimate)

        reserve_in, reserve_out = self._reserves(direction)
        self._check_reserves(reserve_in, reserve_out, amount=amount)

        amount_in_with_fee = amount * (FEE_DENOMINATOR - self.info.fee_units)
        numerator = amount_in_with_fee * reserve_out
        denominator = reserve_in * FEE_DENOMINATOR + amount_in_with_fee

        return QuoteResult(amount=numerator // denominator, gas_estimate=self.gas_estimate)

    def quote_input(self, amount_out: int | float | Decimal, direction: bool) -> QuoteResult:
        """Calculate required input for a desired output.

        Formula: amount_in = ceil(res_in * out * B / ((res_out - out) * (B - fee)))

        Raises:
            InvalidAmountError: If amount_out is invalid
            InsufficientLiquidityError: If a reserve is empty or
                amount_out >= reserve_out
        """
        amount = to_amount(amount_out, "amount_out")
        if amount == 0:
            return QuoteResult(amount=0, gas_estimate=self.gas_estimate)

        reserve_in, reserve_out = self._reserves(direction)
        self._check_reserves(reserve_in, reserve_out, amount=amount)
        if amount >= reserve_out:
            logger.debug(
                "constant_product_output_exceeds_reserve",
                pool=self.info.address,
                amount_out=amount,
                reserve_out=reserve_out,
            )
            raise InsufficientLiquidityError(
                f"Requested output {amount} >= reserve {reserve_out} in pool {self.info.address}"
            )

        numerator = reserve_in * amount * FEE_DENOMINATOR
        denominator = (reserve_out - amount) * (FEE_DENOMINATOR - self.info.fee_units)
        # Ceiling division
        return QuoteResult(amount=-(-numerator // denominator), gas_estimate=self.gas_estimate)

    def current_price(self, direction: bool) -> float:
        """Marginal price excluding fee: reserve_out / reserve_in.

        Raises:
            InsufficientLiquidityError: If either reserve is empty
        """
        reserve_in, reserve_out = self._reserves(direction)
        self._check_reserves(reserve_in, reserve_out)
        return reserve_out / reserve_in

    def _check_reserves(self, reserve_in: int, reserve_out: int, **context: int) -> None:
        if reserve_in <= 0 or reserve_out <= 0:
            logger.debug(
                "constant_product_empty_reserve",
                pool=self.info.address,
                reserve_in=reserve_in,
                reserve_out=reserve_out,
                **context,
            )
            raise InsufficientLiquidityError(f"Pool {self.info.address} has an empty reserve")


__all__ = ["ConstantProductState", "ConstantProductPool"]
