"""Concentrated-liquidity pool (Uniswap V3 style).

Liquidity is constant between consecutive initialized ticks and changes by a
tick's delta when the price crosses it. A swap walks ticks in the direction of
price movement:

    token0 -> token1 (direction True): price falls, ticks are crossed downward
        and each crossed delta is subtracted.
    token1 -> token0 (direction False): price rises, ticks are crossed upward
        and each crossed delta is added.

Boundary rule: a price sitting exactly on an initialized tick belongs to the
range starting at that tick (``tick == index``). Moving down, that tick is the
first one crossed; moving up, the first boundary is the smallest initialized
index strictly above ``tick``.

Ranges with zero active liquidity are crossed without consuming input. When
the walk runs out of initialized ticks before the amount is used up, the
result is a partial fill.
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from decimal import Decimal

import structlog

from amm_engine.config import DEFAULT_ENGINE_CONFIG, EngineConfig
from amm_engine.errors import (
    InvalidPoolStateError,
    LiquidityExhaustedError,
    TickOutOfRangeError,
)
from amm_engine.math.amounts import to_amount
from amm_engine.math.swap_math import compute_swap_step
from amm_engine.math.tick_math import (
    MAX_SQRT_RATIO,
    MAX_TICK,
    MIN_SQRT_RATIO,
    MIN_TICK,
    check_tick,
    get_sqrt_ratio_at_tick,
    get_tick_at_sqrt_ratio,
    sqrt_price_x96_to_price,
)

from .base import PoolInfo, QuoteResult

logger = structlog.get_logger()


@dataclass(frozen=True)
class Tick:
    """Initialized tick: liquidity added when the price crosses it upward."""

    index: int
    liquidity_delta: int


class TickMap:
    """Sparse, index-ordered collection of initialized ticks.

    Lookups are binary searches over a sorted index list; active liquidity
    at any tick comes from precomputed prefix sums.

    Raises:
        InvalidPoolStateError: On duplicate indices, a non-zero delta total,
            or a prefix sum that would make liquidity negative
        TickOutOfRangeError: If an index is outside [MIN_TICK, MAX_TICK]
    """

    def __init__(self, ticks: Iterable[Tick] = ()) -> None:
        ordered = sorted(ticks, key=lambda t: t.index)

        indices: list[int] = []
        deltas: list[int] = []
        prefix: list[int] = []
        running = 0
        for tick in ordered:
            check_tick(tick.index)
            if indices and indices[-1] == tick.index:
                raise InvalidPoolStateError(f"Duplicate tick index {tick.index}")
            running += tick.liquidity_delta
            if running < 0:
                raise InvalidPoolStateError(
                    f"Liquidity would be negative ({running}) above tick {tick.index}"
                )
            indices.append(tick.index)
            deltas.append(tick.liquidity_delta)
            prefix.append(running)

        if running != 0:
            raise InvalidPoolStateError(f"Tick liquidity deltas sum to {running}, expected 0")

        self._indices = indices
        self._deltas = deltas
        self._prefix = prefix

    @classmethod
    def from_positions(cls, positions: Iterable[tuple[int, int, int]]) -> TickMap:
        """Build a tick map from liquidity positions.

        Each position adds +L at its lower tick and -L at its upper tick.
        Ticks whose deltas cancel out are left uninitialized.

        Args:
            positions: (lower_tick, upper_tick, liquidity) triples

        Raises:
            InvalidPoolStateError: If lower >= upper or liquidity <= 0
            TickOutOfRangeError: If a tick is out of range
        """
        net: dict[int, int] = {}
        for lower, upper, liquidity in positions:
            check_tick(lower)
            check_tick(upper)
            if lower >= upper:
                raise InvalidPoolStateError(
                    f"Position lower tick {lower} must be below upper {upper}"
                )
            if liquidity <= 0:
                raise InvalidPoolStateError(
                    f"Position liquidity must be positive, got {liquidity}"
                )
            net[lower] = net.get(lower, 0) + liquidity
            net[upper] = net.get(upper, 0) - liquidity
        return cls(Tick(index, delta) for index, delta in net.items() if delta != 0)

    def __len__(self) -> int:
        return len(self._indices)

    def __iter__(self) -> Iterator[Tick]:
        for index, delta in zip(self._indices, self._deltas):
            yield Tick(index, delta)

    def __repr__(self) -> str:
        return f"TickMap({list(self)!r})"

    def next_tick_below_or_at(self, tick: int) -> Tick | None:
        """Greatest initialized tick with index <= tick, or None."""
        pos = bisect_right(self._indices, tick) - 1
        if pos < 0:
            return None
        return Tick(self._indices[pos], self._deltas[pos])

    def next_tick_above(self, tick: int) -> Tick | None:
        """Smallest initialized tick with index > tick, or None."""
        pos = bisect_right(self._indices, tick)
        if pos >= len(self._indices):
            return None
        return Tick(self._indices[pos], self._deltas[pos])

    def liquidity_delta(self, index: int) -> int:
        """Delta recorded at ``index``, 0 when the tick is not initialized."""
        pos = bisect_right(self._indices, index) - 1
        if pos >= 0 and self._indices[pos] == index:
            return self._deltas[pos]
        return 0

    def active_liquidity_at(self, tick: int) -> int:
        """Liquidity in effect while the current tick is ``tick``."""
        pos = bisect_right(self._indices, tick) - 1
        return self._prefix[pos] if pos >= 0 else 0


@dataclass(frozen=True)
class ConcentratedLiquidityState:
    """Live state of a concentrated-liquidity pool.

    Attributes:
        reserve0: Token0 balance (informational, not used for pricing)
        reserve1: Token1 balance (informational, not used for pricing)
        tick: Current tick index
        liquidity: Active liquidity at the current tick
        sqrt_price_x96: Current sqrt(price) * 2^96
    """

    reserve0: int
    reserve1: int
    tick: int
    liquidity: int
    sqrt_price_x96: int

    def __post_init__(self) -> None:
        for name in ("reserve0", "reserve1", "tick", "liquidity", "sqrt_price_x96"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidPoolStateError(f"{name} must be an int, got {value!r}")
        if self.reserve0 < 0 or self.reserve1 < 0:
            raise InvalidPoolStateError("Reserves must be non-negative")
        if self.liquidity < 0:
            raise InvalidPoolStateError(f"Liquidity must be non-negative, got {self.liquidity}")
        if not MIN_TICK <= self.tick <= MAX_TICK:
            raise TickOutOfRangeError(f"Tick {self.tick} outside [{MIN_TICK}, {MAX_TICK}]")
        if not MIN_SQRT_RATIO <= self.sqrt_price_x96 <= MAX_SQRT_RATIO:
            raise InvalidPoolStateError(f"sqrt_price_x96 {self.sqrt_price_x96} out of range")


@dataclass(frozen=True)
class SwapSimulation:
    """Outcome of walking ticks for an exact-input swap.

    Attributes:
        amount_in: Input actually consumed, fee included
        amount_out: Output produced
        requested: Input the caller asked to sell
        ticks_crossed: Initialized ticks crossed during the walk
        gas_estimate: Base cost plus the per-crossing cost
        sqrt_price_x96_after: Price where the walk stopped
        tick_after: Tick where the walk stopped
        liquidity_after: Active liquidity where the walk stopped
    """

    amount_in: int
    amount_out: int
    requested: int
    ticks_crossed: int
    gas_estimate: int
    sqrt_price_x96_after: int
    tick_after: int
    liquidity_after: int

    @property
    def fully_filled(self) -> bool:
        return self.amount_in == self.requested


@dataclass(frozen=True)
class _Snapshot:
    state: ConcentratedLiquidityState
    ticks: TickMap


@dataclass
class _Walk:
    """Mutable cursor used while walking ticks."""

    sqrt_price_x96: int
    tick: int
    liquidity: int
    amount_in: int = 0
    amount_out: int = 0
    ticks_crossed: int = 0


class ConcentratedLiquidityPool:
    """Concentrated-liquidity pool with a sparse tick map.

    Args:
        info: Pool identity and fee
        state: Current tick, price and active liquidity
        ticks: Initialized ticks
        config: Gas figures

    Raises:
        InvalidPoolStateError: If state and tick map disagree
    """

    def __init__(
        self,
        info: PoolInfo,
        state: ConcentratedLiquidityState,
        ticks: TickMap,
        config: EngineConfig = DEFAULT_ENGINE_CONFIG,
    ) -> None:
        self.info = info
        self.config = config
        self._snapshot = self._build_snapshot(state, ticks)

    @classmethod
    def from_sqrt_price(
        cls,
        info: PoolInfo,
        sqrt_price_x96: int,
        ticks: TickMap,
        reserve0: int = 0,
        reserve1: int = 0,
        config: EngineConfig = DEFAULT_ENGINE_CONFIG,
    ) -> ConcentratedLiquidityPool:
        """Create a pool whose tick and liquidity are derived from the price.

        Raises:
            InvalidPoolStateError: If sqrt_price_x96 is out of range
        """
        tick = get_tick_at_sqrt_ratio(sqrt_price_x96)
        state = ConcentratedLiquidityState(
            reserve0=reserve0,
            reserve1=reserve1,
            tick=tick,
            liquidity=ticks.active_liquidity_at(tick),
            sqrt_price_x96=sqrt_price_x96,
        )
        return cls(info, state, ticks, config)

    @property
    def state(self) -> ConcentratedLiquidityState:
        return self._snapshot.state

    @property
    def ticks(self) -> TickMap:
        return self._snapshot.ticks

    @property
    def gas_estimate(self) -> int:
        return self.config.concentrated_swap_gas

    def _build_snapshot(self, state: ConcentratedLiquidityState, ticks: TickMap) -> _Snapshot:
        if not isinstance(state, ConcentratedLiquidityState):
            raise InvalidPoolStateError(
                f"Expected ConcentratedLiquidityState, got {type(state).__name__}"
            )
        if not isinstance(ticks, TickMap):
            raise InvalidPoolStateError(f"Expected TickMap, got {type(ticks).__name__}")

        lower = get_sqrt_ratio_at_tick(state.tick)
        upper = get_sqrt_ratio_at_tick(state.tick + 1) if state.tick < MAX_TICK else MAX_SQRT_RATIO
        if not lower <= state.sqrt_price_x96 <= upper:
            raise InvalidPoolStateError(
                f"sqrt_price_x96 {state.sqrt_price_x96} does not lie in tick {state.tick}"
            )
        expected = ticks.active_liquidity_at(state.tick)
        if state.liquidity != expected:
            raise InvalidPoolStateError(
                f"Liquidity {state.liquidity} does not match tick map ({expected}) "
                f"at tick {state.tick}"
            )
        return _Snapshot(state=state, ticks=ticks)

    def refresh_state(
        self,
        state: ConcentratedLiquidityState,
        ticks: TickMap | None = None,
    ) -> None:
        """Replace price, tick, liquidity and reserves together.

        Args:
            state: New snapshot
            ticks: New tick map, or None to keep the current one

        Raises:
            InvalidPoolStateError: If the new state is inconsistent; the old
                snapshot stays in place
        """
        snapshot = self._build_snapshot(state, self._snapshot.ticks if ticks is None else ticks)
        self._snapshot = snapshot
        logger.debug(
            "concentrated_state_refreshed",
            pool=self.info.address,
            tick=state.tick,
            liquidity=state.liquidity,
            sqrt_price_x96=state.sqrt_price_x96,
            ticks_replaced=ticks is not None,
        )

    def _gas_for(self, ticks_crossed: int) -> int:
        return self.config.concentrated_swap_gas + self.config.tick_crossing_gas * ticks_crossed

    def _walk(self, snapshot: _Snapshot, amount: int, direction: bool, exact_input: bool) -> _Walk:
        """Walk ticks until ``amount`` is used up or no initialized tick is left.

        ``amount`` is the input to sell when exact_input is True, otherwise
        the output to buy.
        """
        state = snapshot.state
        ticks = snapshot.ticks
        fee_units = self.info.fee_units
        walk = _Walk(
            sqrt_price_x96=state.sqrt_price_x96,
            tick=state.tick,
            liquidity=state.liquidity,
        )

        remaining = amount
        while remaining > 0:
            if direction:
                boundary = ticks.next_tick_below_or_at(walk.tick)
            else:
                boundary = ticks.next_tick_above(walk.tick)
            if boundary is None:
                break
            target = get_sqrt_ratio_at_tick(boundary.index)

            step = compute_swap_step(
                walk.sqrt_price_x96,
                target,
                walk.liquidity,
                remaining if exact_input else -remaining,
                fee_units,
            )
            walk.amount_in += step.amount_in + step.fee_amount
            walk.amount_out += step.amount_out
            remaining -= (step.amount_in + step.fee_amount) if exact_input else step.amount_out
            walk.sqrt_price_x96 = step.sqrt_price_next_x96

            if step.sqrt_price_next_x96 == target:
                if direction:
                    walk.liquidity -= boundary.liquidity_delta
                    walk.tick = boundary.index - 1
                else:
                    walk.liquidity += boundary.liquidity_delta
                    walk.tick = boundary.index
                walk.ticks_crossed += 1
            else:
                walk.tick = get_tick_at_sqrt_ratio(walk.sqrt_price_x96)
                if step.amount_in == 0 and step.amount_out == 0 and step.fee_amount == 0:
                    break

        return walk

    def simulate_exact_input(
        self, amount_in: int | float | Decimal, direction: bool
    ) -> SwapSimulation:
        """Simulate selling ``amount_in``, reporting a partial fill if ticks run out.

        Args:
            amount_in: Input token amount, fee included
            direction: True sells token0, False sells token1

        Returns:
            SwapSimulation; compare amount_in with requested (or check
            fully_filled) to detect a partial fill
        """
        amount = to_amount(amount_in, "amount_in")
        walk = self._walk(self._snapshot, amount, direction, exact_input=True)
        simulation = SwapSimulation(
            amount_in=walk.amount_in,
            amount_out=walk.amount_out,
            requested=amount,
            ticks_crossed=walk.ticks_crossed,
            gas_estimate=self._gas_for(walk.ticks_crossed),
            sqrt_price_x96_after=walk.sqrt_price_x96,
            tick_after=walk.tick,
            liquidity_after=walk.liquidity,
        )
        if not simulation.fully_filled:
            logger.debug(
                "concentrated_partial_fill",
                pool=self.info.address,
                direction=direction,
                requested=amount,
                amount_in=walk.amount_in,
                amount_out=walk.amount_out,
                ticks_crossed=walk.ticks_crossed,
            )
        return simulation

    def quote_output(self, amount_in: int | float | Decimal, direction: bool) -> QuoteResult:
        """Calculate output for an exact input.

        Raises:
            InvalidAmountError: If amount_in is invalid
            LiquidityExhaustedError: If the ticks cannot absorb the whole
                input; the error carries the partial fill
        """
        simulation = self.simulate_exact_input(amount_in, direction)
        if not simulation.fully_filled:
            raise LiquidityExhaustedError(
                f"Pool {self.info.address} absorbed {simulation.amount_in} "
                f"of {simulation.requested} input",
                requested=simulation.requested,
                filled=simulation.amount_in,
                amount_in=simulation.amount_in,
                amount_out=simulation.amount_out,
            )
        return QuoteResult(amount=simulation.amount_out, gas_estimate=simulation.gas_estimate)

    def quote_input(self, amount_out: int | float | Decimal, direction: bool) -> QuoteResult:
        """Calculate input required for an exact output.

        Raises:
            InvalidAmountError: If amount_out is invalid
            LiquidityExhaustedError: If the ticks cannot produce the whole
                output; the error carries the partial fill
        """
        amount = to_amount(amount_out, "amount_out")
        walk = self._walk(self._snapshot, amount, direction, exact_input=False)
        if walk.amount_out < amount:
            logger.debug(
                "concentrated_output_unavailable",
                pool=self.info.address,
                direction=direction,
                requested=amount,
                amount_in=walk.amount_in,
                amount_out=walk.amount_out,
                ticks_crossed=walk.ticks_crossed,
            )
            raise LiquidityExhaustedError(
                f"Pool {self.info.address} can produce {walk.amount_out} of {amount} output",
                requested=amount,
                filled=walk.amount_out,
                amount_in=walk.amount_in,
                amount_out=walk.amount_out,
            )
        return QuoteResult(amount=walk.amount_in, gas_estimate=self._gas_for(walk.ticks_crossed))

    def current_price(self, direction: bool) -> float:
        """Marginal price excluding fee, from sqrt_price_x96 alone."""
        price = sqrt_price_x96_to_price(self._snapshot.state.sqrt_price_x96)
        return price if direction else 1 / price


__all__ = [
    "Tick",
    "TickMap",
    "ConcentratedLiquidityState",
    "SwapSimulation",
    "ConcentratedLiquidityPool",
]
