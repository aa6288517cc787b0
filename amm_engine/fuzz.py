"""Seeded random pools and the property checks run against them.

Used by scripts/fuzz_pools.py and the property tests. Every pool and trade
comes from an explicit random.Random so a failure can be replayed from its
seed.

Distributions:
    reserve0: log-uniform in [1e8, 1e30] ([1e8, 1e33] for stable pools)
    reserve1: reserve0 * log-uniform(1e-3, 1e3) (1e-6 to 1e6 for stable pools)
    A: round(log-uniform(1, 10000))
    fee: round(uniform(1, 100)) / 10000
    trade: reserve_in * log-uniform(1e-5, 1e-1)
"""

from __future__ import annotations

import random
from collections.abc import Callable
from dataclasses import dataclass, field
from decimal import Decimal

import structlog

from amm_engine.config import DEFAULT_ENGINE_CONFIG, EngineConfig
from amm_engine.errors import LiquidityExhaustedError, PoolDomainError
from amm_engine.math.sampling import random_exponential, random_linear, seeded_rng
from amm_engine.math.tick_math import Q96, get_sqrt_ratio_at_tick
from amm_engine.math.tolerance import (
    close_values,
    price_product_tolerance,
    round_trip_tolerance,
)
from amm_engine.pools.base import Pool, PoolInfo, Token
from amm_engine.pools.concentrated import ConcentratedLiquidityPool, TickMap
from amm_engine.pools.constant_product import ConstantProductPool, ConstantProductState
from amm_engine.pools.stable import StablePool, StableState

logger = structlog.get_logger()

TOKEN0 = Token(address="0x0000000000000000000000000000000000000001", symbol="TKA", name="Token A")
TOKEN1 = Token(address="0x0000000000000000000000000000000000000002", symbol="TKB", name="Token B")

# Fee tiers used for random concentrated-liquidity pools
CONCENTRATED_FEE_TIERS = (Decimal("0.0001"), Decimal("0.0005"), Decimal("0.003"), Decimal("0.01"))

# Stable pools are fuzzed at wider magnitudes and skews
STABLE_MAX_RESERVE = 1e33
STABLE_MAX_RATIO = 1e6


def random_fee(rng: random.Random) -> Decimal:
    """Fee in [0.0001, 0.01] with a 1 bp step."""
    return Decimal(round(random_linear(rng, 1, 100))) / 10000


def random_reserves(
    rng: random.Random, max_reserve: float = 1e30, max_ratio: float = 1e3
) -> tuple[int, int]:
    """reserve0 log-uniform from 1e8, reserve1 within max_ratio of reserve0 either way."""
    reserve0 = random_exponential(rng, 1e8, max_reserve)
    reserve1 = reserve0 * random_exponential(rng, 1 / max_ratio, max_ratio)
    return int(reserve0), int(reserve1)


def random_trade(rng: random.Random, reserve_in: int) -> int:
    """Trade size as a log-uniform portion of the input-side reserve."""
    return int(reserve_in * random_exponential(rng, 1e-5, 1e-1))


def random_constant_product_pool(
    rng: random.Random, config: EngineConfig = DEFAULT_ENGINE_CONFIG
) -> ConstantProductPool:
    reserve0, reserve1 = random_reserves(rng)
    info = PoolInfo(address="cp-fuzz", token0=TOKEN0, token1=TOKEN1, fee=random_fee(rng))
    return ConstantProductPool(info, ConstantProductState(reserve0, reserve1), config)


def random_stable_pool(
    rng: random.Random, config: EngineConfig = DEFAULT_ENGINE_CONFIG
) -> StablePool:
    reserve0, reserve1 = random_reserves(rng, STABLE_MAX_RESERVE, STABLE_MAX_RATIO)
    amplification = round(random_exponential(rng, 1, 10000))
    info = PoolInfo(address="stable-fuzz", token0=TOKEN0, token1=TOKEN1, fee=random_fee(rng))
    return StablePool(info, amplification, StableState(reserve0, reserve1), config)


def random_concentrated_pool(
    rng: random.Random, config: EngineConfig = DEFAULT_ENGINE_CONFIG
) -> ConcentratedLiquidityPool:
    """Pool priced inside one tick, with 1-4 positions covering the current price."""
    tick = rng.randint(-50_000, 50_000)
    lower_ratio = get_sqrt_ratio_at_tick(tick)
    upper_ratio = get_sqrt_ratio_at_tick(tick + 1)
    sqrt_price_x96 = lower_ratio + int((upper_ratio - lower_ratio) * rng.random())

    positions = []
    for _ in range(rng.randint(1, 4)):
        positions.append(
            (
                tick - rng.randint(100, 20_000),
                tick + rng.randint(100, 20_000),
                int(random_exponential(rng, 1e15, 1e24)),
            )
        )
    info = PoolInfo(
        address="cl-fuzz",
        token0=TOKEN0,
        token1=TOKEN1,
        fee=rng.choice(CONCENTRATED_FEE_TIERS),
    )
    return ConcentratedLiquidityPool.from_sqrt_price(
        info, sqrt_price_x96, TickMap.from_positions(positions), config=config
    )


def concentrated_trade(rng: random.Random, pool: ConcentratedLiquidityPool, direction: bool) -> int:
    """Trade size as a portion of the virtual reserve of the input token."""
    state = pool.state
    if direction:
        virtual_in = state.liquidity * Q96 // state.sqrt_price_x96
    else:
        virtual_in = state.liquidity * state.sqrt_price_x96 // Q96
    return int(virtual_in * random_exponential(rng, 1e-5, 1e-2))


def check_round_trip(pool: Pool, amount_in: int, direction: bool) -> bool:
    """quote_input(quote_output(a).amount).amount must come back close to a."""
    amount_out = pool.quote_output(amount_in, direction).amount
    amount_back = pool.quote_input(amount_out, direction).amount
    precision = round_trip_tolerance(amount_out, amount_in)
    ok = close_values(amount_back, amount_in, precision)
    if not ok:
        logger.error(
            "round_trip_mismatch",
            pool=pool.info.address,
            direction=direction,
            amount_in=amount_in,
            amount_out=amount_out,
            amount_back=amount_back,
            precision=precision,
        )
    return ok


def check_price_reciprocal(pool: Pool, reserve0: int, reserve1: int) -> bool:
    """current_price(True) * current_price(False) must be close to 1."""
    product = pool.current_price(True) * pool.current_price(False)
    precision = price_product_tolerance(reserve0, reserve1)
    ok = close_values(product, 1.0, precision)
    if not ok:
        logger.error(
            "price_reciprocal_mismatch",
            pool=pool.info.address,
            product=product,
            precision=precision,
        )
    return ok


@dataclass
class FuzzReport:
    """Counts from one fuzz run."""

    model: str
    checks: int = 0
    failures: int = 0
    skipped: int = 0
    failed_cases: list[tuple[int, int]] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.failures == 0


def _reserves_of(pool: Pool) -> tuple[int, int]:
    if isinstance(pool, ConcentratedLiquidityPool):
        # Virtual reserves at the current price
        state = pool.state
        return (
            state.liquidity * Q96 // state.sqrt_price_x96,
            state.liquidity * state.sqrt_price_x96 // Q96,
        )
    state = pool.state  # type: ignore[attr-defined]
    return state.reserve0, state.reserve1


def run_fuzz(
    model: str,
    seed: int | str,
    pools: int = 30,
    trades: int = 30,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> FuzzReport:
    """Check round trips and the reciprocal price identity on random pools.

    Args:
        model: "constant_product", "stable" or "concentrated"
        seed: Seed for the random stream
        pools: Number of random pools
        trades: Random trades per pool
        config: Engine configuration for the pools

    Returns:
        FuzzReport; failed_cases lists (pool_number, trade_number) pairs,
        with trade_number -1 for the price check
    """
    builder = POOL_BUILDERS[model]
    rng = seeded_rng(seed)
    report = FuzzReport(model=model)

    for pool_number in range(pools):
        pool = builder(rng, config)
        reserve0, reserve1 = _reserves_of(pool)

        report.checks += 1
        if not check_price_reciprocal(pool, reserve0, reserve1):
            report.failures += 1
            report.failed_cases.append((pool_number, -1))

        for trade_number in range(trades):
            direction = rng.random() < 0.5
            if isinstance(pool, ConcentratedLiquidityPool):
                amount_in = concentrated_trade(rng, pool, direction)
            else:
                amount_in = random_trade(rng, reserve0 if direction else reserve1)

            report.checks += 1
            try:
                ok = check_round_trip(pool, amount_in, direction)
            except LiquidityExhaustedError:
                # Trade ran past the last initialized tick; not a round-trip case
                report.skipped += 1
                continue
            except PoolDomainError as e:
                logger.error(
                    "fuzz_quote_failed",
                    model=model,
                    pool_number=pool_number,
                    trade_number=trade_number,
                    error=str(e),
                )
                ok = False
            if not ok:
                report.failures += 1
                report.failed_cases.append((pool_number, trade_number))

    logger.info(
        "fuzz_run_finished",
        model=model,
        seed=seed,
        checks=report.checks,
        failures=report.failures,
        skipped=report.skipped,
    )
    return report


POOL_BUILDERS: dict[str, Callable[[random.Random, EngineConfig], Pool]] = {
    "constant_product": random_constant_product_pool,
    "stable": random_stable_pool,
    "concentrated": random_concentrated_pool,
}
