"""Pool models: constant product, stable and concentrated liquidity."""

from amm_engine.pools.base import Pool, PoolInfo, QuoteResult, Token, price_impact
from amm_engine.pools.concentrated import (
    ConcentratedLiquidityPool,
    ConcentratedLiquidityState,
    SwapSimulation,
    Tick,
    TickMap,
)
from amm_engine.pools.constant_product import ConstantProductPool, ConstantProductState
from amm_engine.pools.stable import StablePool, StableState

__all__ = [
    # Contract
    "Pool",
    "PoolInfo",
    "QuoteResult",
    "Token",
    "price_impact",
    # Constant product
    "ConstantProductPool",
    "ConstantProductState",
    # Stable
    "StablePool",
    "StableState",
    # Concentrated liquidity
    "ConcentratedLiquidityPool",
    "ConcentratedLiquidityState",
    "SwapSimulation",
    "Tick",
    "TickMap",
]
