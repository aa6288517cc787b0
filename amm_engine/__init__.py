"""AMM pool pricing engine - Python implementation."""

from amm_engine.config import DEFAULT_ENGINE_CONFIG, EngineConfig
from amm_engine.errors import (
    AmmEngineError,
    DidNotConvergeError,
    InsufficientLiquidityError,
    InvalidInputError,
    LiquidityExhaustedError,
    PoolDomainError,
)
from amm_engine.pools import (
    ConcentratedLiquidityPool,
    ConcentratedLiquidityState,
    ConstantProductPool,
    ConstantProductState,
    Pool,
    PoolInfo,
    QuoteResult,
    StablePool,
    StableState,
    TickMap,
    Token,
)

__version__ = "0.1.0"
__all__ = [
    "EngineConfig",
    "DEFAULT_ENGINE_CONFIG",
    "AmmEngineError",
    "InvalidInputError",
    "PoolDomainError",
    "InsufficientLiquidityError",
    "LiquidityExhaustedError",
    "DidNotConvergeError",
    "Pool",
    "PoolInfo",
    "QuoteResult",
    "Token",
    "ConstantProductPool",
    "ConstantProductState",
    "StablePool",
    "StableState",
    "ConcentratedLiquidityPool",
    "ConcentratedLiquidityState",
    "TickMap",
    "__version__",
]
