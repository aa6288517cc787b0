"""Test helpers module for shared test utilities.

- constants: Tokens and common amounts
- factories: Pool factory functions
"""

from tests.helpers.constants import DAI, RESERVE_1E13, TRADE_1E8, USDC, USDT, WETH
from tests.helpers.factories import (
    make_concentrated_pool,
    make_constant_product_pool,
    make_pool_info,
    make_stable_pool,
)

__all__ = [
    # Constants
    "WETH",
    "USDC",
    "DAI",
    "USDT",
    "RESERVE_1E13",
    "TRADE_1E8",
    # Factories
    "make_pool_info",
    "make_constant_product_pool",
    "make_stable_pool",
    "make_concentrated_pool",
]
