"""Pytest configuration and fixtures."""

import pytest

from amm_engine.config import EngineConfig
from amm_engine.pools.base import PoolInfo
from tests.helpers import make_pool_info


@pytest.fixture
def pool_info() -> PoolInfo:
    """DAI/USDC pool identity with a 0.3% fee."""
    return make_pool_info()


@pytest.fixture
def zero_fee_info() -> PoolInfo:
    """DAI/USDC pool identity with no fee."""
    return make_pool_info(fee="0")


@pytest.fixture
def engine_config() -> EngineConfig:
    """Default engine configuration."""
    return EngineConfig()
