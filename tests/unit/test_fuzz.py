"""Tests for the seeded pool fuzzer."""

from decimal import Decimal

import pytest

from amm_engine.errors import InvalidAmountError
from amm_engine.fuzz import (
    POOL_BUILDERS,
    check_price_reciprocal,
    check_round_trip,
    random_concentrated_pool,
    random_constant_product_pool,
    random_fee,
    run_fuzz,
)
from amm_engine.math.sampling import seeded_rng
from amm_engine.pools.base import QuoteResult
from tests.helpers import make_constant_product_pool, make_pool_info


class SkewedPool:
    """Pool whose inverse quote overshoots by 1%."""

    def __init__(self):
        self.info = make_pool_info()
        self.gas_estimate = 1

    def quote_output(self, amount_in, direction):
        return QuoteResult(amount=amount_in, gas_estimate=1)

    def quote_input(self, amount_out, direction):
        return QuoteResult(amount=amount_out * 101 // 100, gas_estimate=1)

    def current_price(self, direction):
        return 2.0

    def refresh_state(self, state):
        pass


class TestBuilders:
    def test_same_seed_same_pool(self):
        first = random_constant_product_pool(seeded_rng(3))
        second = random_constant_product_pool(seeded_rng(3))
        assert first.state == second.state
        assert first.info.fee == second.info.fee

    def test_fee_range(self):
        rng = seeded_rng("fees")
        for _ in range(100):
            fee = random_fee(rng)
            assert Decimal("0.0001") <= fee <= Decimal("0.01")

    def test_concentrated_pool_starts_inside_liquidity(self):
        rng = seeded_rng("cl")
        for _ in range(20):
            pool = random_concentrated_pool(rng)
            assert pool.state.liquidity > 0
            assert -50_000 <= pool.state.tick <= 50_000

    def test_builder_names(self):
        assert set(POOL_BUILDERS) == {"constant_product", "stable", "concentrated"}


class TestChecks:
    def test_round_trip_passes_on_real_pool(self):
        pool = make_constant_product_pool(10**18, 10**18)
        assert check_round_trip(pool, 10**15, True)

    def test_round_trip_detects_mismatch(self):
        assert not check_round_trip(SkewedPool(), 10**15, True)

    def test_price_reciprocal_detects_mismatch(self):
        assert not check_price_reciprocal(SkewedPool(), 10**18, 10**18)

    def test_invalid_amount_propagates(self):
        pool = make_constant_product_pool(10**18, 10**18)
        with pytest.raises(InvalidAmountError):
            check_round_trip(pool, -1, True)


class TestRunFuzz:
    @pytest.mark.parametrize("model", ["constant_product", "stable"])
    def test_reserve_models_pass(self, model):
        report = run_fuzz(model, seed=42)
        assert report.passed, report.failed_cases
        assert report.checks == 30 * 31
        assert report.skipped == 0

    def test_concentrated_passes(self):
        report = run_fuzz("concentrated", seed=42, pools=10, trades=10)
        assert report.passed, report.failed_cases
        assert report.checks == 10 * 11

    def test_same_seed_same_report(self):
        first = run_fuzz("constant_product", seed="replay", pools=5, trades=5)
        second = run_fuzz("constant_product", seed="replay", pools=5, trades=5)
        assert first == second

    def test_unknown_model(self):
        with pytest.raises(KeyError):
            run_fuzz("weighted", seed=0)
