"""Tests for the two-coin StableSwap solver."""

import math

import pytest

from amm_engine.constants import AMP_PRECISION
from amm_engine.errors import (
    DidNotConvergeError,
    InsufficientLiquidityError,
    StableInvariantDidNotConverge,
)
from amm_engine.math.stable_math import (
    calculate_invariant,
    get_balance_given_invariant,
    stable_calc_in_given_out,
    stable_calc_out_given_in,
    stable_spot_price,
)
from amm_engine.math.tolerance import close_values

AMP = 2000 * AMP_PRECISION


class TestCalculateInvariant:
    """Newton iteration for D."""

    def test_balanced_pool_invariant_is_sum(self):
        """For x == y the invariant is exactly x + y."""
        assert calculate_invariant(AMP, (10**22, 10**22)) == 2 * 10**22

    def test_imbalanced_invariant_below_sum(self):
        """D lies between the constant-product and constant-sum values."""
        x, y = 10**22, 4 * 10**22
        d = calculate_invariant(100 * AMP_PRECISION, (x, y))
        assert 4 * 10**22 < d < x + y

    def test_higher_amplification_approaches_sum(self):
        balances = (10**22, 4 * 10**22)
        low = calculate_invariant(1 * AMP_PRECISION, balances)
        high = calculate_invariant(5000 * AMP_PRECISION, balances)
        assert low < high < sum(balances)

    def test_zero_balance_rejected(self):
        with pytest.raises(InsufficientLiquidityError):
            calculate_invariant(AMP, (0, 10**18))

    def test_iteration_cap(self):
        """One iteration is not enough for an imbalanced pool."""
        with pytest.raises(StableInvariantDidNotConverge):
            calculate_invariant(100 * AMP_PRECISION, (10**18, 10**12), max_iterations=1)

    def test_non_convergence_is_domain_error(self):
        with pytest.raises(DidNotConvergeError):
            calculate_invariant(100 * AMP_PRECISION, (10**18, 10**12), max_iterations=1)


class TestSkewedInvariant:
    """Balances five orders of magnitude apart."""

    BALANCES = (248 * 10**27, 414 * 10**22)

    def test_converges_at_low_amplification(self):
        d = calculate_invariant(21 * AMP_PRECISION, self.BALANCES)
        x, y = self.BALANCES
        # Between the constant-product (A -> 0) and constant-sum (A -> inf) limits
        assert 2 * math.isqrt(x * y) < d < x + y

    def test_invariant_recovers_balances(self):
        amp = 21 * AMP_PRECISION
        x, y = self.BALANCES
        d = calculate_invariant(amp, self.BALANCES)
        assert close_values(get_balance_given_invariant(amp, x, d), y, 1e-9)
        assert close_values(get_balance_given_invariant(amp, y, d), x, 1e-9)

    @pytest.mark.parametrize("a", [1, 10, 100, 10_000])
    def test_converges_at_million_to_one(self, a):
        d = calculate_invariant(a * AMP_PRECISION, (10**30, 10**24))
        assert 2 * 10**27 < d < 10**30 + 10**24


class TestGetBalance:
    """Solving the invariant for one balance."""

    def test_recovers_balance(self):
        x, y = 10**22, 3 * 10**22
        d = calculate_invariant(AMP, (x, y))
        assert abs(get_balance_given_invariant(AMP, x, d) - y) <= 10
        assert abs(get_balance_given_invariant(AMP, y, d) - x) <= 10

    def test_zero_known_balance_rejected(self):
        with pytest.raises(InsufficientLiquidityError):
            get_balance_given_invariant(AMP, 0, 10**18)


class TestSwapAmounts:
    """Forward and inverse amounts on scaled balances."""

    def test_balanced_trade_is_near_one_to_one(self):
        balance = 10**22
        amount_in = 10**18
        out = stable_calc_out_given_in(AMP, balance, balance, amount_in)
        assert out < amount_in
        assert out > amount_in * 0.99999

    def test_forward_then_inverse(self):
        balance_in, balance_out = 10**22, 3 * 10**22
        amount_in = 10**19
        out = stable_calc_out_given_in(AMP, balance_in, balance_out, amount_in)
        back = stable_calc_in_given_out(AMP, balance_in, balance_out, out)
        assert abs(back - amount_in) <= 10

    def test_cached_invariant_gives_same_result(self):
        balances = (10**22, 3 * 10**22)
        d = calculate_invariant(AMP, balances)
        assert stable_calc_out_given_in(AMP, *balances, 10**18) == stable_calc_out_given_in(
            AMP, *balances, 10**18, invariant=d
        )

    def test_output_increases_with_input(self):
        outs = [stable_calc_out_given_in(AMP, 10**22, 10**22, a) for a in (10**16, 10**18, 10**20)]
        assert outs == sorted(outs)
        assert outs[0] < outs[1] < outs[2]

    def test_output_never_exceeds_balance(self):
        out = stable_calc_out_given_in(AMP, 10**22, 10**22, 10**30)
        assert 0 <= out < 10**22

    def test_inverse_rejects_full_balance(self):
        with pytest.raises(InsufficientLiquidityError):
            stable_calc_in_given_out(AMP, 10**22, 10**22, 10**22)


class TestSpotPrice:
    """Marginal price from the invariant's slope."""

    def test_balanced_price_is_one(self):
        d = calculate_invariant(AMP, (10**22, 10**22))
        assert stable_spot_price(AMP, 10**22, 10**22, d) == 1.0

    def test_reciprocal(self):
        x, y = 10**22, 7 * 10**24
        d = calculate_invariant(50 * AMP_PRECISION, (x, y))
        forward = stable_spot_price(50 * AMP_PRECISION, x, y, d)
        backward = stable_spot_price(50 * AMP_PRECISION, y, x, d)
        assert close_values(forward * backward, 1.0, 1e-12)

    def test_scarce_side_is_expensive(self):
        """Selling the abundant coin yields less than one unit of the scarce one."""
        x, y = 4 * 10**22, 10**22
        d = calculate_invariant(10 * AMP_PRECISION, (x, y))
        assert stable_spot_price(10 * AMP_PRECISION, x, y, d) < 1.0

    def test_matches_small_trade_rate(self):
        amp = 50 * AMP_PRECISION
        x, y = 10**24, 3 * 10**24
        d = calculate_invariant(amp, (x, y))
        amount_in = 10**12
        out = stable_calc_out_given_in(amp, x, y, amount_in, invariant=d)
        assert close_values(out / amount_in, stable_spot_price(amp, x, y, d), 1e-6)
