"""Tests for caller amount validation and slippage."""

from decimal import Decimal

import pytest

from amm_engine.errors import InvalidAmountError, InvalidInputError
from amm_engine.math.amounts import apply_slippage, to_amount


class TestToAmount:
    """Conversion of caller amounts to integer base units."""

    def test_int_passes_through(self):
        assert to_amount(5) == 5
        assert to_amount(10**33) == 10**33

    def test_zero_is_valid(self):
        assert to_amount(0) == 0

    def test_float_rounds_to_nearest(self):
        assert to_amount(2.4) == 2
        assert to_amount(2.6) == 3
        assert to_amount(1e20) == 10**20

    def test_decimal_rounds_half_even(self):
        assert to_amount(Decimal("2.5")) == 2
        assert to_amount(Decimal("3.5")) == 4
        assert to_amount(Decimal("1e15")) == 10**15

    @pytest.mark.parametrize("value", [-1, -0.6, Decimal("-2")])
    def test_negative_rejected(self, value):
        with pytest.raises(InvalidAmountError):
            to_amount(value)

    @pytest.mark.parametrize(
        "value", [float("nan"), float("inf"), float("-inf"), Decimal("NaN"), Decimal("Infinity")]
    )
    def test_non_finite_rejected(self, value):
        with pytest.raises(InvalidAmountError):
            to_amount(value)

    @pytest.mark.parametrize("value", [True, False, "5", None])
    def test_non_numeric_rejected(self, value):
        with pytest.raises(InvalidAmountError):
            to_amount(value)

    def test_error_names_parameter(self):
        with pytest.raises(InvalidAmountError, match="amount_out"):
            to_amount(-1, "amount_out")

    def test_invalid_amount_is_value_error(self):
        """InvalidAmountError belongs to both engine and builtin families."""
        with pytest.raises(ValueError):
            to_amount(-1)
        with pytest.raises(InvalidInputError):
            to_amount(-1)


class TestApplySlippage:
    """Minimum acceptable output after slippage."""

    def test_half_percent(self):
        """1000 * (1 - 0.005) = 995."""
        assert apply_slippage(1000, "0.005") == 995

    def test_rounds_down(self):
        """999 * 0.99 = 989.01."""
        assert apply_slippage(999, Decimal("0.01")) == 989

    def test_zero_slippage(self):
        assert apply_slippage(12345, 0) == 12345

    def test_large_amount_is_exact(self):
        assert apply_slippage(10**33, Decimal("0.01")) == 99 * 10**31

    def test_float_slippage(self):
        assert apply_slippage(10**18, 0.003) == 997 * 10**15

    @pytest.mark.parametrize("slippage", [-0.1, 1, 1.5, "abc", float("nan")])
    def test_invalid_slippage(self, slippage):
        with pytest.raises(InvalidAmountError):
            apply_slippage(1000, slippage)
