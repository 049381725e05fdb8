"""
tests/unit/test_math.py - Tests for core/math.py.

No float anywhere in money paths; sqrtPriceX96 conversions are exact
integer math on raw units.
"""

from decimal import Decimal

import pytest

from core.constants import Q96
from core.exceptions import ValidationError
from core.math import (
    amount_out_from_sqrt_price,
    apply_buffer_percent,
    apply_slippage,
    estimate_price_impact,
    format_units,
    gwei_to_wei,
    human_to_wei,
    normalize_price,
    percent_of,
    wei_to_eth,
)

# token0 (6 decimals) / token1 (18 decimals) pool priced at 4 token1 per token0,
# i.e. 4 * 10**12 raw token1 per raw token0 -> sqrt = 2 * 10**6
SQRT_PRICE_X96 = 2 * 10**6 * Q96


class TestSlippageAndBuffers:
    """Basis points and percentage helpers."""

    def test_apply_slippage(self):
        assert apply_slippage(1000, 200) == 980
        assert apply_slippage(10**18, 500) == 95 * 10**16

    def test_apply_slippage_zero(self):
        assert apply_slippage(12345, 0) == 12345

    def test_apply_slippage_out_of_range(self):
        with pytest.raises(ValidationError):
            apply_slippage(1000, -1)
        with pytest.raises(ValidationError):
            apply_slippage(1000, 10_001)

    def test_apply_buffer_percent(self):
        # 200k gas at 200 gwei plus 20%
        assert apply_buffer_percent(200_000 * 200 * 10**9, 20) == 48 * 10**15

    def test_percent_of(self):
        assert percent_of(3, 100) == Decimal("3")
        assert percent_of(1, 0) == Decimal("0")


class TestUnitConversions:
    """wei / gwei / human conversions."""

    def test_wei_to_eth(self):
        assert wei_to_eth(10**18) == Decimal("1")
        assert wei_to_eth(5 * 10**17) == Decimal("0.5")

    def test_gwei_to_wei(self):
        assert gwei_to_wei(10) == 10_000_000_000
        assert gwei_to_wei("0.5") == 500_000_000

    def test_human_to_wei(self):
        assert human_to_wei("0.1", 18) == 10**17
        assert human_to_wei(Decimal("100.50"), 6) == 100_500_000

    def test_invalid_decimals(self):
        with pytest.raises(ValidationError):
            human_to_wei("1", 19)
        with pytest.raises(ValidationError):
            human_to_wei("1", -1)

    def test_format_units_truncates(self):
        assert format_units(1_234_567, 6, places=2) == "1.23"
        assert format_units(10**18, 18) == "1.000000"


class TestSqrtPriceMath:
    """amount_out_from_sqrt_price and friends."""

    def test_token0_to_token1(self):
        out = amount_out_from_sqrt_price(10**6, SQRT_PRICE_X96, zero_for_one=True)
        assert out == 4 * 10**18

    def test_token1_to_token0(self):
        out = amount_out_from_sqrt_price(4 * 10**18, SQRT_PRICE_X96, zero_for_one=False)
        assert out == 10**6

    def test_linear_up_to_rounding(self):
        sqrt_price = 79228162514264337593543950336 * 3 // 7
        for amount in (1, 999, 10**15, 123_456_789_012):
            single = amount_out_from_sqrt_price(amount, sqrt_price, zero_for_one=True)
            double = amount_out_from_sqrt_price(2 * amount, sqrt_price, zero_for_one=True)
            assert double - 2 * single in (0, 1)

    def test_zero_inputs(self):
        assert amount_out_from_sqrt_price(0, SQRT_PRICE_X96, True) == 0
        assert amount_out_from_sqrt_price(10**6, 0, True) == 0

    def test_normalize_price(self):
        # 1 token0 (6 dec) -> 4 token1 (18 dec)
        assert normalize_price(10**6, 4 * 10**18, 6, 18) == Decimal("4")
        assert normalize_price(0, 1, 6, 18) == Decimal("0")


class TestPriceImpact:
    """Single-range impact estimate."""

    def test_small_trade_small_impact(self):
        impact = estimate_price_impact(10**6, SQRT_PRICE_X96, 10**24, zero_for_one=True)
        assert Decimal("0") <= impact < Decimal("0.001")

    def test_impact_grows_with_size(self):
        small = estimate_price_impact(10**6, SQRT_PRICE_X96, 10**18, zero_for_one=False)
        large = estimate_price_impact(10**20, SQRT_PRICE_X96, 10**18, zero_for_one=False)
        assert large > small

    def test_no_liquidity_is_total_impact(self):
        assert estimate_price_impact(10**6, SQRT_PRICE_X96, 0, zero_for_one=True) == Decimal("1")
