"""Tests for the commission split."""

from __future__ import annotations

import math
from decimal import Decimal

import pytest

from src.modules.commission.calculator import normalize_percent, split_commission


class TestSplitCommission:
    def test_basic_split(self):
        split = split_commission(1050, 7)
        assert split.platform_commission == Decimal(74)
        assert split.counterparty_earnings == Decimal(976)

    def test_parts_sum_to_agreed_price(self):
        for price in (1, 99, 1000, 1234, 99999):
            split = split_commission(price, 7.5)
            assert split.platform_commission + split.counterparty_earnings == Decimal(price)

    def test_rounds_half_up(self):
        # 10 x 5% = 0.5
        assert split_commission(10, 5).platform_commission == Decimal(1)

    def test_string_percent(self):
        assert split_commission(1000, "7").platform_commission == Decimal(70)

    def test_zero_percent(self):
        split = split_commission(1000, 0)
        assert split.platform_commission == 0
        assert split.counterparty_earnings == 1000

    @pytest.mark.parametrize("bad", [None, "abc", -5, 150, math.nan, math.inf, {}, True])
    def test_invalid_percent_is_zero(self, bad):
        split = split_commission(1000, bad)
        assert split.percent == 0.0
        assert split.platform_commission == 0
        assert split.counterparty_earnings == 1000

    def test_decimal_price(self):
        split = split_commission(Decimal("1999.50"), 10)
        assert split.platform_commission == Decimal(200)
        assert split.counterparty_earnings == Decimal("1799.50")


def test_normalize_percent_bounds():
    assert normalize_percent(0) == 0.0
    assert normalize_percent(100) == 100.0
    assert normalize_percent("12.5") == 12.5
