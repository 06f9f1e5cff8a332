"""
Tests for token amount helpers.

File: backend/tests/test_amounts.py
"""
import sys
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from splenex.aggregator.amounts import (
    MAX_UINT256,
    apply_slippage,
    bps_to_fraction,
    bps_to_percent,
    is_integer_string,
    normalize_amount_string,
    percent_to_bps,
    to_decimal,
)


class TestNormalizeAmountString:
    """Amount normalization into integer strings."""

    @pytest.mark.parametrize("raw, expected", [
        ("1000000000000000000", "1000000000000000000"),
        ("1e18", "1000000000000000000"),
        ("1.5E+3", "1500"),
        ("1.0", "1"),
        ("  42 ", "42"),
        ("12.999", "12"),
        (7, "7"),
        (Decimal("3.7"), "3"),
        (1e18, "1000000000000000000"),
    ])
    def test_normalizes(self, raw, expected):
        assert normalize_amount_string(raw) == expected

    def test_keeps_full_precision(self):
        """Values past 2^53 are not rounded."""
        assert normalize_amount_string("1000000000000000001") == "1000000000000000001"
        assert normalize_amount_string(str(MAX_UINT256)) == str(MAX_UINT256)

    @pytest.mark.parametrize("raw", ["", "   ", "abc", "NaN", "Infinity", "1e80", None, [], True])
    def test_rejects_invalid(self, raw):
        with pytest.raises(ValueError):
            normalize_amount_string(raw)

    def test_rejects_above_uint256(self):
        with pytest.raises(ValueError):
            normalize_amount_string(str(MAX_UINT256 + 1))

    def test_strict_mode_rejects_fractions(self):
        assert normalize_amount_string("12.999") == "12"
        with pytest.raises(ValueError, match="fractional part"):
            normalize_amount_string("12.999", allow_fraction=False)
        assert normalize_amount_string("1.5E+3", allow_fraction=False) == "1500"
        assert normalize_amount_string(Decimal("4.0"), allow_fraction=False) == "4"


class TestIntegerStrings:
    """Canonical integer string checks."""

    @pytest.mark.parametrize("value", ["0", "1", "1000000000000000001"])
    def test_canonical(self, value):
        assert is_integer_string(value)

    @pytest.mark.parametrize("value", ["", "01", "-1", "1.0", "1e18", " 1", 1, None, "١٢"])
    def test_not_canonical(self, value):
        assert not is_integer_string(value)


class TestSlippage:
    """Slippage math stays in integers."""

    def test_apply_slippage_rounds_down(self):
        assert apply_slippage(1000, 50) == 995
        assert apply_slippage(999, 50) == 994
        assert apply_slippage(10 ** 30, 0) == 10 ** 30
        assert apply_slippage(10 ** 30, 10_000) == 0

    def test_apply_slippage_range(self):
        with pytest.raises(ValueError):
            apply_slippage(100, 10_001)
        with pytest.raises(ValueError):
            apply_slippage(100, -1)

    def test_percent_conversions(self):
        assert percent_to_bps("0.5") == 50
        assert percent_to_bps(Decimal("3")) == 300
        assert bps_to_percent(50) == Decimal("0.5")
        assert bps_to_fraction(50) == Decimal("0.005")

    def test_percent_to_bps_rejects_garbage(self):
        with pytest.raises(ValueError):
            percent_to_bps("lots")
        with pytest.raises(ValueError):
            percent_to_bps("nan")

    def test_percent_to_bps_requires_whole_bps(self):
        assert percent_to_bps("0.01") == 1
        with pytest.raises(ValueError, match="basis point"):
            percent_to_bps("0.004")
        with pytest.raises(ValueError, match="basis point"):
            percent_to_bps(Decimal("0.505"))

    def test_to_decimal_defaults(self):
        assert to_decimal("0.25") == Decimal("0.25")
        assert to_decimal(None) == Decimal(0)
        assert to_decimal("n/a", Decimal(1)) == Decimal(1)
        assert to_decimal("inf") == Decimal(0)
