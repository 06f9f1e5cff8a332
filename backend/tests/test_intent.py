"""
Tests for swap intent construction and validation.

File: backend/tests/test_intent.py
"""
import sys
from decimal import Decimal
from pathlib import Path

import pytest
from pydantic import ValidationError

sys.path.insert(0, str(Path(__file__).parent.parent))

from splenex.aggregator.intent import build_swap_intent, validate_intent
from splenex.aggregator.models import SwapIntent
from splenex.core.exceptions import IntentValidationError


def _raw(**overrides):
    fields = {
        "from_chain": "1",
        "to_chain": 1,
        "from_token": "0xA",
        "to_token": "0xB",
        "from_amount": "1e18",
        "from_address": "0x1",
    }
    fields.update(overrides)
    return fields


class TestBuildSwapIntent:
    """Raw caller input into a validated SwapIntent."""

    def test_normalizes_fields(self):
        intent = build_swap_intent(**_raw(slippage="1"))

        assert intent.from_chain == 1
        assert intent.to_chain == 1
        assert intent.from_amount == "1000000000000000000"
        assert intent.slippage_bps == 100
        assert intent.recipient == "0x1"
        assert not intent.is_cross_chain

    def test_default_slippage(self):
        intent = build_swap_intent(**_raw())
        assert intent.slippage_bps == 50

        intent = build_swap_intent(**_raw(), default_slippage_percent=Decimal("1.5"))
        assert intent.slippage_bps == 150

    def test_recipient_override(self):
        intent = build_swap_intent(**_raw(to_address="0x2", to_chain=137))
        assert intent.recipient == "0x2"
        assert intent.is_cross_chain

    @pytest.mark.parametrize("field, camel", [
        ("from_chain", "fromChain"),
        ("to_chain", "toChain"),
        ("from_token", "fromToken"),
        ("to_token", "toToken"),
        ("from_amount", "fromAmount"),
        ("from_address", "fromAddress"),
    ])
    def test_missing_field(self, field, camel):
        with pytest.raises(IntentValidationError) as exc_info:
            build_swap_intent(**_raw(**{field: None}))

        assert exc_info.value.message == f"Missing required field: {camel}"
        assert exc_info.value.details == {"field": camel}
        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize("chain", ["abc", 0, -1, True])
    def test_invalid_chain(self, chain):
        with pytest.raises(IntentValidationError, match="fromChain must be a positive integer"):
            build_swap_intent(**_raw(from_chain=chain))

    @pytest.mark.parametrize("amount", ["0", "0.0", "0e18"])
    def test_zero_amount_rejected(self, amount):
        with pytest.raises(IntentValidationError, match="fromAmount must be greater than zero"):
            build_swap_intent(**_raw(from_amount=amount))

    @pytest.mark.parametrize("amount", ["1.9", "0.9", "1000000000000000000.5", "1.5e0"])
    def test_fractional_amount_rejected(self, amount):
        """Smallest units are whole; fractions are not truncated."""
        with pytest.raises(IntentValidationError, match="fractional part") as exc_info:
            build_swap_intent(**_raw(from_amount=amount))
        assert exc_info.value.details == {"field": "fromAmount"}

    def test_integral_notations_accepted(self):
        assert build_swap_intent(**_raw(from_amount="1.5e1")).from_amount == "15"
        assert build_swap_intent(**_raw(from_amount="7.000")).from_amount == "7"

    @pytest.mark.parametrize("amount", ["abc", "-1", "1e90"])
    def test_invalid_amount(self, amount):
        with pytest.raises(IntentValidationError) as exc_info:
            build_swap_intent(**_raw(from_amount=amount))
        assert exc_info.value.details == {"field": "fromAmount"}

    @pytest.mark.parametrize("slippage", ["-0.1", "50.01", "many"])
    def test_invalid_slippage(self, slippage):
        with pytest.raises(IntentValidationError) as exc_info:
            build_swap_intent(**_raw(slippage=slippage))
        assert exc_info.value.details == {"field": "slippage"}

    @pytest.mark.parametrize("slippage", ["0.004", "0.125"])
    def test_sub_basis_point_slippage_rejected(self, slippage):
        with pytest.raises(IntentValidationError, match="finer than one basis point") as exc_info:
            build_swap_intent(**_raw(slippage=slippage))
        assert exc_info.value.details == {"field": "slippage"}

    def test_basis_point_slippage_accepted(self):
        assert build_swap_intent(**_raw(slippage="0.01")).slippage_bps == 1
        assert build_swap_intent(**_raw(slippage="0.25")).slippage_bps == 25

    def test_token_decimals(self):
        intent = build_swap_intent(**_raw(from_token_decimals="18", to_token_decimals=6))
        assert (intent.from_token_decimals, intent.to_token_decimals) == (18, 6)
        assert build_swap_intent(**_raw()).to_token_decimals is None

    @pytest.mark.parametrize("decimals", ["six", -1, 256, True])
    def test_invalid_token_decimals(self, decimals):
        with pytest.raises(IntentValidationError) as exc_info:
            build_swap_intent(**_raw(to_token_decimals=decimals))
        assert exc_info.value.details == {"field": "toTokenDecimals"}

    def test_max_slippage_is_configurable(self):
        with pytest.raises(IntentValidationError, match="between 0 and 5 percent"):
            build_swap_intent(**_raw(slippage="6"), max_slippage_percent=5)


class TestValidateIntent:
    """Checks on already-built intents."""

    def test_intent_is_frozen(self):
        intent = build_swap_intent(**_raw())
        with pytest.raises(ValidationError):
            intent.from_amount = "5"

    def test_zero_amount(self):
        intent = SwapIntent(
            from_chain=1, to_chain=1, from_token="0xA", to_token="0xB",
            from_amount="0", from_address="0x1",
        )
        with pytest.raises(IntentValidationError):
            validate_intent(intent)

    def test_non_numeric_amount(self):
        intent = SwapIntent(
            from_chain=1, to_chain=1, from_token="0xA", to_token="0xB",
            from_amount="lots", from_address="0x1",
        )
        with pytest.raises(IntentValidationError, match="integer string"):
            validate_intent(intent)

    def test_empty_token(self):
        intent = SwapIntent(
            from_chain=1, to_chain=1, from_token="", to_token="0xB",
            from_amount="10", from_address="0x1",
        )
        with pytest.raises(IntentValidationError, match="fromToken"):
            validate_intent(intent)

    def test_slippage_bounds(self):
        intent = SwapIntent(
            from_chain=1, to_chain=1, from_token="0xA", to_token="0xB",
            from_amount="10", from_address="0x1", slippage_bps=10_001,
        )
        with pytest.raises(IntentValidationError):
            validate_intent(intent)
