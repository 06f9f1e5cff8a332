"""
Tests for route selection.

File: backend/tests/test_selector.py
"""
import random
import sys
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from helpers import make_quote

from splenex.aggregator.models import Quote
from splenex.aggregator.selector import RouteSelector
from splenex.core.exceptions import QuoteContractError


class TestRouteSelector:
    """Ranking rules for the best quote."""

    @pytest.fixture
    def selector(self):
        return RouteSelector(["lifi", "1inch", "0x"])

    def test_highest_output_wins(self, selector):
        quotes = [make_quote("lifi", "95"), make_quote("0x", "100")]
        assert selector.select(quotes).provider == "0x"

    def test_compares_as_integers(self, selector):
        """Amounts that collide as floats still rank correctly."""
        quotes = [
            make_quote("lifi", "1000000000000000000"),
            make_quote("0x", "1000000000000000001"),
        ]
        assert selector.select(quotes).provider == "0x"

    def test_compares_by_magnitude_not_text(self, selector):
        quotes = [make_quote("lifi", "999"), make_quote("0x", "1000")]
        assert selector.select(quotes).provider == "0x"

    def test_lower_price_impact_breaks_tie(self, selector):
        quotes = [
            make_quote("lifi", "100", price_impact="0.5"),
            make_quote("0x", "100", price_impact="0.1"),
        ]
        assert selector.select(quotes).provider == "0x"

    def test_preference_breaks_tie(self, selector):
        quotes = [make_quote("0x", "100"), make_quote("1inch", "100")]
        assert selector.select(quotes).provider == "1inch"

    def test_unlisted_providers_rank_after_listed(self, selector):
        quotes = [
            make_quote("zeta", "100"),
            make_quote("alpha", "100"),
            make_quote("0x", "100"),
        ]
        ranked = selector.rank(quotes)
        assert [quote.provider for quote in ranked] == ["0x", "alpha", "zeta"]

    def test_minimum_received_breaks_remaining_tie(self):
        selector = RouteSelector()
        quotes = [
            make_quote("same", "100", minimum_received="90"),
            make_quote("same", "100", minimum_received="99"),
        ]
        assert selector.select(quotes).minimum_received == "99"

    def test_independent_of_input_order(self, selector):
        quotes = [
            make_quote("lifi", "100", price_impact="0.2"),
            make_quote("1inch", "100", price_impact="0.2"),
            make_quote("0x", "99"),
            make_quote("sushiswap", "100", price_impact="0.2"),
            make_quote("kyberswap", "100", price_impact="0.3"),
        ]
        expected = selector.select(quotes)
        rng = random.Random(7)
        for _ in range(20):
            shuffled = quotes[:]
            rng.shuffle(shuffled)
            assert selector.select(shuffled) is expected
        assert expected.provider == "lifi"

    def test_zero_output_excluded(self, selector):
        quotes = [make_quote("lifi", "0"), make_quote("0x", "5")]
        assert selector.select(quotes).provider == "0x"
        assert selector.select([make_quote("lifi", "0")]) is None

    def test_empty_input(self, selector):
        assert selector.select([]) is None

    def test_require_executable(self, selector):
        quotes = [
            make_quote("uniswap", "200", executable=False),
            make_quote("0x", "100"),
        ]
        assert selector.select(quotes).provider == "uniswap"
        assert selector.select(quotes, require_executable=True).provider == "0x"
        assert selector.select(quotes[:1], require_executable=True) is None

    def test_preference_is_case_insensitive(self):
        selector = RouteSelector(["ZeroX", "LiFi"])
        quotes = [make_quote("lifi", "1"), make_quote("zerox", "1")]
        assert selector.select(quotes).provider == "zerox"


class TestQuoteContract:
    """Contract violations surface instead of being dropped."""

    def test_non_quote_rejected(self):
        with pytest.raises(QuoteContractError):
            RouteSelector().select([make_quote("a", "1"), {"provider": "b"}])

    @pytest.mark.parametrize("amount", ["1.5", "-1", "1e18", "0x10", ""])
    def test_non_integer_amount_rejected(self, amount):
        bad = Quote.model_construct(
            provider="bad",
            to_amount=amount,
            minimum_received="0",
            price_impact_percent=Decimal(0),
            estimated_gas="0",
            route=("0xA", "0xB"),
            execution_transaction=None,
        )
        with pytest.raises(QuoteContractError) as exc_info:
            RouteSelector().select([make_quote("a", "1"), bad])
        assert exc_info.value.details == {"provider": "bad"}

    def test_quote_model_rejects_bad_amounts(self):
        with pytest.raises(ValueError):
            make_quote("a", "1.5")
        with pytest.raises(ValueError):
            make_quote("a", "10", minimum_received="11")

    def test_quote_accepts_int_amounts(self):
        quote = Quote(provider="a", to_amount=10, minimum_received=9, route=["0xA", "0xB"])
        assert quote.to_amount == "10"
        assert quote.minimum_received == "9"
        assert quote.route == ("0xA", "0xB")
