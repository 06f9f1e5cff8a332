"""
Route selection.

Ranking is total and independent of input order:
1. drop zero-output quotes (and non-executable ones when required)
2. highest to_amount, compared as int
3. lowest price impact
4. provider preference order; unlisted providers after listed ones, by name
5. highest minimum_received
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

from ..core.exceptions import QuoteContractError
from .amounts import is_integer_string
from .models import Quote

logger = logging.getLogger(__name__)


class RouteSelector:
    """Pick the single best quote under a fixed provider preference."""

    def __init__(self, preference: Sequence[str] = ()) -> None:
        self.preference = tuple(name.lower() for name in preference)
        self._rank = {name: index for index, name in enumerate(self.preference)}

    def preference_rank(self, provider: str) -> Tuple[int, str]:
        key = provider.lower()
        if key in self._rank:
            return (self._rank[key], "")
        return (len(self._rank), key)

    def sort_key(self, quote: Quote) -> Tuple:
        """Smaller sorts first; the first element wins."""
        return (
            -int(quote.to_amount),
            quote.price_impact_percent,
            self.preference_rank(quote.provider),
            -int(quote.minimum_received),
            quote.provider,
        )

    def eligible(self, quotes: Iterable[Quote], require_executable: bool = False) -> List[Quote]:
        checked = [self._check(quote) for quote in quotes]
        return [
            quote
            for quote in checked
            if quote.has_liquidity and (quote.is_executable or not require_executable)
        ]

    def rank(self, quotes: Iterable[Quote], require_executable: bool = False) -> List[Quote]:
        """Eligible quotes, best first."""
        return sorted(self.eligible(quotes, require_executable), key=self.sort_key)

    def select(self, quotes: Iterable[Quote], require_executable: bool = False) -> Optional[Quote]:
        """
        Return the best quote, or None when nothing survives filtering.

        Raises:
            QuoteContractError: A non-Quote or a quote with non-integer amounts
        """
        ranked = self.rank(quotes, require_executable)
        if not ranked:
            logger.info("No usable quote among provider results")
            return None

        best = ranked[0]
        logger.debug(
            f"Selected {best.provider}",
            extra={'provider': best.provider, 'extra_data': {
                'to_amount': best.to_amount,
                'candidates': len(ranked),
            }},
        )
        return best

    @staticmethod
    def _check(quote: object) -> Quote:
        if not isinstance(quote, Quote):
            raise QuoteContractError(f"Expected Quote, got {type(quote).__name__}")
        if not (is_integer_string(quote.to_amount) and is_integer_string(quote.minimum_received)):
            raise QuoteContractError(
                f"Quote from {quote.provider} has non-integer amounts",
                details={"provider": quote.provider},
            )
        if not isinstance(quote.price_impact_percent, Decimal):
            raise QuoteContractError(
                f"Quote from {quote.provider} has an invalid price impact",
                details={"provider": quote.provider},
            )
        return quote
