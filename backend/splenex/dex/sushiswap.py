"""
SushiSwap swap API adapter.
"""
from __future__ import annotations

from ..aggregator.amounts import bps_to_percent
from ..aggregator.models import Quote, SwapIntent
from .base import HttpQuoteProvider, fraction_to_percent

SUSHI_API_BASE = "https://api.sushi.com/v1"

DEFAULT_SWAP_GAS = "250000"


class SushiSwapAdapter(HttpQuoteProvider):
    """SushiSwap GET /swap."""

    name = "sushiswap"
    supported_chains = frozenset({1, 25, 56, 100, 137, 250, 8453, 10, 42161, 43114})
    api_base = SUSHI_API_BASE

    async def _fetch_quote(self, intent: SwapIntent) -> Quote:
        data = await self._get_json(
            f"{self.api_base}/swap",
            params={
                "chainId": intent.from_chain,
                "tokenIn": intent.from_token,
                "tokenOut": intent.to_token,
                "amount": intent.from_amount,
                "recipient": intent.recipient,
                "sender": intent.from_address,
                "slippagePercent": str(bps_to_percent(intent.slippage_bps)),
            },
        )

        if str(data.get("status", "")).lower() == "noway":
            raise self._no_liquidity()
        route = data.get("route")
        if not route:
            raise self._no_liquidity("Empty route")

        tokens = data.get("tokens") or route.get("tokens") or []
        gas = route.get("gasUsed") or DEFAULT_SWAP_GAS

        return self._build_quote(
            intent,
            route["amountOut"],
            minimum_received=route.get("amountOutMin"),
            price_impact=fraction_to_percent(route.get("priceImpact")),
            estimated_gas=gas,
            path=[token.get("address") for token in tokens if isinstance(token, dict)],
            transaction={
                "to": route.get("to"),
                "data": route.get("data"),
                "value": route.get("value") or "0",
                "gas_limit": gas,
                "from": intent.from_address,
            },
        )
