"""
ParaSwap adapter: price route first, then transaction build.
"""
from __future__ import annotations

from typing import Optional

from ..aggregator.models import Quote, SwapIntent
from .base import HttpQuoteProvider, collect_path

PARASWAP_API_BASE = "https://apiv5.paraswap.io"

# Used when the caller does not say how many decimals a token has
DEFAULT_TOKEN_DECIMALS = 18


class ParaSwapAdapter(HttpQuoteProvider):
    """ParaSwap GET /prices + POST /transactions/{chain}."""

    name = "paraswap"
    supported_chains = frozenset({1, 10, 56, 137, 250, 1101, 8453, 42161, 43114})
    api_base = PARASWAP_API_BASE
    partner = "splenex"

    async def _fetch_quote(self, intent: SwapIntent) -> Quote:
        src_decimals = _decimals(intent.from_token_decimals)
        dest_decimals = _decimals(intent.to_token_decimals)

        price_data = await self._get_json(
            f"{self.api_base}/prices",
            params={
                "srcToken": intent.from_token,
                "destToken": intent.to_token,
                "srcDecimals": src_decimals,
                "destDecimals": dest_decimals,
                "amount": intent.from_amount,
                "side": "SELL",
                "network": intent.from_chain,
                "userAddress": intent.from_address,
            },
        )
        if price_data.get("error"):
            raise self._no_liquidity(str(price_data["error"]))
        price_route = price_data["priceRoute"]

        tx_data = await self._post_json(
            f"{self.api_base}/transactions/{intent.from_chain}",
            params={"ignoreChecks": "true"},
            json={
                "srcToken": intent.from_token,
                "destToken": intent.to_token,
                "srcAmount": intent.from_amount,
                "srcDecimals": src_decimals,
                "destDecimals": dest_decimals,
                "priceRoute": price_route,
                "userAddress": intent.from_address,
                "receiver": intent.recipient,
                "partner": self.partner,
                "slippage": intent.slippage_bps,
            },
        )

        return self._build_quote(
            intent,
            price_route["destAmount"],
            estimated_gas=price_route.get("gasCost"),
            path=collect_path(
                [route.get("swaps") for route in price_route.get("bestRoute") or []],
                "srcToken",
                "destToken",
            ),
            transaction={
                "to": tx_data.get("to"),
                "data": tx_data.get("data"),
                "value": tx_data.get("value"),
                "gas_limit": tx_data.get("gas") or price_route.get("gasCost"),
                "from": tx_data.get("from") or intent.from_address,
            },
        )


def _decimals(value: Optional[int]) -> int:
    return DEFAULT_TOKEN_DECIMALS if value is None else value
