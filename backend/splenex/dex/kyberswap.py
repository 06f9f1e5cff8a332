"""
KyberSwap aggregator adapter: route lookup, then route build for calldata.
"""
from __future__ import annotations

from typing import Dict

from ..aggregator.models import Quote, SwapIntent
from .base import HttpQuoteProvider, collect_path

KYBER_API_BASE = "https://aggregator-api.kyberswap.com"

KYBER_CHAIN_NAMES: Dict[int, str] = {
    1: "ethereum",
    10: "optimism",
    25: "cronos",
    56: "bsc",
    137: "polygon",
    250: "fantom",
    8453: "base",
    42161: "arbitrum",
    43114: "avalanche",
}


class KyberSwapAdapter(HttpQuoteProvider):
    """KyberSwap GET /{chain}/api/v1/routes + POST /{chain}/api/v1/route/build."""

    name = "kyberswap"
    supported_chains = frozenset(KYBER_CHAIN_NAMES)
    api_base = KYBER_API_BASE
    client_id = "splenex"

    def default_headers(self) -> Dict[str, str]:
        headers = super().default_headers()
        headers["x-client-id"] = self.client_id
        return headers

    async def _fetch_quote(self, intent: SwapIntent) -> Quote:
        chain_url = f"{self.api_base}/{KYBER_CHAIN_NAMES[intent.from_chain]}/api/v1"

        routes = await self._get_json(
            f"{chain_url}/routes",
            params={
                "tokenIn": intent.from_token,
                "tokenOut": intent.to_token,
                "amountIn": intent.from_amount,
            },
        )
        if routes.get("code") not in (None, 0):
            raise self._no_liquidity(str(routes.get("message") or routes["code"]))
        route_summary = routes["data"]["routeSummary"]

        build = await self._post_json(
            f"{chain_url}/route/build",
            json={
                "routeSummary": route_summary,
                "sender": intent.from_address,
                "recipient": intent.recipient,
                "slippageTolerance": intent.slippage_bps,
            },
        )
        built = build["data"]
        gas = built.get("gas") or route_summary.get("gas")

        return self._build_quote(
            intent,
            built.get("amountOut") or route_summary["amountOut"],
            estimated_gas=gas,
            path=collect_path(route_summary.get("route"), "tokenIn", "tokenOut"),
            transaction={
                "to": built.get("routerAddress") or routes["data"].get("routerAddress"),
                "data": built.get("data"),
                "value": built.get("transactionValue") or "0",
                "gas_limit": gas,
                "from": intent.from_address,
            },
        )
