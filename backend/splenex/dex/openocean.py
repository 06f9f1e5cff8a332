"""
OpenOcean v3 swap quote adapter.
"""
from __future__ import annotations

from ..aggregator.amounts import bps_to_percent
from ..aggregator.models import Quote, SwapIntent
from .base import HttpQuoteProvider, collect_path, parse_percent

OPENOCEAN_API_BASE = "https://open-api.openocean.finance/v3"

DEFAULT_GAS_PRICE_GWEI = "5"


class OpenOceanAdapter(HttpQuoteProvider):
    """OpenOcean GET /{chain}/swap_quote."""

    name = "openocean"
    supported_chains = frozenset({1, 10, 25, 56, 100, 137, 250, 324, 8453, 42161, 43114, 59144})
    api_base = OPENOCEAN_API_BASE

    async def _fetch_quote(self, intent: SwapIntent) -> Quote:
        payload = await self._get_json(
            f"{self.api_base}/{intent.from_chain}/swap_quote",
            params={
                "inTokenAddress": intent.from_token,
                "outTokenAddress": intent.to_token,
                "amount": intent.from_amount,
                "slippage": str(bps_to_percent(intent.slippage_bps)),
                "gasPrice": DEFAULT_GAS_PRICE_GWEI,
                "account": intent.recipient,
            },
        )
        if payload.get("code") not in (None, 200):
            raise self._no_liquidity(str(payload.get("error") or payload.get("message") or payload["code"]))
        data = payload.get("data")
        if not data:
            raise self._no_liquidity("Empty quote data")

        path = data.get("path")
        if not isinstance(path, dict):
            path = {}
        hops = [path.get("from")]
        hops += collect_path([route.get("subRoutes") for route in path.get("routes") or []], "from", "to")
        hops.append(path.get("to"))

        return self._build_quote(
            intent,
            data["outAmount"],
            minimum_received=data.get("minOutAmount"),
            price_impact=parse_percent(data.get("price_impact") or data.get("priceImpact")),
            estimated_gas=data.get("estimatedGas") or data.get("gas"),
            path=hops,
            transaction={
                "to": data.get("to"),
                "data": data.get("data"),
                "value": data.get("value") or "0",
                "gas_limit": data.get("estimatedGas") or data.get("gas"),
                "from": intent.from_address,
            },
        )
