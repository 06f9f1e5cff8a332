"""
PancakeSwap Smart Router adapter.
"""
from __future__ import annotations

from ..aggregator.models import Quote, SwapIntent
from .base import HttpQuoteProvider

PANCAKESWAP_API_BASE = "https://api.pancakeswap.com/v3"

DEFAULT_SWAP_GAS = "300000"


class PancakeSwapAdapter(HttpQuoteProvider):
    """PancakeSwap GET /quote, same-chain only."""

    name = "pancakeswap"
    supported_chains = frozenset({1, 10, 25, 56, 137, 8453, 42161, 43114})
    api_base = PANCAKESWAP_API_BASE

    async def _fetch_quote(self, intent: SwapIntent) -> Quote:
        data = await self._get_json(
            f"{self.api_base}/quote",
            params={
                "chainId": intent.from_chain,
                "inputCurrency": intent.from_token,
                "outputCurrency": intent.to_token,
                "amount": intent.from_amount,
                "trader": intent.from_address,
                "slippageTolerance": intent.slippage_bps,
            },
        )

        output = data.get("outputAmount") if isinstance(data, dict) else None
        if not output:
            raise self._no_liquidity("No valid quote data")

        gas = data.get("estimatedGas") or DEFAULT_SWAP_GAS

        # Vendor returns no minimum; _build_quote derives it from slippage
        return self._build_quote(
            intent,
            output,
            estimated_gas=gas,
            transaction={
                "to": data.get("to") or data.get("routerAddress"),
                "data": data.get("data") or data.get("calldata"),
                "value": data.get("value") or "0",
                "gas_limit": gas,
                "from": intent.from_address,
            },
        )
