"""
Uniswap V3 pricing adapter backed by the public subgraphs.

The subgraph only exposes pool prices, so quotes from this adapter are
pricing-only (no execution transaction).
"""
from __future__ import annotations

from decimal import ROUND_DOWN, Decimal
from typing import Any, Dict, Optional, Tuple

from ..aggregator.models import Quote, SwapIntent
from .base import HttpQuoteProvider

SUBGRAPH_URLS: Dict[int, str] = {
    1: "https://api.thegraph.com/subgraphs/name/uniswap/uniswap-v3",
    10: "https://api.thegraph.com/subgraphs/name/ianlapham/optimism-post-regenesis",
    137: "https://api.thegraph.com/subgraphs/name/ianlapham/uniswap-v3-polygon",
    42161: "https://api.thegraph.com/subgraphs/name/ianlapham/uniswap-arbitrum-one",
}

DEFAULT_SWAP_GAS = "200000"
MAX_PRICE_IMPACT_PERCENT = Decimal(10)

POOLS_QUERY = """
query Pools($tokenIn: String!, $tokenOut: String!) {
  tokenIn: token(id: $tokenIn) { id decimals }
  tokenOut: token(id: $tokenOut) { id decimals }
  direct: pools(
    where: { token0: $tokenIn, token1: $tokenOut, liquidity_gt: "0" }
    orderBy: liquidity
    orderDirection: desc
    first: 1
  ) { id liquidity token0Price token1Price feeTier }
  inverse: pools(
    where: { token0: $tokenOut, token1: $tokenIn, liquidity_gt: "0" }
    orderBy: liquidity
    orderDirection: desc
    first: 1
  ) { id liquidity token0Price token1Price feeTier }
}
"""


class UniswapV3Adapter(HttpQuoteProvider):
    """Uniswap V3 spot pricing from the deepest pool for the pair."""

    name = "uniswap"
    supported_chains = frozenset(SUBGRAPH_URLS)
    executable = False

    async def _fetch_quote(self, intent: SwapIntent) -> Quote:
        payload = await self._post_json(
            SUBGRAPH_URLS[intent.from_chain],
            json={
                "query": POOLS_QUERY,
                "variables": {
                    "tokenIn": intent.from_token.lower(),
                    "tokenOut": intent.to_token.lower(),
                },
            },
        )
        if payload.get("errors"):
            raise self._no_liquidity(f"Subgraph error: {payload['errors'][0].get('message', 'unknown')}")

        data = payload["data"]
        token_in, token_out = data.get("tokenIn"), data.get("tokenOut")
        if not token_in or not token_out:
            raise self._no_liquidity("Token not indexed")

        pool, selling_token0 = self._deepest_pool(data)
        if pool is None:
            raise self._no_liquidity("No pool with liquidity")

        # token1Price is token1 per token0, token0Price is token0 per token1
        price = Decimal(pool["token1Price"] if selling_token0 else pool["token0Price"])
        scale_in = Decimal(10) ** int(token_in["decimals"])
        scale_out = Decimal(10) ** int(token_out["decimals"])

        amount_in = Decimal(intent.from_amount)
        to_amount = (amount_in / scale_in * price * scale_out).to_integral_value(rounding=ROUND_DOWN)

        liquidity = Decimal(pool["liquidity"])
        if liquidity <= 0:
            raise self._no_liquidity("No pool with liquidity")
        impact = min(amount_in / liquidity * 100, MAX_PRICE_IMPACT_PERCENT)

        return self._build_quote(
            intent,
            str(to_amount),
            price_impact=impact,
            estimated_gas=DEFAULT_SWAP_GAS,
            path=(intent.from_token, intent.to_token),
        )

    @staticmethod
    def _deepest_pool(data: Dict[str, Any]) -> Tuple[Optional[Dict[str, Any]], bool]:
        """Pick the deeper of the direct and inverse pools; True when selling token0."""
        candidates = [(pool, True) for pool in data.get("direct") or []]
        candidates += [(pool, False) for pool in data.get("inverse") or []]
        if not candidates:
            return None, True
        return max(candidates, key=lambda item: int(item[0]["liquidity"]))
