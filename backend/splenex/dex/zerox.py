"""
0x swap API adapter (v1 quote endpoint, same-chain only).
"""
from __future__ import annotations

from typing import Dict, Optional

import httpx

from ..aggregator.amounts import bps_to_fraction
from ..aggregator.models import Quote, SwapIntent
from ..core.retry import RetryConfig
from .base import DEFAULT_USER_AGENT, HttpQuoteProvider, collect_path

# 0x v1 serves each chain from its own host
ZEROX_HOSTS: Dict[int, str] = {
    1: "https://api.0x.org",
    10: "https://optimism.api.0x.org",
    56: "https://bsc.api.0x.org",
    137: "https://polygon.api.0x.org",
    8453: "https://base.api.0x.org",
    42161: "https://arbitrum.api.0x.org",
    43114: "https://avalanche.api.0x.org",
}


class ZeroXAdapter(HttpQuoteProvider):
    """0x GET /swap/v1/quote."""

    name = "0x"
    supported_chains = frozenset(ZEROX_HOSTS)

    def __init__(
        self,
        client: httpx.AsyncClient,
        retry_config: Optional[RetryConfig] = None,
        request_timeout: Optional[float] = None,
        user_agent: str = DEFAULT_USER_AGENT,
        api_key: Optional[str] = None,
        hosts: Optional[Dict[int, str]] = None,
    ) -> None:
        super().__init__(client, retry_config, request_timeout, user_agent)
        self.api_key = api_key
        self.hosts = dict(hosts or ZEROX_HOSTS)

    def default_headers(self) -> Dict[str, str]:
        headers = super().default_headers()
        if self.api_key:
            headers["0x-api-key"] = self.api_key
        return headers

    async def _fetch_quote(self, intent: SwapIntent) -> Quote:
        params = {
            "sellToken": intent.from_token,
            "buyToken": intent.to_token,
            "sellAmount": intent.from_amount,
            "takerAddress": intent.from_address,
            "slippagePercentage": str(bps_to_fraction(intent.slippage_bps)),
            "skipValidation": "true",
        }
        data = await self._get_json(
            f"{self.hosts[intent.from_chain]}/swap/v1/quote", params=params
        )

        return self._build_quote(
            intent,
            data["buyAmount"],
            price_impact=data.get("estimatedPriceImpact"),
            estimated_gas=data.get("estimatedGas") or data.get("gas"),
            path=collect_path(data.get("orders"), "takerToken", "makerToken"),
            transaction={
                "to": data.get("to"),
                "data": data.get("data"),
                "value": data.get("value"),
                "gas_limit": data.get("gas"),
                "from": intent.from_address,
            },
        )
