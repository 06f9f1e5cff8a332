"""
1inch swap API adapter (v6, same-chain only).
"""
from __future__ import annotations

from typing import Dict, Optional

import httpx

from ..aggregator.amounts import bps_to_percent
from ..aggregator.models import Quote, SwapIntent
from ..core.retry import RetryConfig
from .base import DEFAULT_USER_AGENT, HttpQuoteProvider, collect_path

ONEINCH_API_BASE = "https://api.1inch.dev/swap/v6.0"


class OneInchAdapter(HttpQuoteProvider):
    """1inch GET /{chain}/swap, which returns both pricing and calldata."""

    name = "1inch"
    supported_chains = frozenset({1, 10, 56, 100, 137, 250, 324, 8453, 42161, 43114, 59144})

    def __init__(
        self,
        client: httpx.AsyncClient,
        retry_config: Optional[RetryConfig] = None,
        request_timeout: Optional[float] = None,
        user_agent: str = DEFAULT_USER_AGENT,
        api_key: Optional[str] = None,
        api_base: str = ONEINCH_API_BASE,
    ) -> None:
        super().__init__(client, retry_config, request_timeout, user_agent)
        self.api_key = api_key
        self.api_base = api_base.rstrip("/")

    def default_headers(self) -> Dict[str, str]:
        headers = super().default_headers()
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _fetch_quote(self, intent: SwapIntent) -> Quote:
        params = {
            "src": intent.from_token,
            "dst": intent.to_token,
            "amount": intent.from_amount,
            "from": intent.from_address,
            "receiver": intent.recipient,
            "slippage": str(bps_to_percent(intent.slippage_bps)),
            "disableEstimate": "false",
            "allowPartialFill": "false",
            "includeProtocols": "true",
            "includeGas": "true",
        }
        data = await self._get_json(f"{self.api_base}/{intent.from_chain}/swap", params=params)

        tx = data.get("tx") or {}
        return self._build_quote(
            intent,
            data.get("dstAmount") or data["toAmount"],
            estimated_gas=data.get("gas") or tx.get("gas"),
            path=collect_path(data.get("protocols"), "fromTokenAddress", "toTokenAddress"),
            transaction={
                "to": tx.get("to"),
                "data": tx.get("data"),
                "value": tx.get("value"),
                "gas_limit": tx.get("gas"),
                "from": tx.get("from") or intent.from_address,
            } if tx else None,
        )
