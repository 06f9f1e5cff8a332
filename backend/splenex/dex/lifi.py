"""
LI.FI adapter: same-chain swaps and cross-chain bridges.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from ..aggregator.amounts import bps_to_fraction
from ..aggregator.models import Quote, SwapIntent
from ..core.retry import RetryConfig
from .base import DEFAULT_USER_AGENT, HttpQuoteProvider

logger = logging.getLogger(__name__)

LIFI_API_BASE = "https://li.quest/v1"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
LIFI_NATIVE_ADDRESS = "0xeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee"


def normalize_native_token(address: str) -> str:
    """LI.FI addresses native gas tokens as 0xeee...e, not the zero address."""
    if address.lower() == ZERO_ADDRESS:
        return LIFI_NATIVE_ADDRESS
    return address


class LiFiAdapter(HttpQuoteProvider):
    """LI.FI quote API (GET /quote)."""

    name = "lifi"
    cross_chain = True
    supported_chains = frozenset({
        1, 10, 25, 56, 100, 122, 137, 250, 288, 324, 1101, 1284, 1285,
        5000, 8453, 34443, 42161, 42220, 43114, 59144, 81457, 534352,
    })
    no_liquidity_statuses = frozenset({404})

    def __init__(
        self,
        client: httpx.AsyncClient,
        retry_config: Optional[RetryConfig] = None,
        request_timeout: Optional[float] = None,
        user_agent: str = DEFAULT_USER_AGENT,
        api_key: Optional[str] = None,
        integrator: str = "splenex",
        integrator_fee: Optional[str] = None,
        api_base: str = LIFI_API_BASE,
    ) -> None:
        super().__init__(client, retry_config, request_timeout, user_agent)
        self.api_key = api_key
        self.integrator = integrator
        self.integrator_fee = integrator_fee
        self.api_base = api_base.rstrip("/")

    def default_headers(self) -> Dict[str, str]:
        headers = super().default_headers()
        if self.api_key:
            headers["x-lifi-api-key"] = self.api_key
        return headers

    async def _fetch_quote(self, intent: SwapIntent) -> Quote:
        params: Dict[str, Any] = {
            "fromChain": intent.from_chain,
            "toChain": intent.to_chain,
            "fromToken": normalize_native_token(intent.from_token),
            "toToken": normalize_native_token(intent.to_token),
            "fromAmount": intent.from_amount,
            "fromAddress": intent.from_address,
            "toAddress": intent.recipient,
            "slippage": str(bps_to_fraction(intent.slippage_bps)),
            "integrator": self.integrator,
            "allowSwitchChain": "true",
        }
        if self.integrator_fee:
            params["fee"] = self.integrator_fee

        data = await self._get_json(f"{self.api_base}/quote", params=params)

        estimate = data["estimate"]
        gas_costs = estimate.get("gasCosts") or []
        tx = data.get("transactionRequest") or {}

        path = []
        for step in data.get("includedSteps") or []:
            action = step.get("action") or {}
            path.append((action.get("fromToken") or {}).get("address"))
            path.append((action.get("toToken") or {}).get("address"))

        return self._build_quote(
            intent,
            estimate["toAmount"],
            minimum_received=estimate.get("toAmountMin"),
            price_impact=None,
            estimated_gas=gas_costs[0].get("estimate") if gas_costs else None,
            path=path,
            transaction={
                "to": tx.get("to"),
                "data": tx.get("data"),
                "value": tx.get("value"),
                "gas_limit": tx.get("gasLimit"),
                "from": tx.get("from") or intent.from_address,
            } if tx else None,
        )
