"""
Provider adapter contract and shared HTTP plumbing.

Every adapter turns one SwapIntent into one Quote or raises AdapterError.
HttpQuoteProvider maps transport failures, HTTP status codes and payload
parse errors to AdapterError once, so concrete adapters only describe
their vendor's request and response shapes.
"""
from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar, Dict, FrozenSet, Iterable, List, Optional, Tuple

import httpx

from ..aggregator.amounts import apply_slippage, normalize_amount_string, to_decimal
from ..aggregator.models import ExecutionTransaction, Quote, SwapIntent
from ..core.exceptions import AdapterError, FailureReason
from ..core.retry import RetryConfig, call_with_retry

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Splenex-DEX/1.0"

PARSE_ERRORS = (KeyError, IndexError, TypeError, ValueError, InvalidOperation, AttributeError)


def transport_retry_config(max_attempts: int, initial_delay: float = 0.25) -> RetryConfig:
    """Retry policy for vendor calls: only transport errors are retried."""
    return RetryConfig(
        max_attempts=max_attempts,
        initial_delay=initial_delay,
        retryable_exceptions=(httpx.TransportError,),
    )


def normalize_route(
    path: Optional[Iterable[Any]],
    from_token: str,
    to_token: str,
) -> Tuple[str, ...]:
    """
    Collapse a provider path into a deduplicated tuple of token addresses.

    Addresses are compared case-insensitively and the first spelling wins.
    Falls back to (from_token, to_token) when fewer than two usable hops remain.
    """
    route = []
    seen = set()
    for hop in path or ():
        if not isinstance(hop, str) or not hop.strip():
            continue
        key = hop.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        route.append(hop.strip())

    if len(route) < 2:
        return (from_token, to_token)
    return tuple(route)


def collect_path(node: Any, from_key: str, to_key: str) -> List[str]:
    """
    Walk nested lists of hop dicts and return every from/to address in order.

    Handles the list-of-lists-of-hops layouts used by several aggregators.
    """
    path: List[str] = []
    if isinstance(node, dict):
        for key in (from_key, to_key):
            value = node.get(key)
            if isinstance(value, dict):
                value = value.get("address")
            if isinstance(value, str):
                path.append(value)
    elif isinstance(node, list):
        for child in node:
            path.extend(collect_path(child, from_key, to_key))
    return path


def fraction_to_percent(value: Any) -> Decimal:
    """Price impact reported as a fraction (0.012) -> percent (1.2)."""
    return to_decimal(value) * 100


def parse_percent(value: Any) -> Decimal:
    """Price impact reported as a percent, optionally with a trailing '%'."""
    if isinstance(value, str):
        value = value.strip().rstrip("%")
    return to_decimal(value)


class QuoteProvider(ABC):
    """Capability contract for one quote provider."""

    name: ClassVar[str]
    supported_chains: ClassVar[FrozenSet[int]] = frozenset()
    cross_chain: ClassVar[bool] = False
    executable: ClassVar[bool] = True

    def supports(self, intent: SwapIntent) -> bool:
        """Static capability check used before dispatch."""
        if intent.from_chain not in self.supported_chains:
            return False
        if intent.is_cross_chain and not self.cross_chain:
            return False
        return True

    @abstractmethod
    async def quote(self, intent: SwapIntent) -> Quote:
        """
        Fetch and normalize a quote.

        Raises:
            AdapterError: For every expected provider failure
        """

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "supported_chains": sorted(self.supported_chains),
            "cross_chain": self.cross_chain,
            "executable": self.executable,
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class HttpQuoteProvider(QuoteProvider):
    """
    Base for adapters backed by one vendor HTTP API.

    Subclasses implement _fetch_quote and use _get_json/_post_json.
    """

    # Vendor status codes that mean "no route" rather than a failed call
    no_liquidity_statuses: ClassVar[FrozenSet[int]] = frozenset()

    def __init__(
        self,
        client: httpx.AsyncClient,
        retry_config: Optional[RetryConfig] = None,
        request_timeout: Optional[float] = None,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.client = client
        self.retry_config = retry_config or transport_retry_config(1)
        self.request_timeout = request_timeout
        self.user_agent = user_agent

    def default_headers(self) -> Dict[str, str]:
        return {"Accept": "application/json", "User-Agent": self.user_agent}

    async def quote(self, intent: SwapIntent) -> Quote:
        if not self.supports(intent):
            raise AdapterError(
                FailureReason.UNSUPPORTED_CHAIN,
                f"{self.name} does not serve chain {intent.from_chain} -> {intent.to_chain}",
                provider=self.name,
            )

        start_time = time.perf_counter()
        try:
            quote = await self._fetch_quote(intent)
        except AdapterError as e:
            e.provider = e.provider or self.name
            raise
        except PARSE_ERRORS as e:
            logger.warning(
                f"Unrecognised {self.name} payload: {type(e).__name__}: {e}",
                extra={'provider': self.name, 'chain_id': intent.from_chain},
            )
            raise AdapterError(
                FailureReason.MALFORMED_RESPONSE,
                f"Unexpected response shape: {type(e).__name__}",
                provider=self.name,
            ) from e

        logger.debug(
            f"{self.name} quote received",
            extra={
                'provider': self.name,
                'chain_id': intent.from_chain,
                'extra_data': {
                    'to_amount': quote.to_amount,
                    'execution_time_ms': round((time.perf_counter() - start_time) * 1000, 2),
                },
            },
        )
        return quote

    @abstractmethod
    async def _fetch_quote(self, intent: SwapIntent) -> Quote:
        """Call the vendor API and build a Quote."""

    async def _request_json(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        merged_headers = self.default_headers()
        if headers:
            merged_headers.update(headers)

        request_kwargs: Dict[str, Any] = {"params": params, "headers": merged_headers}
        if json is not None:
            request_kwargs["json"] = json
        if self.request_timeout is not None:
            request_kwargs["timeout"] = self.request_timeout

        try:
            response = await call_with_retry(
                self.retry_config, self.client.request, method, url, **request_kwargs
            )
        except httpx.TimeoutException as e:
            raise AdapterError(
                FailureReason.TIMEOUT, f"{self.name} request timed out", provider=self.name
            ) from e
        except httpx.TransportError as e:
            raise AdapterError(
                FailureReason.NETWORK_ERROR,
                f"{self.name} network error: {type(e).__name__}",
                provider=self.name,
            ) from e

        if response.status_code >= 400:
            logger.warning(
                f"{self.name} API error: {response.status_code}",
                extra={
                    'provider': self.name,
                    'extra_data': {'status_code': response.status_code, 'body': response.text[:200]},
                },
            )
            if response.status_code in self.no_liquidity_statuses:
                raise self._no_liquidity(f"HTTP {response.status_code}: no route")
            raise AdapterError(
                FailureReason.HTTP_ERROR,
                f"HTTP {response.status_code}",
                provider=self.name,
            )

        try:
            return response.json()
        except ValueError as e:
            raise AdapterError(
                FailureReason.MALFORMED_RESPONSE,
                f"{self.name} returned invalid JSON",
                provider=self.name,
            ) from e

    async def _get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        return await self._request_json("GET", url, params=params, headers=headers)

    async def _post_json(
        self,
        url: str,
        json: Dict[str, Any],
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        return await self._request_json("POST", url, params=params, json=json, headers=headers)

    def _no_liquidity(self, message: str = "No route found") -> AdapterError:
        return AdapterError(FailureReason.NO_LIQUIDITY, message, provider=self.name)

    def _build_quote(
        self,
        intent: SwapIntent,
        to_amount: Any,
        *,
        minimum_received: Any = None,
        price_impact: Any = None,
        estimated_gas: Any = None,
        path: Optional[Iterable[Any]] = None,
        transaction: Optional[Dict[str, Any]] = None,
    ) -> Quote:
        """
        Assemble a Quote from already-extracted vendor fields.

        minimum_received defaults to to_amount reduced by the intent's slippage.
        Raises ValueError (mapped to malformed_response) on unusable amounts.
        """
        amount = normalize_amount_string(to_amount)
        if minimum_received is None or minimum_received == "":
            minimum = str(apply_slippage(int(amount), intent.slippage_bps))
        else:
            minimum = normalize_amount_string(minimum_received)

        execution = None
        if transaction is not None and transaction.get("to"):
            execution = ExecutionTransaction(
                to=transaction["to"],
                data=transaction.get("data") or "0x",
                value=_int_string(transaction.get("value")) or "0",
                gas_limit=_int_string(transaction.get("gas_limit")),
                sender=transaction.get("from"),
            )

        return Quote(
            provider=self.name,
            to_amount=amount,
            minimum_received=minimum,
            price_impact_percent=abs(to_decimal(price_impact)),
            estimated_gas=_int_string(estimated_gas) or "0",
            route=normalize_route(path, intent.from_token, intent.to_token),
            execution_transaction=execution,
            from_amount=intent.from_amount,
            from_token=intent.from_token,
            to_token=intent.to_token,
            from_chain=intent.from_chain,
            to_chain=intent.to_chain,
        )


def _int_string(value: Any) -> Optional[str]:
    """Decimal or 0x-hex quantity as a base-10 string; None when absent."""
    if value is None or value == "":
        return None
    if isinstance(value, str) and value.lower().startswith("0x"):
        return str(int(value, 16))
    return normalize_amount_string(value)
