"""
Request and response models for the quote API.

Field names are snake_case in Python and camelCase on the wire.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..aggregator.models import AggregationResult, FailedProvider, Quote


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class QuoteRequestBody(CamelModel):
    """
    Swap quote request.

    Every field is optional here so that missing values surface as
    caller errors with a field name rather than a generic schema failure.
    """

    from_chain: Optional[Union[int, str]] = Field(default=None, description="Source chain ID")
    to_chain: Optional[Union[int, str]] = Field(default=None, description="Destination chain ID")
    from_token: Optional[str] = Field(default=None, description="Source token address")
    to_token: Optional[str] = Field(default=None, description="Destination token address")
    from_amount: Optional[Union[str, int]] = Field(default=None, description="Amount in smallest units")
    from_address: Optional[str] = Field(default=None, description="Initiating wallet")
    to_address: Optional[str] = Field(default=None, description="Recipient wallet")
    slippage: Optional[Decimal] = Field(default=None, description="Slippage tolerance percentage")
    from_token_decimals: Optional[Union[int, str]] = Field(default=None, description="Source token decimals")
    to_token_decimals: Optional[Union[int, str]] = Field(default=None, description="Destination token decimals")
    require_executable: bool = Field(default=False, description="Only select executable quotes")


class ExecutionTransactionView(CamelModel):
    to: str
    data: str
    value: str
    gas_limit: Optional[str] = None
    sender: Optional[str] = Field(default=None, serialization_alias="from")


class QuoteView(CamelModel):
    """Wire representation of a normalized quote."""

    provider: str
    to_amount: str
    minimum_received: str
    price_impact_percent: str
    estimated_gas: str
    route: List[str]
    execution_transaction: Optional[ExecutionTransactionView] = None
    from_amount: Optional[str] = None
    from_token: Optional[str] = None
    to_token: Optional[str] = None
    from_chain: Optional[int] = None
    to_chain: Optional[int] = None

    @classmethod
    def from_quote(cls, quote: Quote) -> "QuoteView":
        tx = quote.execution_transaction
        return cls(
            provider=quote.provider,
            to_amount=quote.to_amount,
            minimum_received=quote.minimum_received,
            price_impact_percent=format(quote.price_impact_percent.normalize(), "f"),
            estimated_gas=quote.estimated_gas,
            route=list(quote.route),
            execution_transaction=ExecutionTransactionView(
                to=tx.to,
                data=tx.data,
                value=tx.value,
                gas_limit=tx.gas_limit,
                sender=tx.sender,
            ) if tx is not None else None,
            from_amount=quote.from_amount,
            from_token=quote.from_token,
            to_token=quote.to_token,
            from_chain=quote.from_chain,
            to_chain=quote.to_chain,
        )


class FailedProviderView(CamelModel):
    provider: str
    reason: str
    message: str

    @classmethod
    def from_failure(cls, failure: FailedProvider) -> "FailedProviderView":
        return cls(provider=failure.provider, reason=failure.reason.value, message=failure.message)


class MultiQuoteResponse(CamelModel):
    """Aggregated quote envelope."""

    success: bool
    data: Optional[QuoteView] = None
    all_quotes: List[QuoteView] = Field(default_factory=list)
    provider: Optional[str] = None
    total_providers: int = 0
    failed_providers: List[FailedProviderView] = Field(default_factory=list)
    cached: bool = False
    error: Optional[str] = None

    @classmethod
    def from_result(cls, result: AggregationResult, error: Optional[str] = None) -> "MultiQuoteResponse":
        best = result.best
        return cls(
            success=best is not None,
            data=QuoteView.from_quote(best) if best is not None else None,
            all_quotes=[QuoteView.from_quote(quote) for quote in result.quotes],
            provider=best.provider if best is not None else None,
            total_providers=result.total_providers,
            failed_providers=[FailedProviderView.from_failure(f) for f in result.failed_providers],
            cached=result.cached,
            error=error,
        )


class ParallelRoutesResponse(CamelModel):
    """Same content as MultiQuoteResponse under the parallel-routes names."""

    success: bool
    best_route: Optional[QuoteView] = None
    all_routes: List[QuoteView] = Field(default_factory=list)
    provider: Optional[str] = None
    total_providers: int = 0
    failed_providers: List[FailedProviderView] = Field(default_factory=list)
    cached: bool = False
    error: Optional[str] = None

    @classmethod
    def from_result(cls, result: AggregationResult, error: Optional[str] = None) -> "ParallelRoutesResponse":
        envelope = MultiQuoteResponse.from_result(result, error)
        return cls(
            success=envelope.success,
            best_route=envelope.data,
            all_routes=envelope.all_quotes,
            provider=envelope.provider,
            total_providers=envelope.total_providers,
            failed_providers=envelope.failed_providers,
            cached=envelope.cached,
            error=envelope.error,
        )


class ProviderInfo(CamelModel):
    name: str
    supported_chains: List[int]
    cross_chain: bool
    executable: bool
    preference_rank: Optional[int] = None


class ProvidersResponse(CamelModel):
    success: bool = True
    providers: List[ProviderInfo]


class CacheClearResponse(CamelModel):
    success: bool = True
    removed: int


class HealthResponse(CamelModel):
    status: str
    service: str
    version: str
    environment: str
    providers: int
    cache: Dict[str, Any]
