"""Quote aggregation models.

SwapIntent and Quote are frozen pydantic models shared by every adapter;
aggregation outcomes are plain dataclasses that live for one request.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..core.exceptions import FailureReason
from .amounts import is_integer_string

DEFAULT_SLIPPAGE_BPS = 50


class AggregationState(str, Enum):
    """Lifecycle of a single aggregation run."""
    CREATED = "created"
    DISPATCHED = "dispatched"
    COLLECTING = "collecting"
    COMPLETED = "completed"


class SwapIntent(BaseModel):
    """What the caller wants to swap. Business checks live in intent.validate_intent."""

    model_config = ConfigDict(frozen=True)

    from_chain: int = Field(..., description="Source chain ID")
    to_chain: int = Field(..., description="Destination chain ID")
    from_token: str = Field(..., description="Source token address")
    to_token: str = Field(..., description="Destination token address")
    from_amount: str = Field(..., description="Input amount in smallest units")
    from_address: str = Field(..., description="Initiating wallet address")
    to_address: Optional[str] = Field(default=None, description="Recipient, defaults to from_address")
    slippage_bps: int = Field(default=DEFAULT_SLIPPAGE_BPS, description="Slippage tolerance in basis points")
    from_token_decimals: Optional[int] = Field(default=None, ge=0, le=255, description="Source token decimals, when known")
    to_token_decimals: Optional[int] = Field(default=None, ge=0, le=255, description="Destination token decimals, when known")

    @property
    def recipient(self) -> str:
        return self.to_address or self.from_address

    @property
    def is_cross_chain(self) -> bool:
        return self.from_chain != self.to_chain


class ExecutionTransaction(BaseModel):
    """Opaque transaction a wallet can sign to execute the quote."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    to: str = Field(..., description="Contract to call")
    data: str = Field(..., description="Calldata")
    value: str = Field(default="0", description="Native value in wei")
    gas_limit: Optional[str] = Field(default=None, description="Gas limit suggested by the provider")
    sender: Optional[str] = Field(default=None, alias="from", description="Expected sender")

    @field_validator("value", "gas_limit", mode="before")
    @classmethod
    def stringify_numbers(cls, v: Any) -> Any:
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        raise ValueError("value and gas_limit must be strings or integers")

    @field_validator("to")
    @classmethod
    def require_target(cls, v: str) -> str:
        if not v:
            raise ValueError("Transaction target is empty")
        return v


class Quote(BaseModel):
    """Normalized quote produced by one provider adapter."""

    model_config = ConfigDict(frozen=True)

    provider: str = Field(..., description="Provider that produced the quote")
    to_amount: str = Field(..., description="Expected output in smallest units")
    minimum_received: str = Field(..., description="Worst-case output after slippage")
    price_impact_percent: Decimal = Field(default=Decimal(0), description="Estimated price impact percentage")
    estimated_gas: str = Field(default="0", description="Gas estimate, provider-specific units")
    route: Tuple[str, ...] = Field(..., description="Token addresses in hop order")
    execution_transaction: Optional[ExecutionTransaction] = Field(
        default=None, description="Executable transaction, None for pricing-only providers"
    )

    from_amount: Optional[str] = Field(default=None, description="Input amount in smallest units")
    from_token: Optional[str] = Field(default=None, description="Source token address")
    to_token: Optional[str] = Field(default=None, description="Destination token address")
    from_chain: Optional[int] = Field(default=None, description="Source chain ID")
    to_chain: Optional[int] = Field(default=None, description="Destination chain ID")

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        if not v:
            raise ValueError("provider is empty")
        return v

    @field_validator("to_amount", "minimum_received", mode="before")
    @classmethod
    def validate_amount(cls, v: Any) -> str:
        if isinstance(v, int) and not isinstance(v, bool) and v >= 0:
            v = str(v)
        if not is_integer_string(v):
            raise ValueError(f"Amount must be a non-negative integer string, got {v!r}")
        return v

    @field_validator("estimated_gas", mode="before")
    @classmethod
    def stringify_gas(cls, v: Any) -> str:
        if v is None:
            return "0"
        return str(v)

    @field_validator("route")
    @classmethod
    def validate_route(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        if len(v) < 2 or not all(v):
            raise ValueError("route needs at least two non-empty token addresses")
        return v

    @model_validator(mode="after")
    def check_minimum_received(self) -> "Quote":
        if int(self.minimum_received) > int(self.to_amount):
            raise ValueError("minimum_received exceeds to_amount")
        return self

    @property
    def is_executable(self) -> bool:
        return self.execution_transaction is not None

    @property
    def has_liquidity(self) -> bool:
        return self.to_amount != "0"


@dataclass(frozen=True)
class FailedProvider:
    """A provider that produced no quote, and why."""
    provider: str
    reason: FailureReason
    message: str


@dataclass
class ProviderOutcome:
    """Slot holding one adapter's result; filled by its own task only."""
    provider: str
    quote: Optional[Quote] = None
    failure: Optional[FailedProvider] = None
    contract_violation: Optional[str] = None
    sequence: Optional[int] = None
    elapsed_ms: Optional[float] = None


@dataclass
class AggregationResult:
    """Best quote, every alternative in completion order, and every failure."""
    best: Optional[Quote]
    quotes: List[Quote] = field(default_factory=list)
    failed_providers: List[FailedProvider] = field(default_factory=list)
    attempted_providers: List[str] = field(default_factory=list)
    cached: bool = False

    @property
    def success(self) -> bool:
        return self.best is not None

    @property
    def total_providers(self) -> int:
        return len(self.attempted_providers)
