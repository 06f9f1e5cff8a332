"""Custom exceptions for the quote router."""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Any, Dict, Optional


class FailureReason(str, Enum):
    """Why a single provider produced no quote."""

    TIMEOUT = "timeout"
    HTTP_ERROR = "http_error"
    NETWORK_ERROR = "network_error"
    MALFORMED_RESPONSE = "malformed_response"
    NO_LIQUIDITY = "no_liquidity"
    UNSUPPORTED_CHAIN = "unsupported_chain"
    ADAPTER_EXCEPTION = "adapter_exception"


class SplenexException(Exception):
    """Base exception for the quote router."""

    status_code = 500

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        details: Optional[Dict[str, Any]] = None,
        trace_id: Optional[str] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.trace_id = trace_id or str(uuid.uuid4())
        super().__init__(self.message)


class ConfigurationError(SplenexException):
    """Raised when there's a configuration issue."""

    def __init__(self, message: str, **kwargs: Any):
        kwargs.setdefault("error_code", "CONFIGURATION_ERROR")
        super().__init__(message, **kwargs)


class IntentValidationError(SplenexException):
    """Raised when a swap request is invalid. Nothing is dispatched."""

    status_code = 400

    def __init__(self, message: str, **kwargs: Any):
        kwargs.setdefault("error_code", "INVALID_REQUEST")
        super().__init__(message, **kwargs)


class UnsupportedRouteError(IntentValidationError):
    """Raised when no configured provider can serve the chain pair."""

    def __init__(self, message: str, **kwargs: Any):
        kwargs.setdefault("error_code", "UNSUPPORTED_ROUTE")
        super().__init__(message, **kwargs)


class UnknownProviderError(SplenexException):
    """Raised when a provider name is not in the registry."""

    status_code = 404

    def __init__(self, provider: str, **kwargs: Any):
        kwargs.setdefault("error_code", "UNKNOWN_PROVIDER")
        kwargs.setdefault("details", {"provider": provider})
        super().__init__(f"Provider {provider} is not configured", **kwargs)


class QuoteContractError(SplenexException):
    """Raised when an adapter or caller breaks the Quote contract."""

    def __init__(self, message: str, **kwargs: Any):
        kwargs.setdefault("error_code", "QUOTE_CONTRACT_VIOLATION")
        super().__init__(message, **kwargs)


class AggregationTimeoutError(SplenexException):
    """Raised when the overall aggregation budget is exhausted."""

    status_code = 504

    def __init__(self, message: str, **kwargs: Any):
        kwargs.setdefault("error_code", "AGGREGATION_TIMEOUT")
        super().__init__(message, **kwargs)


class AdapterError(Exception):
    """
    Expected, recoverable failure of a single provider.

    Adapters raise this for every known error condition; the orchestrator
    turns it into a failure entry and never lets it escape.
    """

    def __init__(
        self,
        reason: FailureReason,
        message: str = "",
        provider: Optional[str] = None,
    ):
        self.reason = FailureReason(reason)
        self.message = message or self.reason.value
        self.provider = provider
        super().__init__(f"{self.reason.value}: {self.message}")


def create_safe_error_dict(error: Exception, trace_id: Optional[str]) -> Dict[str, Any]:
    """
    Create a safe error dictionary for logging that doesn't expose sensitive data.

    Args:
        error: Exception object
        trace_id: Trace ID for correlation

    Returns:
        Safe error dictionary for logging
    """
    error_dict: Dict[str, Any] = {
        "error_type": type(error).__name__,
        "error_message": str(error),
        "trace_id": trace_id,
    }

    if isinstance(error, SplenexException):
        error_dict["error_code"] = error.error_code
        error_dict["details"] = error.details
    elif isinstance(error, AdapterError):
        error_dict["reason"] = error.reason.value
        error_dict["provider"] = error.provider

    return error_dict
