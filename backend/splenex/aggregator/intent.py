"""
Swap intent construction and validation.

Caller errors are detected here, before any provider is contacted.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Optional

from ..core.exceptions import IntentValidationError
from .amounts import normalize_amount_string, percent_to_bps
from .models import DEFAULT_SLIPPAGE_BPS, SwapIntent

logger = logging.getLogger(__name__)

MAX_SLIPPAGE_PERCENT = Decimal(50)


def _require_chain(name: str, value: Any) -> int:
    if value is None or value == "":
        raise IntentValidationError(f"Missing required field: {name}", details={"field": name})
    if isinstance(value, bool):
        raise IntentValidationError(f"{name} must be a positive integer", details={"field": name})
    try:
        chain_id = int(str(value).strip())
    except ValueError:
        raise IntentValidationError(
            f"{name} must be a positive integer", details={"field": name}
        ) from None
    if chain_id <= 0:
        raise IntentValidationError(f"{name} must be a positive integer", details={"field": name})
    return chain_id


def _require_text(name: str, value: Any) -> str:
    if value is None or not str(value).strip():
        raise IntentValidationError(f"Missing required field: {name}", details={"field": name})
    return str(value).strip()


def _optional_decimals(name: str, value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    message = f"{name} must be an integer between 0 and 255"
    if isinstance(value, bool):
        raise IntentValidationError(message, details={"field": name})
    try:
        decimals = int(str(value).strip())
    except ValueError:
        raise IntentValidationError(message, details={"field": name}) from None
    if not 0 <= decimals <= 255:
        raise IntentValidationError(message, details={"field": name})
    return decimals


def build_swap_intent(
    from_chain: Any,
    to_chain: Any,
    from_token: Any,
    to_token: Any,
    from_amount: Any,
    from_address: Any,
    to_address: Optional[Any] = None,
    slippage: Optional[Any] = None,
    from_token_decimals: Optional[Any] = None,
    to_token_decimals: Optional[Any] = None,
    default_slippage_percent: Any = Decimal("0.5"),
    max_slippage_percent: Any = MAX_SLIPPAGE_PERCENT,
) -> SwapIntent:
    """
    Build a validated SwapIntent from raw caller input.

    Args:
        from_chain: Source chain ID
        to_chain: Destination chain ID
        from_token: Source token address
        to_token: Destination token address
        from_amount: Whole amount in smallest units; "1e18" and "1.0" are normalized,
            "1.9" is rejected
        from_address: Initiating wallet
        to_address: Recipient, defaults to from_address
        slippage: Tolerance in percent (0.5 == 0.5%)
        from_token_decimals: Source token decimals, passed to providers that need them
        to_token_decimals: Destination token decimals
        default_slippage_percent: Used when slippage is None
        max_slippage_percent: Upper bound for slippage

    Returns:
        Frozen SwapIntent

    Raises:
        IntentValidationError: On any missing or invalid field
    """
    fields = {
        "from_chain": _require_chain("fromChain", from_chain),
        "to_chain": _require_chain("toChain", to_chain),
        "from_token": _require_text("fromToken", from_token),
        "to_token": _require_text("toToken", to_token),
        "from_address": _require_text("fromAddress", from_address),
    }

    raw_amount = _require_text("fromAmount", from_amount)
    try:
        fields["from_amount"] = normalize_amount_string(raw_amount, allow_fraction=False)
    except ValueError as e:
        raise IntentValidationError(
            f"Invalid fromAmount: {e}", details={"field": "fromAmount"}
        ) from None

    if to_address is not None and str(to_address).strip():
        fields["to_address"] = str(to_address).strip()

    fields["from_token_decimals"] = _optional_decimals("fromTokenDecimals", from_token_decimals)
    fields["to_token_decimals"] = _optional_decimals("toTokenDecimals", to_token_decimals)

    percent = default_slippage_percent if slippage is None or slippage == "" else slippage
    try:
        slippage_bps = percent_to_bps(percent)
    except ValueError as e:
        raise IntentValidationError(str(e), details={"field": "slippage"}) from None
    if slippage_bps < 0 or slippage_bps > percent_to_bps(max_slippage_percent):
        raise IntentValidationError(
            f"slippage must be between 0 and {max_slippage_percent} percent",
            details={"field": "slippage"},
        )
    fields["slippage_bps"] = slippage_bps

    intent = SwapIntent(**fields)
    validate_intent(intent)

    logger.debug(
        "Swap intent built",
        extra={'extra_data': {
            "from_chain": intent.from_chain,
            "to_chain": intent.to_chain,
            "from_amount": intent.from_amount,
            "slippage_bps": intent.slippage_bps,
        }},
    )
    return intent


def validate_intent(intent: SwapIntent) -> None:
    """
    Reject intents that must never reach a provider.

    Raises:
        IntentValidationError: Missing chains, tokens or wallet, or a non-positive amount
    """
    if intent.from_chain <= 0 or intent.to_chain <= 0:
        raise IntentValidationError("Chain IDs must be positive integers")
    for name, value in (
        ("fromToken", intent.from_token),
        ("toToken", intent.to_token),
        ("fromAddress", intent.from_address),
    ):
        if not value:
            raise IntentValidationError(f"Missing required field: {name}", details={"field": name})

    try:
        amount = int(intent.from_amount)
    except (TypeError, ValueError):
        raise IntentValidationError(
            "fromAmount must be an integer string", details={"field": "fromAmount"}
        ) from None
    if amount <= 0:
        raise IntentValidationError(
            "fromAmount must be greater than zero", details={"field": "fromAmount"}
        )

    if not 0 <= intent.slippage_bps <= 10_000:
        raise IntentValidationError("slippage out of range", details={"field": "slippage"})


__all__ = ["DEFAULT_SLIPPAGE_BPS", "build_swap_intent", "validate_intent"]
