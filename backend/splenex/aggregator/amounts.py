"""
Token amount helpers.

Amounts travel as decimal strings in the token's smallest unit. Everything
here works on Decimal and int; binary floating point never touches an amount.
"""
from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Any

BPS_DENOMINATOR = 10_000

# Largest value an EVM uint256 can hold
MAX_UINT256 = 2 ** 256 - 1


def normalize_amount_string(value: Any, allow_fraction: bool = True) -> str:
    """
    Normalize an amount into a plain base-10 integer string.

    Accepts ints, plain digit strings, signed strings, decimals ("1.0") and
    scientific notation ("1e18", "1.5E+3"). Fractional smallest-unit digits
    are truncated toward zero unless allow_fraction is False.

    Args:
        value: Raw amount from a caller or provider payload
        allow_fraction: Reject values such as "1.9" instead of truncating

    Returns:
        Integer string such as "1000000000000000000"

    Raises:
        ValueError: If the value is not a finite number, exceeds uint256, or
            has a fractional part while allow_fraction is False
    """
    if isinstance(value, bool):
        raise ValueError("Boolean is not an amount")
    if isinstance(value, int):
        number = value
    else:
        if isinstance(value, float):
            # repr() keeps the shortest round-tripping digits
            text = repr(value)
        elif isinstance(value, (str, Decimal)):
            text = str(value).strip()
        else:
            raise ValueError(f"Unsupported amount type: {type(value).__name__}")

        if not text:
            raise ValueError("Amount is empty")

        try:
            parsed = Decimal(text)
        except InvalidOperation as e:
            raise ValueError(f"Invalid amount: {text!r}") from e

        if not parsed.is_finite():
            raise ValueError(f"Amount must be finite: {text!r}")
        if parsed != 0 and parsed.adjusted() > 77:
            raise ValueError("Amount exceeds uint256 range")

        if not allow_fraction and parsed != parsed.to_integral_value():
            raise ValueError(f"Amount has a fractional part: {text!r}")

        number = int(parsed.to_integral_value(rounding=ROUND_DOWN))

    if abs(number) > MAX_UINT256:
        raise ValueError("Amount exceeds uint256 range")
    return str(number)


def is_integer_string(value: Any) -> bool:
    """True for canonical non-negative base-10 integer strings."""
    return (
        isinstance(value, str)
        and value.isascii()
        and value.isdigit()
        and (value == "0" or not value.startswith("0"))
    )


def apply_slippage(amount: int, slippage_bps: int) -> int:
    """
    Worst-case output after slippage, rounded down.

    Args:
        amount: Expected output in smallest units
        slippage_bps: Tolerance in basis points (0-10000)

    Returns:
        amount * (1 - bps / 10000) in integer arithmetic
    """
    if not 0 <= slippage_bps <= BPS_DENOMINATOR:
        raise ValueError(f"slippage_bps out of range: {slippage_bps}")
    return amount * (BPS_DENOMINATOR - slippage_bps) // BPS_DENOMINATOR


def percent_to_bps(percent: Any) -> int:
    """
    Convert a slippage percentage (0.5 == 0.5%) into basis points.

    Raises:
        ValueError: Not a finite number, or not a whole number of basis points
    """
    try:
        value = Decimal(str(percent))
    except InvalidOperation as e:
        raise ValueError(f"Invalid slippage: {percent!r}") from e
    if not value.is_finite():
        raise ValueError(f"Invalid slippage: {percent!r}")
    bps = value * 100
    if bps != bps.to_integral_value():
        raise ValueError(f"Slippage is finer than one basis point: {percent!r}")
    return int(bps)


def bps_to_percent(slippage_bps: int) -> Decimal:
    """Basis points as a percentage Decimal (50 -> 0.5)."""
    return Decimal(slippage_bps) / 100


def bps_to_fraction(slippage_bps: int) -> Decimal:
    """Basis points as a fraction Decimal (50 -> 0.005)."""
    return Decimal(slippage_bps) / BPS_DENOMINATOR


def to_decimal(value: Any, default: Decimal = Decimal(0)) -> Decimal:
    """Best-effort Decimal for informational fields such as price impact."""
    if value is None or value == "":
        return default
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        return default
    return result if result.is_finite() else default
