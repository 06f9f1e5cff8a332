"""
Shared stubs for quote router tests.

File: backend/tests/helpers.py
"""
from __future__ import annotations

import asyncio
import sys
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable, Optional

sys.path.insert(0, str(Path(__file__).parent.parent))

from splenex.aggregator.models import ExecutionTransaction, Quote, SwapIntent
from splenex.core.exceptions import AdapterError, FailureReason
from splenex.dex.base import QuoteProvider

TOKEN_A = "0xA"
TOKEN_B = "0xB"
WALLET = "0x1"


def make_intent(**overrides: Any) -> SwapIntent:
    fields = {
        "from_chain": 1,
        "to_chain": 1,
        "from_token": TOKEN_A,
        "to_token": TOKEN_B,
        "from_amount": "1000000000000000000",
        "from_address": WALLET,
    }
    fields.update(overrides)
    return SwapIntent(**fields)


def make_quote(
    provider: str,
    to_amount: str,
    minimum_received: Optional[str] = None,
    price_impact: str = "0",
    executable: bool = True,
) -> Quote:
    return Quote(
        provider=provider,
        to_amount=to_amount,
        minimum_received=minimum_received if minimum_received is not None else to_amount,
        price_impact_percent=Decimal(price_impact),
        estimated_gas="21000",
        route=(TOKEN_A, TOKEN_B),
        execution_transaction=ExecutionTransaction(to="0xrouter", data="0x") if executable else None,
    )


class StubProvider(QuoteProvider):
    """Adapter double with scripted behaviour."""

    def __init__(
        self,
        name: str,
        to_amount: Optional[str] = "100",
        *,
        chains: Iterable[int] = (1,),
        cross_chain: bool = False,
        delay: float = 0.0,
        hang: bool = False,
        error: Optional[BaseException] = None,
        result: Any = None,
        price_impact: str = "0",
        executable: bool = True,
    ) -> None:
        self.name = name
        self.supported_chains = frozenset(chains)
        self.cross_chain = cross_chain
        self.to_amount = to_amount
        self.delay = delay
        self.hang = hang
        self.error = error
        self.result = result
        self.price_impact = price_impact
        self.executable = executable
        self.calls = 0
        self.cancelled = False
        self.seen_intents = []

    async def quote(self, intent: SwapIntent) -> Quote:
        self.calls += 1
        self.seen_intents.append(intent)
        try:
            if self.hang:
                await asyncio.Event().wait()
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise

        if self.error is not None:
            raise self.error
        if self.result is not None:
            return self.result
        return make_quote(
            self.name,
            self.to_amount,
            price_impact=self.price_impact,
            executable=self.executable,
        )


class SyncRaisingProvider(StubProvider):
    """Raises before returning an awaitable."""

    def quote(self, intent: SwapIntent):  # type: ignore[override]
        self.calls += 1
        raise RuntimeError(f"{self.name} exploded")


def no_liquidity(name: str) -> AdapterError:
    return AdapterError(FailureReason.NO_LIQUIDITY, "no route", provider=name)


class WalletBoundProvider(StubProvider):
    """Builds calldata that pays the intent's recipient, like real vendors do."""

    async def quote(self, intent: SwapIntent) -> Quote:
        self.calls += 1
        self.seen_intents.append(intent)
        return Quote(
            provider=self.name,
            to_amount=self.to_amount,
            minimum_received=self.to_amount,
            route=(intent.from_token, intent.to_token),
            execution_transaction=ExecutionTransaction(
                to="0xrouter",
                data=f"0xpay:{intent.recipient}",
                sender=intent.from_address,
            ),
        )
