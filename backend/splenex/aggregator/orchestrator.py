"""
Parallel quote orchestrator.

Fans one SwapIntent out to every eligible provider at once, bounds each
provider by its own timeout and the whole run by an overall budget, and
collects every outcome into one slot per provider. A failing or hanging
provider never blocks or cancels its siblings.
"""
from __future__ import annotations

import asyncio
import inspect
import itertools
import logging
import time
from typing import Iterator, List, Optional, Sequence

from ..core.exceptions import (
    AdapterError,
    AggregationTimeoutError,
    FailureReason,
    QuoteContractError,
    UnsupportedRouteError,
)
from ..dex.base import QuoteProvider
from .intent import validate_intent
from .models import AggregationState, FailedProvider, ProviderOutcome, Quote, SwapIntent

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER_TIMEOUT = 8.0
DEFAULT_AGGREGATION_TIMEOUT = 12.0


def _consume_result(task: "asyncio.Future") -> None:
    """Mark an abandoned task's exception as retrieved."""
    if not task.cancelled():
        task.exception()


class QuoteOrchestrator:
    """
    Concurrent fan-out over a fixed, ordered set of providers.

    Orchestration never retries: a failed provider is reported, not re-run.
    """

    def __init__(
        self,
        providers: Sequence[QuoteProvider],
        provider_timeout: float = DEFAULT_PROVIDER_TIMEOUT,
        aggregation_timeout: float = DEFAULT_AGGREGATION_TIMEOUT,
    ) -> None:
        if provider_timeout <= 0 or aggregation_timeout <= 0:
            raise ValueError("Timeouts must be positive")
        if aggregation_timeout < provider_timeout:
            raise ValueError("aggregation_timeout must be >= provider_timeout")
        self.providers = tuple(providers)
        self.provider_timeout = provider_timeout
        self.aggregation_timeout = aggregation_timeout

    def eligible_providers(
        self,
        intent: SwapIntent,
        providers: Optional[Sequence[QuoteProvider]] = None,
    ) -> List[QuoteProvider]:
        candidates = self.providers if providers is None else providers
        return [provider for provider in candidates if provider.supports(intent)]

    async def collect(
        self,
        intent: SwapIntent,
        providers: Optional[Sequence[QuoteProvider]] = None,
    ) -> List[ProviderOutcome]:
        """
        Run every eligible provider and return one outcome per provider.

        Args:
            intent: Swap to price
            providers: Restrict the run to these providers (defaults to all)

        Returns:
            Outcomes in provider order, each stamped with a completion sequence

        Raises:
            IntentValidationError: Invalid intent; nothing is dispatched
            UnsupportedRouteError: No provider serves the chain pair
            AggregationTimeoutError: Overall budget exhausted
            QuoteContractError: A provider returned something other than a Quote
        """
        state = AggregationState.CREATED
        validate_intent(intent)

        eligible = self.eligible_providers(intent, providers)
        if not eligible:
            logger.info(
                "No provider supports the requested route",
                extra={
                    'phase': state.value,
                    'chain_id': intent.from_chain,
                    'extra_data': {'to_chain': intent.to_chain},
                },
            )
            raise UnsupportedRouteError(
                f"No configured provider supports chain {intent.from_chain} -> {intent.to_chain}",
                details={"from_chain": intent.from_chain, "to_chain": intent.to_chain},
            )

        slots = [ProviderOutcome(provider=provider.name) for provider in eligible]
        sequence = itertools.count()
        start_time = time.perf_counter()

        tasks = [
            asyncio.create_task(
                self._run_provider(provider, intent, slot, sequence),
                name=f"quote:{provider.name}",
            )
            for provider, slot in zip(eligible, slots)
        ]
        state = AggregationState.DISPATCHED
        logger.info(
            f"Dispatched quote requests to {len(tasks)} providers",
            extra={
                'phase': state.value,
                'chain_id': intent.from_chain,
                'extra_data': {'providers': [slot.provider for slot in slots]},
            },
        )

        state = AggregationState.COLLECTING
        try:
            _, pending = await asyncio.wait(tasks, timeout=self.aggregation_timeout)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            logger.info(
                "Aggregation cancelled by caller",
                extra={'phase': state.value},
            )
            raise

        if pending:
            for task in pending:
                task.cancel()
                task.add_done_callback(_consume_result)
            unfinished = sorted(slot.provider for slot in slots if slot.sequence is None)
            logger.warning(
                "Aggregation timed out",
                extra={
                    'phase': state.value,
                    'extra_data': {
                        'aggregation_timeout': self.aggregation_timeout,
                        'unfinished_providers': unfinished,
                    },
                },
            )
            raise AggregationTimeoutError(
                f"Quote aggregation exceeded {self.aggregation_timeout}s",
                details={"unfinished_providers": unfinished},
            )

        violations = [slot for slot in slots if slot.contract_violation]
        if violations:
            logger.error(
                "Provider broke the quote contract",
                extra={
                    'phase': state.value,
                    'extra_data': {
                        'violations': {slot.provider: slot.contract_violation for slot in violations},
                    },
                },
            )
            raise QuoteContractError(
                "Provider returned an invalid quote: "
                + ", ".join(f"{slot.provider} ({slot.contract_violation})" for slot in violations),
                details={"providers": [slot.provider for slot in violations]},
            )

        state = AggregationState.COMPLETED
        logger.info(
            "Aggregation completed",
            extra={
                'phase': state.value,
                'extra_data': {
                    'quotes': sum(1 for slot in slots if slot.quote is not None),
                    'failures': sum(1 for slot in slots if slot.failure is not None),
                    'execution_time_ms': round((time.perf_counter() - start_time) * 1000, 2),
                },
            },
        )
        return slots

    async def _run_provider(
        self,
        provider: QuoteProvider,
        intent: SwapIntent,
        slot: ProviderOutcome,
        sequence: Iterator[int],
    ) -> None:
        """Fill one slot. Never raises except for cancellation."""
        start_time = time.perf_counter()
        try:
            try:
                call = provider.quote(intent)
            except Exception as e:
                self._record_exception(provider, slot, e)
                return

            if not inspect.isawaitable(call):
                self._record_return(provider, slot, call)
                return

            inner = asyncio.ensure_future(call)
            try:
                done, _ = await asyncio.wait({inner}, timeout=self.provider_timeout)
            except asyncio.CancelledError:
                inner.cancel()
                inner.add_done_callback(_consume_result)
                raise

            if not done:
                inner.cancel()
                inner.add_done_callback(_consume_result)
                slot.failure = FailedProvider(
                    provider=provider.name,
                    reason=FailureReason.TIMEOUT,
                    message=f"No response within {self.provider_timeout}s",
                )
                logger.warning(
                    f"{provider.name} timed out",
                    extra={'provider': provider.name, 'chain_id': intent.from_chain},
                )
                return

            if inner.cancelled():
                slot.failure = FailedProvider(
                    provider=provider.name,
                    reason=FailureReason.ADAPTER_EXCEPTION,
                    message="Provider call was cancelled",
                )
                return

            error = inner.exception()
            if error is not None:
                self._record_exception(provider, slot, error)
            else:
                self._record_return(provider, slot, inner.result())
        finally:
            if not (slot.quote is None and slot.failure is None and slot.contract_violation is None):
                slot.sequence = next(sequence)
                slot.elapsed_ms = round((time.perf_counter() - start_time) * 1000, 2)

    def _record_return(self, provider: QuoteProvider, slot: ProviderOutcome, value: object) -> None:
        if isinstance(value, Quote):
            slot.quote = value
        else:
            slot.contract_violation = f"returned {type(value).__name__}, expected Quote"

    def _record_exception(
        self, provider: QuoteProvider, slot: ProviderOutcome, error: BaseException
    ) -> None:
        if isinstance(error, AdapterError):
            slot.failure = FailedProvider(
                provider=provider.name, reason=error.reason, message=error.message
            )
            logger.info(
                f"{provider.name} failed: {error.reason.value}",
                extra={
                    'provider': provider.name,
                    'extra_data': {'reason': error.reason.value, 'error': error.message},
                },
            )
            return

        slot.failure = FailedProvider(
            provider=provider.name,
            reason=FailureReason.ADAPTER_EXCEPTION,
            message=f"{type(error).__name__}: {error}",
        )
        logger.warning(
            f"{provider.name} raised an unexpected exception",
            extra={'provider': provider.name},
            exc_info=error,
        )
