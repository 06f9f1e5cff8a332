"""
Tests for parallel quote orchestration and the aggregation service.

File: backend/tests/test_orchestrator.py
"""
import asyncio
import sys
import time
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from helpers import (
    StubProvider,
    SyncRaisingProvider,
    WalletBoundProvider,
    make_intent,
    make_quote,
    no_liquidity,
)

from splenex.aggregator.assembler import assemble_result
from splenex.aggregator.cache import QuoteCache
from splenex.aggregator.models import ProviderOutcome
from splenex.aggregator.orchestrator import QuoteOrchestrator
from splenex.aggregator.selector import RouteSelector
from splenex.aggregator.service import QuoteAggregator
from splenex.core.exceptions import (
    AdapterError,
    AggregationTimeoutError,
    FailureReason,
    IntentValidationError,
    QuoteContractError,
    UnknownProviderError,
    UnsupportedRouteError,
)
from splenex.core.settings import Settings
from splenex.dex import ProviderRegistry


class TestQuoteOrchestrator:
    """Fan-out, isolation and timeouts."""

    def test_rejects_bad_timeouts(self):
        with pytest.raises(ValueError):
            QuoteOrchestrator([], provider_timeout=0)
        with pytest.raises(ValueError):
            QuoteOrchestrator([], provider_timeout=5, aggregation_timeout=1)

    @pytest.mark.asyncio
    async def test_partial_failure_is_isolated(self):
        """A raising and a hanging provider do not affect the others."""
        providers = [
            StubProvider("p1", "100"),
            StubProvider("p2", "110"),
            SyncRaisingProvider("p3"),
            StubProvider("p4", hang=True),
            StubProvider("p5", "90"),
        ]
        orchestrator = QuoteOrchestrator(providers, provider_timeout=0.2, aggregation_timeout=2.0)

        started = time.perf_counter()
        outcomes = await orchestrator.collect(make_intent())
        elapsed = time.perf_counter() - started

        assert elapsed < 1.5
        assert [outcome.provider for outcome in outcomes] == ["p1", "p2", "p3", "p4", "p5"]
        by_name = {outcome.provider: outcome for outcome in outcomes}
        assert by_name["p3"].failure.reason == FailureReason.ADAPTER_EXCEPTION
        assert "p3 exploded" in by_name["p3"].failure.message
        assert by_name["p4"].failure.reason == FailureReason.TIMEOUT
        assert {name for name, o in by_name.items() if o.quote is not None} == {"p1", "p2", "p5"}
        assert all(provider.calls == 1 for provider in providers)

        await asyncio.sleep(0.05)
        assert providers[3].cancelled

    @pytest.mark.asyncio
    async def test_every_provider_fails(self):
        providers = [
            StubProvider("p1", error=no_liquidity("p1")),
            StubProvider("p2", error=AdapterError(FailureReason.HTTP_ERROR, "HTTP 502")),
        ]
        outcomes = await QuoteOrchestrator(providers).collect(make_intent())

        assert all(outcome.quote is None for outcome in outcomes)
        assert [outcome.failure.reason for outcome in outcomes] == [
            FailureReason.NO_LIQUIDITY,
            FailureReason.HTTP_ERROR,
        ]
        assert outcomes[1].failure.message == "HTTP 502"

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_adapter_exception(self):
        providers = [StubProvider("p1", error=KeyError("estimate"))]
        outcomes = await QuoteOrchestrator(providers).collect(make_intent())

        assert outcomes[0].failure.reason == FailureReason.ADAPTER_EXCEPTION
        assert outcomes[0].failure.message.startswith("KeyError")

    @pytest.mark.asyncio
    async def test_invalid_intent_dispatches_nothing(self):
        providers = [StubProvider("p1"), StubProvider("p2")]
        with pytest.raises(IntentValidationError):
            await QuoteOrchestrator(providers).collect(make_intent(from_amount="0"))
        assert all(provider.calls == 0 for provider in providers)

    @pytest.mark.asyncio
    async def test_unsupported_route(self):
        providers = [StubProvider("p1", chains=(1,)), StubProvider("p2", chains=(56,))]
        with pytest.raises(UnsupportedRouteError):
            await QuoteOrchestrator(providers).collect(make_intent(from_chain=137, to_chain=137))
        assert all(provider.calls == 0 for provider in providers)

    @pytest.mark.asyncio
    async def test_cross_chain_only_reaches_bridges(self):
        bridge = StubProvider("bridge", chains=(1,), cross_chain=True)
        dex = StubProvider("dex", chains=(1,))
        outcomes = await QuoteOrchestrator([bridge, dex]).collect(make_intent(to_chain=137))

        assert [outcome.provider for outcome in outcomes] == ["bridge"]
        assert dex.calls == 0

    @pytest.mark.asyncio
    async def test_contract_violation_surfaces(self):
        providers = [StubProvider("good"), StubProvider("bad", result={"toAmount": "5"})]
        with pytest.raises(QuoteContractError, match="bad"):
            await QuoteOrchestrator(providers).collect(make_intent())
        assert providers[0].calls == 1

    @pytest.mark.asyncio
    async def test_completion_sequence(self):
        providers = [
            StubProvider("slow", delay=0.15),
            StubProvider("fast"),
            StubProvider("medium", delay=0.05),
        ]
        outcomes = await QuoteOrchestrator(providers).collect(make_intent())

        finished = sorted(outcomes, key=lambda outcome: outcome.sequence)
        assert [outcome.provider for outcome in finished] == ["fast", "medium", "slow"]
        assert all(outcome.elapsed_ms is not None for outcome in outcomes)

    @pytest.mark.asyncio
    async def test_overall_timeout(self):
        providers = [StubProvider("quick"), StubProvider("stuck", hang=True)]
        orchestrator = QuoteOrchestrator(providers, provider_timeout=1.0, aggregation_timeout=1.0)
        # Per-provider bound above the overall budget
        orchestrator.provider_timeout = 5.0
        orchestrator.aggregation_timeout = 0.1

        with pytest.raises(AggregationTimeoutError) as exc_info:
            await orchestrator.collect(make_intent())

        assert exc_info.value.details == {"unfinished_providers": ["stuck"]}
        await asyncio.sleep(0.05)
        assert providers[1].cancelled

    @pytest.mark.asyncio
    async def test_caller_cancellation_cancels_providers(self):
        stuck = StubProvider("stuck", hang=True)
        orchestrator = QuoteOrchestrator([stuck], provider_timeout=5.0, aggregation_timeout=5.0)

        task = asyncio.create_task(orchestrator.collect(make_intent()))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        await asyncio.sleep(0.05)
        assert stuck.cancelled


class TestAssembler:
    """Result assembly ordering."""

    def test_completion_and_registry_order(self):
        first = make_quote("b", "10")
        outcomes = [
            ProviderOutcome(provider="a", quote=make_quote("a", "5"), sequence=2),
            ProviderOutcome(provider="b", quote=first, sequence=0),
            ProviderOutcome(provider="c", failure=None, contract_violation=None, sequence=None),
        ]
        result = assemble_result(outcomes, first)

        assert [quote.provider for quote in result.quotes] == ["b", "a"]
        assert result.attempted_providers == ["a", "b", "c"]
        assert result.total_providers == 3
        assert result.success
        assert not result.cached


class TestQuoteAggregator:
    """End-to-end aggregation with stub adapters."""

    @pytest.fixture
    def providers(self):
        return [
            StubProvider("A", "95"),
            StubProvider("B", "100"),
            StubProvider("C", error=AdapterError(FailureReason.NETWORK_ERROR, "connection reset")),
        ]

    @pytest.fixture
    def aggregator(self, providers):
        return QuoteAggregator(ProviderRegistry(providers), provider_timeout=1.0, aggregation_timeout=2.0)

    @pytest.mark.asyncio
    async def test_best_quote_and_failures(self, aggregator):
        result = await aggregator.aggregate(make_intent())

        assert result.success
        assert result.best.provider == "B"
        assert result.best.to_amount == "100"
        assert sorted(quote.provider for quote in result.quotes) == ["A", "B"]
        assert [failure.provider for failure in result.failed_providers] == ["C"]
        assert result.failed_providers[0].reason == FailureReason.NETWORK_ERROR
        assert result.attempted_providers == ["A", "B", "C"]
        assert result.total_providers == 3

    @pytest.mark.asyncio
    async def test_no_route(self):
        providers = [StubProvider("A", error=no_liquidity("A")), StubProvider("B", "0")]
        aggregator = QuoteAggregator(ProviderRegistry(providers))

        result = await aggregator.aggregate(make_intent())

        assert not result.success
        assert result.best is None
        assert [quote.provider for quote in result.quotes] == ["B"]
        assert len(result.failed_providers) == 1

    @pytest.mark.asyncio
    async def test_default_preference_follows_registry(self):
        providers = [StubProvider("second", "7"), StubProvider("first", "7")]
        result = await QuoteAggregator(ProviderRegistry(providers)).aggregate(make_intent())
        assert result.best.provider == "second"

    @pytest.mark.asyncio
    async def test_explicit_preference(self, providers):
        providers[0].to_amount = "100"
        aggregator = QuoteAggregator(
            ProviderRegistry(providers), selector=RouteSelector(["A", "B"])
        )
        result = await aggregator.aggregate(make_intent())
        assert result.best.provider == "A"

    @pytest.mark.asyncio
    async def test_cache_hit_skips_providers(self, providers):
        aggregator = QuoteAggregator(ProviderRegistry(providers), cache=QuoteCache(ttl_seconds=60))

        first = await aggregator.aggregate(make_intent())
        second = await aggregator.aggregate(make_intent())

        assert not first.cached
        assert second.cached
        assert second.best == first.best
        assert all(provider.calls == 1 for provider in providers)

    @pytest.mark.asyncio
    async def test_cached_transaction_stays_with_its_wallet(self):
        provider = WalletBoundProvider("A")
        aggregator = QuoteAggregator(ProviderRegistry([provider]), cache=QuoteCache(ttl_seconds=60))

        await aggregator.aggregate(make_intent(from_address="0xALICE"))
        bob = await aggregator.aggregate(make_intent(from_address="0xBOB"))
        alice_again = await aggregator.aggregate(make_intent(from_address="0xalice"))

        assert not bob.cached
        assert bob.best.execution_transaction.data == "0xpay:0xBOB"
        assert bob.best.execution_transaction.sender == "0xBOB"
        assert alice_again.cached
        assert alice_again.best.execution_transaction.data == "0xpay:0xALICE"
        assert provider.calls == 2

    @pytest.mark.asyncio
    async def test_cache_respects_recipient(self):
        provider = WalletBoundProvider("A")
        aggregator = QuoteAggregator(ProviderRegistry([provider]), cache=QuoteCache(ttl_seconds=60))

        await aggregator.aggregate(make_intent(from_address="0xALICE"))
        gift = await aggregator.aggregate(make_intent(from_address="0xALICE", to_address="0xCAROL"))

        assert not gift.cached
        assert gift.best.execution_transaction.data == "0xpay:0xCAROL"

    @pytest.mark.asyncio
    async def test_from_settings_keeps_supplied_empty_cache(self, providers):
        cache = QuoteCache(ttl_seconds=60)
        settings = Settings(_env_file=None, quote_cache_ttl_seconds=0)

        aggregator = QuoteAggregator.from_settings(ProviderRegistry(providers), settings, cache=cache)
        await aggregator.aggregate(make_intent())

        assert aggregator.cache is cache
        assert len(cache) == 1

    def test_from_settings_builds_enabled_cache(self, providers):
        settings = Settings(_env_file=None, quote_cache_ttl_seconds=30)

        aggregator = QuoteAggregator.from_settings(ProviderRegistry(providers), settings)

        assert aggregator.cache.enabled
        assert aggregator.cache.ttl_seconds == 30

    @pytest.mark.asyncio
    async def test_single_provider(self, aggregator, providers):
        result = await aggregator.quote_from_provider("A", make_intent())

        assert result.best.provider == "A"
        assert result.attempted_providers == ["A"]
        assert providers[1].calls == 0

    @pytest.mark.asyncio
    async def test_unknown_provider(self, aggregator):
        with pytest.raises(UnknownProviderError):
            await aggregator.quote_from_provider("nope", make_intent())
