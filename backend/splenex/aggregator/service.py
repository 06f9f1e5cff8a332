"""
Quote aggregation service.

validate -> cache lookup -> orchestrate -> select -> assemble -> cache store.
"""
from __future__ import annotations

import logging
from typing import Optional

from ..core.settings import Settings
from ..dex import ProviderRegistry
from .assembler import assemble_result
from .cache import QuoteCache
from .intent import validate_intent
from .models import AggregationResult, SwapIntent
from .orchestrator import QuoteOrchestrator
from .selector import RouteSelector

logger = logging.getLogger(__name__)


class QuoteAggregator:
    """Facade used by the HTTP layer."""

    def __init__(
        self,
        registry: ProviderRegistry,
        selector: Optional[RouteSelector] = None,
        cache: Optional[QuoteCache] = None,
        provider_timeout: float = 8.0,
        aggregation_timeout: float = 12.0,
    ) -> None:
        self.registry = registry
        self.selector = selector or RouteSelector(registry.names)
        self.cache = cache if cache is not None else QuoteCache(ttl_seconds=0)
        self.orchestrator = QuoteOrchestrator(
            registry.providers,
            provider_timeout=provider_timeout,
            aggregation_timeout=aggregation_timeout,
        )

    @classmethod
    def from_settings(
        cls,
        registry: ProviderRegistry,
        settings: Settings,
        cache: Optional[QuoteCache] = None,
    ) -> "QuoteAggregator":
        if cache is None:
            cache = QuoteCache(
                ttl_seconds=settings.quote_cache_ttl_seconds,
                max_entries=settings.quote_cache_max_entries,
            )
        return cls(
            registry,
            selector=RouteSelector(settings.provider_preference),
            cache=cache,
            provider_timeout=settings.provider_timeout_seconds,
            aggregation_timeout=settings.aggregation_timeout_seconds,
        )

    async def aggregate(
        self, intent: SwapIntent, require_executable: bool = False
    ) -> AggregationResult:
        """
        Quote the intent across every eligible provider.

        Returns an AggregationResult whose best is None when no provider
        produced a usable quote.
        """
        validate_intent(intent)

        cache_key = self.cache.key_for(intent, require_executable)
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.info(
                "Serving cached aggregation",
                extra={'chain_id': intent.from_chain, 'provider': cached.best.provider if cached.best else None},
            )
            return cached

        outcomes = await self.orchestrator.collect(intent)
        quotes = [outcome.quote for outcome in outcomes if outcome.quote is not None]
        best = self.selector.select(quotes, require_executable)
        result = assemble_result(outcomes, best)

        self.cache.set(cache_key, result)
        return result

    async def quote_from_provider(
        self,
        provider_name: str,
        intent: SwapIntent,
        require_executable: bool = False,
    ) -> AggregationResult:
        """
        Quote the intent with a single named provider.

        Raises:
            UnknownProviderError: provider_name is not registered
        """
        provider = self.registry.get(provider_name)
        validate_intent(intent)

        outcomes = await self.orchestrator.collect(intent, providers=[provider])
        quotes = [outcome.quote for outcome in outcomes if outcome.quote is not None]
        best = self.selector.select(quotes, require_executable)
        return assemble_result(outcomes, best)
