"""
Provider registry listing and quote cache management.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from ..aggregator.service import QuoteAggregator
from .quotes import get_aggregator
from .schemas import CacheClearResponse, ProviderInfo, ProvidersResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["providers"])


@router.get("/providers")
async def list_providers(
    aggregator: QuoteAggregator = Depends(get_aggregator),
) -> dict:
    """Registered providers with their chains and preference rank."""
    preference = list(aggregator.selector.preference)
    providers = [
        ProviderInfo(**entry)
        for entry in aggregator.registry.describe(preference)
    ]
    return ProvidersResponse(providers=providers).to_response()


@router.delete("/quote-cache")
async def clear_quote_cache(
    aggregator: QuoteAggregator = Depends(get_aggregator),
) -> dict:
    """Drop every cached aggregation."""
    removed = aggregator.cache.clear()
    return CacheClearResponse(removed=removed).to_response()
