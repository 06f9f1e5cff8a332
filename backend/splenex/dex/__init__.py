"""
Quote provider adapters and the provider registry.

The registry is built once at startup from settings and is read-only for
the lifetime of the process.

File: backend/splenex/dex/__init__.py
"""
from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Type

import httpx

from ..core.exceptions import ConfigurationError, UnknownProviderError
from ..core.settings import Settings
from .base import HttpQuoteProvider, QuoteProvider, transport_retry_config
from .kyberswap import KyberSwapAdapter
from .lifi import LiFiAdapter
from .oneinch import OneInchAdapter
from .openocean import OpenOceanAdapter
from .pancakeswap import PancakeSwapAdapter
from .paraswap import ParaSwapAdapter
from .sushiswap import SushiSwapAdapter
from .uniswap_v3 import UniswapV3Adapter
from .zerox import ZeroXAdapter

logger = logging.getLogger(__name__)

ADAPTER_CLASSES: Mapping[str, Type[HttpQuoteProvider]] = MappingProxyType({
    cls.name: cls
    for cls in (
        LiFiAdapter,
        OneInchAdapter,
        ZeroXAdapter,
        ParaSwapAdapter,
        PancakeSwapAdapter,
        KyberSwapAdapter,
        SushiSwapAdapter,
        UniswapV3Adapter,
        OpenOceanAdapter,
    )
})


class ProviderRegistry:
    """Ordered, immutable set of provider adapters keyed by name."""

    def __init__(self, providers: Iterable[QuoteProvider]) -> None:
        adapters: Dict[str, QuoteProvider] = {}
        for provider in providers:
            key = provider.name.lower()
            if key in adapters:
                raise ConfigurationError(f"Duplicate provider: {provider.name}")
            adapters[key] = provider
        self._adapters: Mapping[str, QuoteProvider] = MappingProxyType(adapters)

    @property
    def providers(self) -> Tuple[QuoteProvider, ...]:
        return tuple(self._adapters.values())

    @property
    def names(self) -> List[str]:
        return list(self._adapters.keys())

    def get(self, name: str) -> QuoteProvider:
        """
        Get adapter by provider name.

        Raises:
            UnknownProviderError: name is not registered
        """
        adapter = self._adapters.get((name or "").lower())
        if adapter is None:
            raise UnknownProviderError(name)
        return adapter

    def describe(self, preference: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        """Registry listing with each provider's preference rank (None when unranked)."""
        ranks = {name: index for index, name in enumerate(preference or [])}
        listing = []
        for name, adapter in self._adapters.items():
            entry = adapter.describe()
            entry["preference_rank"] = ranks.get(name)
            listing.append(entry)
        return listing

    def __len__(self) -> int:
        return len(self._adapters)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._adapters


def build_registry(settings: Settings, client: httpx.AsyncClient) -> ProviderRegistry:
    """
    Instantiate the enabled adapters, in enabled_providers order.

    Raises:
        ConfigurationError: An enabled provider name is unknown
    """
    unknown = [name for name in settings.enabled_providers if name not in ADAPTER_CLASSES]
    if unknown:
        raise ConfigurationError(
            f"Unknown providers in enabled_providers: {', '.join(unknown)}",
            details={"known": sorted(ADAPTER_CLASSES)},
        )

    retry_config = transport_retry_config(
        settings.provider_max_attempts, settings.provider_retry_delay_seconds
    )
    common: Dict[str, Any] = {
        "client": client,
        "retry_config": retry_config,
        "request_timeout": settings.provider_timeout_seconds,
        "user_agent": settings.http_user_agent,
    }
    vendor_options: Dict[str, Dict[str, Any]] = {
        LiFiAdapter.name: {
            "api_key": settings.lifi_api_key,
            "integrator": settings.lifi_integrator,
            "integrator_fee": settings.lifi_integrator_fee,
        },
        OneInchAdapter.name: {"api_key": settings.oneinch_api_key},
        ZeroXAdapter.name: {"api_key": settings.zerox_api_key},
    }

    providers = [
        ADAPTER_CLASSES[name](**common, **vendor_options.get(name, {}))
        for name in settings.enabled_providers
    ]
    registry = ProviderRegistry(providers)

    logger.info(
        f"Provider registry initialized with {len(registry)} adapters",
        extra={'extra_data': {
            'providers': registry.names,
            'max_attempts': settings.provider_max_attempts,
        }},
    )
    return registry


__all__ = [
    "ADAPTER_CLASSES",
    "HttpQuoteProvider",
    "ProviderRegistry",
    "QuoteProvider",
    "build_registry",
]
