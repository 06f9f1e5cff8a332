"""
Short-lived in-memory quote cache.

Only results that carry a best quote are stored. A TTL of 0 disables the
cache entirely.
"""
from __future__ import annotations

import dataclasses
import logging
import time
from typing import Callable, Dict, Optional, Tuple

from .models import AggregationResult, SwapIntent

logger = logging.getLogger(__name__)

CacheKey = Tuple[int, int, str, str, str, int, str, str, Optional[int], Optional[int], bool]


class QuoteCache:
    """
    TTL cache keyed by the intent.

    Cached quotes carry transactions built for one sender and recipient, so
    both wallets are part of the key.
    """

    def __init__(
        self,
        ttl_seconds: float = 0.0,
        max_entries: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: Dict[CacheKey, Tuple[float, AggregationResult]] = {}
        self.hits = 0
        self.misses = 0

    @property
    def enabled(self) -> bool:
        return self.ttl_seconds > 0

    @staticmethod
    def key_for(intent: SwapIntent, require_executable: bool = False) -> CacheKey:
        return (
            intent.from_chain,
            intent.to_chain,
            intent.from_token.lower(),
            intent.to_token.lower(),
            intent.from_amount,
            intent.slippage_bps,
            intent.from_address.lower(),
            intent.recipient.lower(),
            intent.from_token_decimals,
            intent.to_token_decimals,
            require_executable,
        )

    def get(self, key: CacheKey) -> Optional[AggregationResult]:
        """Return a cached result flagged cached=True, or None."""
        if not self.enabled:
            return None

        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None

        stored_at, result = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            del self._entries[key]
            self.misses += 1
            return None

        self.hits += 1
        return dataclasses.replace(result, cached=True)

    def set(self, key: CacheKey, result: AggregationResult) -> None:
        if not self.enabled or result.best is None:
            return

        self._entries[key] = (self._clock(), dataclasses.replace(result, cached=False))
        if len(self._entries) > self.max_entries:
            self._evict()

    def clear(self) -> int:
        """Drop every entry and return how many were removed."""
        removed = len(self._entries)
        self._entries.clear()
        logger.info("Quote cache cleared", extra={'extra_data': {'removed': removed}})
        return removed

    def stats(self) -> Dict[str, object]:
        return {
            "enabled": self.enabled,
            "size": len(self._entries),
            "max_entries": self.max_entries,
            "ttl_seconds": self.ttl_seconds,
            "hits": self.hits,
            "misses": self.misses,
        }

    def _evict(self) -> None:
        now = self._clock()
        expired = [
            key for key, (stored_at, _) in self._entries.items()
            if now - stored_at >= self.ttl_seconds
        ]
        for key in expired:
            del self._entries[key]

        # Still full: drop the oldest entries
        overflow = len(self._entries) - self.max_entries
        if overflow > 0:
            oldest = sorted(self._entries, key=lambda k: self._entries[k][0])[:overflow]
            for key in oldest:
                del self._entries[key]

        logger.debug(
            "Quote cache cleanup",
            extra={'extra_data': {'expired': len(expired), 'size': len(self._entries)}},
        )

    def __len__(self) -> int:
        return len(self._entries)
