"""TTL memoization for externally fetched data (prices, market data, coin lists).

Cache entries live in the PersistentStore under `cache_<key>` and carry their
own `cachedAt` timestamp. A read applies two independent checks: the store's
envelope expiry (set from `ttl` at write time) and the caller's `max_age`
window, which may be shorter than the ttl the entry was written with.

Usage:
    from cryptohub.storage.cache import CacheLayer, CacheNamespace, cache_key

    cache = CacheLayer(store)
    key = cache_key(CacheNamespace.PRICE, "bitcoin")
    price = cache.get(key, max_age=60_000)
    if price is None:
        price = fetch_price("bitcoin")  # caller's responsibility
        cache.set(key, price, ttl=300_000)
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Any, Callable, Optional

from cryptohub.storage.store import PersistentStore, is_epoch_ms
from cryptohub.types import StorageKey

logger = logging.getLogger(__name__)

CACHE_PREFIX = "cache_"
DEFAULT_MAX_AGE_MS = 300_000


class CacheNamespace(str, Enum):
    """Reserved groups of cached fetch results."""

    PRICE = StorageKey.PRICE_CACHE.value
    MARKET_DATA = StorageKey.MARKET_DATA_CACHE.value
    COIN_LIST = StorageKey.COIN_LIST_CACHE.value


def cache_key(namespace: CacheNamespace, suffix: str = "") -> str:
    """Compose a logical cache key, e.g. 'price_cache:bitcoin'."""
    return f"{namespace.value}:{suffix}" if suffix else namespace.value


class CacheLayer:
    """Freshness-checked facade over PersistentStore."""

    def __init__(self, store: PersistentStore, *, default_max_age: int = DEFAULT_MAX_AGE_MS) -> None:
        self._store = store
        self._default_max_age = default_max_age

    def _store_key(self, key: str) -> str:
        return f"{CACHE_PREFIX}{key}"

    def _cache_keys(self) -> list[str]:
        """Logical cache keys (without the cache_ prefix)."""
        return [k[len(CACHE_PREFIX) :] for k in self._store.keys() if k.startswith(CACHE_PREFIX)]

    def get(self, key: str, max_age: Optional[int] = None) -> Any:
        """Return cached data, or None when absent or older than max_age ms."""
        max_age = self._default_max_age if max_age is None else max_age
        cached = self._store.get(self._store_key(key))
        if cached is None:
            return None

        if not isinstance(cached, dict) or not is_epoch_ms(cached.get("cachedAt")):
            logger.debug(f"Evicting malformed cache entry {key}")
            self._store.remove(self._store_key(key))
            return None

        if self._store.now() - cached["cachedAt"] > max_age:
            logger.debug(f"Evicting stale cache entry {key}")
            self._store.remove(self._store_key(key))
            return None

        return cached.get("data")

    def set(self, key: str, data: Any, ttl: Optional[int] = DEFAULT_MAX_AGE_MS) -> bool:
        return self._store.set(
            self._store_key(key),
            {"data": data, "cachedAt": self._store.now()},
            ttl=ttl,
        )

    def get_or_set(
        self,
        key: str,
        factory: Callable[[], Any],
        *,
        ttl: Optional[int] = DEFAULT_MAX_AGE_MS,
        max_age: Optional[int] = None,
    ) -> Any:
        """Return the cached value, or call factory() and cache its result.

        A None result from factory is returned but not cached.
        """
        cached = self.get(key, max_age=max_age)
        if cached is not None:
            return cached

        data = factory()
        if data is not None and not self.set(key, data, ttl=ttl):
            logger.warning(f"Could not cache {key}; serving uncached value")
        return data

    def invalidate(self, key: str) -> bool:
        return self._store.remove(self._store_key(key))

    def invalidate_pattern(self, pattern: str) -> int:
        """Remove cache entries whose logical key matches a regex.

        Returns:
            Number of entries removed
        """
        regex = re.compile(pattern)
        matched = [k for k in self._cache_keys() if regex.search(k)]
        for key in matched:
            self.invalidate(key)
        return len(matched)

    def invalidate_namespace(self, namespace: CacheNamespace) -> int:
        """Remove every entry of a reserved cache namespace."""
        base = namespace.value
        matched = [k for k in self._cache_keys() if k == base or k.startswith(f"{base}:")]
        for key in matched:
            self.invalidate(key)
        return len(matched)

    def clear_all(self) -> int:
        keys = self._cache_keys()
        for key in keys:
            self.invalidate(key)
        if keys:
            logger.info(f"Cleared {len(keys)} cache entries")
        return len(keys)
