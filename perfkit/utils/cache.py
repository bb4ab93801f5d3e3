"""Memoizing caches for expensive, pure function calls.

This module wraps :mod:`cachetools` containers behind two memoizers:

- :class:`ExpiringCache` keeps a small FIFO of results that go stale after a
  fixed age. Stale entries are only replaced when the same arguments are
  requested again or when capacity pushes them out.
- :class:`BoundedLRUCache` keeps results without any age limit and evicts
  the least recently used entry once it is full.

Both derive their keys with :func:`perfkit.utils.keys.make_key`, so
arguments must be JSON-like (see :class:`~perfkit.utils.keys.SerializationError`).
"""

from __future__ import annotations

import functools
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from cachetools import FIFOCache, LRUCache  # type: ignore[import-untyped]

from ..config.models import ExpiringCacheConfig, LRUCacheConfig, resolve_config
from .keys import make_key

logger = logging.getLogger(__name__)

V = TypeVar("V")


@dataclass
class CacheEntry(Generic[V]):
    """Cached result with the time it was computed."""

    key: str
    value: V
    timestamp: float


class _EvictionLogging:  # pylint: disable=too-few-public-methods
    """Mixin counting and logging capacity evictions of a cachetools cache."""

    evictions = 0
    cache_name = "cache"

    def popitem(self):
        key, value = super().popitem()  # type: ignore[misc]
        self.evictions += 1
        logger.debug(f"{self.cache_name}.evicted", extra={"key": key})
        return key, value


class _FIFOEntries(_EvictionLogging, FIFOCache):
    cache_name = "expiring_cache"


class _LRUEntries(_EvictionLogging, LRUCache):
    cache_name = "lru_cache"


class _Memoizer(ABC, Generic[V]):
    """Shared call plumbing and hit/miss accounting."""

    def __init__(self, func: Callable[..., V]) -> None:
        functools.update_wrapper(self, func)  # type: ignore[arg-type]
        self._func = func
        self.hits = 0
        self.misses = 0

    def __call__(self, *args: Any, **kwargs: Any) -> V:
        return self.get(*args, **kwargs)

    @abstractmethod
    def get(self, *args: Any, **kwargs: Any) -> V:
        """Return the result for these arguments, from the cache if possible."""

    def _stats(self, size: int, maxsize: int, evictions: int) -> Dict[str, Any]:
        total = self.hits + self.misses
        return {
            "size": size,
            "max_size": maxsize,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": evictions,
            "hit_rate": self.hits / total if total else 0.0,
        }


class ExpiringCache(_Memoizer[V]):
    """Memoize ``func`` for a limited time, keeping at most ``max_size`` results.

    Parameters
    ----------
    func: Callable
        Pure function whose results are cached.
    config: ExpiringCacheConfig, optional
        Expiry and capacity options. Keyword overrides take precedence.
    expiry_time_ms: float, optional
        Age in milliseconds at which a cached result is recomputed.
    max_size: int, optional
        Capacity. On overflow the earliest inserted entry is evicted, whether
        or not it is the oldest by timestamp.
    clock: Callable[[], float], optional
        Monotonic seconds source. Defaults to :func:`time.monotonic`.
    """

    def __init__(
        self,
        func: Callable[..., V],
        config: Optional[ExpiringCacheConfig] = None,
        *,
        expiry_time_ms: Optional[float] = None,
        max_size: Optional[int] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        super().__init__(func)
        self.config = resolve_config(
            ExpiringCacheConfig,
            config,
            expiry_time_ms=expiry_time_ms,
            max_size=max_size,
        )
        self._expiry = self.config.expiry_time_ms / 1000.0
        self._clock = clock or time.monotonic
        self._entries: _FIFOEntries = _FIFOEntries(maxsize=self.config.max_size)

    def get(self, *args: Any, **kwargs: Any) -> V:
        """Return the cached result for these arguments, computing it if stale.

        Raises
        ------
        SerializationError
            If the arguments cannot be turned into a cache key.
        """
        key = make_key(args, kwargs)
        entry = self._entries.get(key)
        if entry is not None and self._clock() - entry.timestamp < self._expiry:
            self.hits += 1
            return entry.value

        self.misses += 1
        result = self._func(*args, **kwargs)
        now = self._clock()
        current = self._entries.get(key)
        if current is not None:
            # Refreshing keeps the key's original place in the eviction order.
            current.value = result
            current.timestamp = now
        else:
            self._entries[key] = CacheEntry(key=key, value=result, timestamp=now)
        return result

    def is_cached(self, *args: Any, **kwargs: Any) -> bool:
        """Return True if a fresh result is held for these arguments."""
        entry = self._entries.get(make_key(args, kwargs))
        return entry is not None and self._clock() - entry.timestamp < self._expiry

    def clear(self) -> None:
        """Drop every entry and reset counters."""
        self._entries.clear()
        self._entries.evictions = 0
        self.hits = 0
        self.misses = 0

    def stats(self) -> Dict[str, Any]:
        """Return size, capacity and hit/miss counters."""
        return self._stats(
            len(self._entries), self.config.max_size, self._entries.evictions
        )

    def __len__(self) -> int:
        return len(self._entries)


class BoundedLRUCache(_Memoizer[V]):
    """Memoize ``func`` without expiry, evicting the least recently used result.

    Both lookups and insertions count as use. When the cache already holds
    ``max_cache_size`` results, a miss evicts exactly one entry before the
    new result is stored.
    """

    def __init__(
        self,
        func: Callable[..., V],
        config: Optional[LRUCacheConfig] = None,
        *,
        max_cache_size: Optional[int] = None,
    ) -> None:
        super().__init__(func)
        self.config = resolve_config(
            LRUCacheConfig, config, max_cache_size=max_cache_size
        )
        self._entries: _LRUEntries = _LRUEntries(maxsize=self.config.max_cache_size)

    def get(self, *args: Any, **kwargs: Any) -> V:
        """Return the cached result for these arguments, computing it on a miss."""
        key = make_key(args, kwargs)
        try:
            value = self._entries[key]
        except KeyError:
            pass
        else:
            self.hits += 1
            return value

        self.misses += 1
        result = self._func(*args, **kwargs)
        self._entries[key] = result
        return result

    def is_cached(self, *args: Any, **kwargs: Any) -> bool:
        """Return True if a result is held. Does not change recency."""
        return make_key(args, kwargs) in self._entries

    def clear(self) -> None:
        """Drop every entry and reset counters."""
        self._entries.clear()
        self._entries.evictions = 0
        self.hits = 0
        self.misses = 0

    def stats(self) -> Dict[str, Any]:
        """Return size, capacity and hit/miss counters."""
        return self._stats(
            len(self._entries), self.config.max_cache_size, self._entries.evictions
        )

    def __len__(self) -> int:
        return len(self._entries)


def memoize_with_expiry(
    func: Callable[..., V],
    expiry_time_ms: float = 5000,
    max_size: int = 10,
    clock: Optional[Callable[[], float]] = None,
) -> ExpiringCache[V]:
    """Wrap ``func`` in an :class:`ExpiringCache`."""
    return ExpiringCache(
        func, expiry_time_ms=expiry_time_ms, max_size=max_size, clock=clock
    )


def deep_memoize(func: Callable[..., V], max_cache_size: int = 50) -> BoundedLRUCache[V]:
    """Wrap ``func`` in a :class:`BoundedLRUCache`."""
    return BoundedLRUCache(func, max_cache_size=max_cache_size)
