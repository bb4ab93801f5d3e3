"""
Tests for the memoizing caches.
"""

import pytest
from pydantic import ValidationError

from perfkit.config.models import ExpiringCacheConfig, LRUCacheConfig
from perfkit.utils.cache import (
    BoundedLRUCache,
    ExpiringCache,
    _Memoizer,
    deep_memoize,
    memoize_with_expiry,
)
from perfkit.utils.keys import SerializationError


class FakeClock:
    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


class CountingFunc:
    """Records every argument tuple it is called with."""

    def __init__(self) -> None:
        self.calls = []

    def __call__(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        return {"args": list(args), "n": len(self.calls)}


# ============================================================================
# ExpiringCache
# ============================================================================


def test_expiring_hit_within_expiry_skips_recompute():
    """A second get within expiry returns the same object without a call."""
    func = CountingFunc()
    clock = FakeClock()
    cache = memoize_with_expiry(func, expiry_time_ms=5000, clock=clock)

    first = cache.get(1, 2)
    clock.now += 4.9
    second = cache.get(1, 2)

    assert second is first
    assert len(func.calls) == 1
    assert cache.stats()["hits"] == 1


def test_expiring_entry_recomputed_after_expiry():
    """An entry as old as the expiry is treated as stale."""
    func = CountingFunc()
    clock = FakeClock()
    cache = ExpiringCache(func, expiry_time_ms=1000, clock=clock)

    cache("x")
    clock.now += 1.0
    assert not cache.is_cached("x")

    result = cache("x")
    assert len(func.calls) == 2
    assert result["n"] == 2
    assert len(cache) == 1


def test_expiring_overflow_evicts_earliest_inserted():
    """Once max_size is exceeded the earliest inserted entry goes first."""
    func = CountingFunc()
    cache = ExpiringCache(func, max_size=3, clock=FakeClock())

    for key in ("k1", "k2", "k3", "k4"):
        cache.get(key)

    assert len(cache) == 3
    assert not cache.is_cached("k1")
    assert all(cache.is_cached(k) for k in ("k2", "k3", "k4"))
    assert cache.stats()["evictions"] == 1


def test_expiring_eviction_ignores_recent_access():
    """Eviction follows insertion order, not access recency."""
    func = CountingFunc()
    cache = ExpiringCache(func, max_size=3, clock=FakeClock())

    cache.get("k1")
    cache.get("k2")
    cache.get("k3")
    cache.get("k1")  # hit; does not refresh k1's position
    cache.get("k4")

    assert not cache.is_cached("k1")
    assert cache.is_cached("k2")


def test_expiring_refreshed_entry_keeps_insertion_slot():
    """Recomputing a stale entry does not move it to the back of the queue."""
    func = CountingFunc()
    clock = FakeClock()
    cache = ExpiringCache(func, expiry_time_ms=1000, max_size=3, clock=clock)

    cache.get("a")
    cache.get("b")
    clock.now += 2.0
    refreshed = cache.get("a")
    cache.get("c")
    cache.get("d")

    assert refreshed["n"] == 3
    assert not cache.is_cached("a")
    assert all(cache.is_cached(k) for k in ("c", "d"))
    assert len(cache) == 3
    assert cache.stats()["evictions"] == 1


def test_expiring_expired_entries_are_not_purged_proactively():
    """Stale entries stay in the cache until replaced or pushed out."""
    clock = FakeClock()
    cache = ExpiringCache(CountingFunc(), expiry_time_ms=10, max_size=5, clock=clock)

    cache.get("a")
    cache.get("b")
    clock.now += 60

    assert len(cache) == 2


def test_expiring_defaults():
    """Defaults are 5000 ms expiry and 10 entries."""
    cache = ExpiringCache(CountingFunc())
    assert cache.config == ExpiringCacheConfig(expiry_time_ms=5000, max_size=10)


def test_expiring_rejects_invalid_size():
    """max_size below 1 is rejected at construction."""
    with pytest.raises(ValidationError):
        ExpiringCache(CountingFunc(), max_size=0)


# ============================================================================
# BoundedLRUCache
# ============================================================================


def test_lru_evicts_first_inserted_when_full():
    """With capacity n, inserting n+1 keys evicts k1."""
    func = CountingFunc()
    cache = deep_memoize(func, max_cache_size=3)

    for key in ("k1", "k2", "k3", "k4"):
        cache.get(key)

    assert len(cache) == 3
    assert not cache.is_cached("k1")
    assert cache.is_cached("k2")


def test_lru_access_protects_entry_from_eviction():
    """Touching k2 before the next insert evicts k3 instead."""
    func = CountingFunc()
    cache = BoundedLRUCache(func, max_cache_size=3)

    for key in ("k1", "k2", "k3", "k4"):
        cache.get(key)
    cache.get("k2")
    cache.get("k5")

    assert cache.is_cached("k2")
    assert not cache.is_cached("k3")
    assert cache.is_cached("k4")
    assert cache.is_cached("k5")


def test_lru_hit_does_not_recompute():
    """Hits return the stored value and never expire."""
    func = CountingFunc()
    cache = BoundedLRUCache(func)

    first = cache.get([1, 2, 3])
    second = cache.get([1, 2, 3])

    assert first is second
    assert len(func.calls) == 1
    assert cache.stats() == {
        "size": 1,
        "max_size": 50,
        "hits": 1,
        "misses": 1,
        "evictions": 0,
        "hit_rate": 0.5,
    }


def test_lru_caches_none_results():
    """A None result is cached like any other value."""
    calls = []

    def returns_none(x):
        calls.append(x)

    cache = BoundedLRUCache(returns_none, LRUCacheConfig(max_cache_size=2))
    assert cache(1) is None
    assert cache(1) is None
    assert calls == [1]


def test_lru_clear_resets_state():
    """clear() empties the cache and counters."""
    cache = BoundedLRUCache(CountingFunc(), max_cache_size=2)
    cache.get("a")
    cache.get("a")
    cache.clear()

    assert len(cache) == 0
    assert cache.stats()["hits"] == 0


# ============================================================================
# Keys
# ============================================================================


def test_equivalent_mappings_share_a_key():
    """Dict key order does not change the cache key."""
    func = CountingFunc()
    cache = BoundedLRUCache(func)

    cache.get({"a": 1, "b": 2})
    cache.get({"b": 2, "a": 1})

    assert len(func.calls) == 1


def test_keyword_and_positional_calls_are_distinct():
    """f(1) and f(x=1) are different calls."""
    cache = BoundedLRUCache(lambda x=None: x)
    cache.get(1)
    cache.get(x=1)
    assert len(cache) == 2


def test_keyword_call_does_not_reuse_positional_result():
    """A keyword call and a look-alike positional call are cached apart."""
    func = CountingFunc()
    cache = BoundedLRUCache(func)

    first = cache.get(1, x=1)
    second = cache.get([1], {"x": 1})

    assert len(func.calls) == 2
    assert first["args"] == [1]
    assert second["args"] == [[1], {"x": 1}]


def test_cyclic_arguments_raise_serialization_error():
    """Cycles cannot be keyed and the wrapped function is not called."""
    func = CountingFunc()
    cache = ExpiringCache(func)
    cyclic = []
    cyclic.append(cyclic)

    with pytest.raises(SerializationError):
        cache.get(cyclic)
    assert func.calls == []


def test_wrapper_keeps_function_metadata():
    """Wrappers expose the wrapped function's name and docstring."""

    def expensive(x):
        """Do expensive work."""
        return x

    cache = deep_memoize(expensive)
    assert cache.__name__ == "expensive"
    assert cache.__doc__ == "Do expensive work."


def test_memoizer_base_requires_get():
    """The shared memoizer base cannot be used without a lookup strategy."""
    with pytest.raises(TypeError):
        _Memoizer(len)
