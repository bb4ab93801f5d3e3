"""
Client-side performance utilities.

Modules
-------
keys
    Canonical cache keys derived from call arguments
scheduling
    Cancellable deferred callbacks on the running event loop
cache
    Memoizers with expiry (FIFO capacity) or LRU eviction
throttle
    Windowed throttle with a trailing deferred call
debounce
    Trailing, leading and adaptive debounce helpers
batching
    Batched delivery of update events and list chunking
virtualization
    Visible index window for long list rendering
"""

from .batching import BatchCollector, batch_updates, chunk_array
from .cache import BoundedLRUCache, ExpiringCache, deep_memoize, memoize_with_expiry
from .keys import SerializationError, make_key
from .throttle import RateLimiter, throttle_input
from .virtualization import Window, calculate_visible_range

__all__ = [
    "BatchCollector",
    "BoundedLRUCache",
    "ExpiringCache",
    "RateLimiter",
    "SerializationError",
    "Window",
    "batch_updates",
    "calculate_visible_range",
    "chunk_array",
    "deep_memoize",
    "make_key",
    "memoize_with_expiry",
    "throttle_input",
]
