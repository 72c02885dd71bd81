"""
Response caching package.

Short-lived, in-process caching of read responses with explicit
namespace invalidation after every write.
"""

from .keys import CacheKeyPolicy
from .response_cache import CacheEntry, ResponseCache, DEFAULT_TTL_MILLIS
from .sweeper import CacheSweeper

__all__ = [
    "CacheEntry",
    "CacheKeyPolicy",
    "CacheSweeper",
    "DEFAULT_TTL_MILLIS",
    "ResponseCache",
]
