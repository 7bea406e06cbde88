"""Git cache layout, inventory and eviction."""

from skilo.cache.evict import EvictionResult, Evictor, FullEvictionResult
from skilo.cache.names import checkout_name, mirror_name, parse_owner_repo
from skilo.cache.paths import CachePaths, cache_root, is_offline
from skilo.cache.store import CacheStats, CacheStore, format_age, format_size

__all__ = [
    # Paths
    "CachePaths",
    "cache_root",
    "is_offline",
    # Names
    "checkout_name",
    "mirror_name",
    "parse_owner_repo",
    # Inventory
    "CacheStats",
    "CacheStore",
    "format_age",
    "format_size",
    # Eviction
    "EvictionResult",
    "Evictor",
    "FullEvictionResult",
]
