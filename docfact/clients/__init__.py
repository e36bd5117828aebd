from .ttl_cache import CacheEntry, TTLCache
from .cache_keys import (
    SCHEMA_VERSION,
    extraction_key,
    normalize_query,
    normalize_whitespace,
    search_key,
    verification_key,
)

__all__ = [
    "CacheEntry",
    "TTLCache",
    "SCHEMA_VERSION",
    "extraction_key",
    "normalize_query",
    "normalize_whitespace",
    "search_key",
    "verification_key",
]
