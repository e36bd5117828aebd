"""
in-memory ttl cache shared by the extraction and verification stages.

entries expire `ttl` seconds after insertion. the cache never holds more than
`max_size` entries: inserting a new key into a full cache first evicts the
oldest inserted entry. every read and write happens under one asyncio lock, so
concurrent writers on a full cache each evict exactly one entry.
"""

import asyncio
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from docfact.observability.logger import PipelineStep, get_logger

logger = get_logger(__name__, PipelineStep.CACHE)

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    data: T
    created_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


class TTLCache:
    """bounded key/value store with per-entry expiry"""

    def __init__(
        self,
        max_size: int = 100,
        default_ttl: float = 300.0,
        clock: Callable[[], float] = time.monotonic
    ):
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        if default_ttl <= 0:
            raise ValueError("default_ttl must be positive")

        self.max_size = max_size
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry[Any]]" = OrderedDict()
        self._lock = asyncio.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    async def get(self, key: str) -> Optional[Any]:
        """return the cached value, or None when absent or expired"""
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            if entry.is_expired(self._clock()):
                del self._entries[key]
                self._misses += 1
                logger.debug(f"expired entry dropped: {key}")
                return None

            self._hits += 1
            return entry.data

    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """store `value`; replacing an existing key keeps its insertion slot"""
        ttl = self.default_ttl if ttl is None else ttl
        now = self._clock()

        async with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_size:
                oldest_key, _ = self._entries.popitem(last=False)
                self._evictions += 1
                logger.debug(f"cache full ({self.max_size}), evicted {oldest_key}")

            self._entries[key] = CacheEntry(data=value, created_at=now, expires_at=now + ttl)

    async def has(self, key: str) -> bool:
        return await self.get(key) is not None

    async def delete(self, key: str) -> bool:
        async with self._lock:
            return self._entries.pop(key, None) is not None

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()

    async def clear_expired(self) -> int:
        """drop every expired entry and return how many were removed"""
        async with self._lock:
            now = self._clock()
            expired = [k for k, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]

        if expired:
            logger.debug(f"cleared {len(expired)} expired entries")
        return len(expired)

    async def stats(self) -> Dict[str, Any]:
        async with self._lock:
            now = self._clock()
            expired = sum(1 for entry in self._entries.values() if entry.is_expired(now))
            return {
                "size": len(self._entries),
                "max_size": self.max_size,
                "expired": expired,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }

    def __len__(self) -> int:
        return len(self._entries)
