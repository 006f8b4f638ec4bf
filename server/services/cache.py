"""
ExpiringStore - Async-compatible key-value store with per-entry TTL.

Features:
- Memory-based store with oldest-entry eviction
- TTL (Time To Live) for every entry
- Lazy expiry-on-read: an expired entry is reported once, then removed
- Retention window so expired entries can still be told apart from unknown keys
- Active sweep via cleanup_expired (driven by ExpirySweeper)
- Thread-safe async operations
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Generic, TypeVar

from loguru import logger

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    """A single store entry with metadata."""

    data: T
    timestamp: datetime
    ttl: timedelta
    retain_until: datetime

    @property
    def expires_at(self) -> datetime:
        return self.timestamp + self.ttl

    def is_expired(self) -> bool:
        """Check if entry is past its TTL."""
        return datetime.now() > self.expires_at

    def is_retained(self) -> bool:
        """Check if entry is still kept (not past the retention window)."""
        return datetime.now() <= self.retain_until


@dataclass
class CacheResult(Generic[T]):
    """Result from store lookup."""

    data: T
    expired: bool
    expires_at: datetime


class ExpiringStore:
    """
    Async key-value store with TTL and lazy expiry.

    Usage:
        store = ExpiringStore(prefix="confirm_", max_size=1000)

        await store.put("a@example.com", pending, ttl=timedelta(minutes=10))

        result = await store.get("a@example.com")
        if result is None:
            ...  # never stored, deleted, or past retention
        elif result.expired:
            ...  # past TTL; the entry is now removed
        else:
            use(result.data)
    """

    def __init__(
        self,
        prefix: str = "mama_",
        max_size: int = 1000,
        default_ttl: timedelta = timedelta(minutes=10),
        retention: timedelta = timedelta(0),
        debug: bool = False,
    ):
        self._memory: dict[str, CacheEntry[Any]] = {}
        self._prefix = prefix
        self._max_size = max_size
        self._default_ttl = default_ttl
        self._retention = retention
        self._debug = debug
        self._lock = asyncio.Lock()
        self._stats = CacheStats()

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> CacheResult[Any] | None:
        """
        Get value from the store.

        Returns CacheResult if the key is known, None otherwise. An entry
        past its TTL is returned once with expired=True and removed.
        """
        full_key = self._key(key)
        async with self._lock:
            entry = self._memory.get(full_key)
            if entry is None:
                self._stats.misses += 1
                self._log(f"MISS: {full_key[:50]}")
                return None

            if not entry.is_retained():
                del self._memory[full_key]
                self._stats.misses += 1
                self._log(f"GONE: {full_key[:50]}")
                return None

            if entry.is_expired():
                del self._memory[full_key]
                self._stats.expired_hits += 1
                self._log(f"EXPIRED: {full_key[:50]}")
                return CacheResult(
                    data=entry.data, expired=True, expires_at=entry.expires_at
                )

            self._stats.hits += 1
            self._log(f"HIT: {full_key[:50]}")
            return CacheResult(
                data=entry.data, expired=False, expires_at=entry.expires_at
            )

    async def put(self, key: str, data: Any, ttl: timedelta | None = None) -> None:
        """
        Put value in the store, replacing any existing entry.

        Args:
            key: Store key
            data: Data to store
            ttl: Time to live (uses default if not specified)
        """
        ttl = ttl if ttl is not None else self._default_ttl
        now = datetime.now()

        entry = CacheEntry(
            data=data,
            timestamp=now,
            ttl=ttl,
            retain_until=now + ttl + self._retention,
        )

        full_key = self._key(key)
        async with self._lock:
            if len(self._memory) >= self._max_size and full_key not in self._memory:
                self._evict_oldest()

            self._memory[full_key] = entry
            self._log(f"PUT: {full_key[:50]} (TTL: {ttl.total_seconds()}s)")

    async def delete(self, key: str) -> bool:
        """Delete a specific key from the store."""
        full_key = self._key(key)
        async with self._lock:
            if full_key in self._memory:
                del self._memory[full_key]
                self._log(f"DELETE: {full_key[:50]}")
                return True
            return False

    async def clear(self) -> None:
        """Clear all entries."""
        async with self._lock:
            count = len(self._memory)
            self._memory.clear()
            self._log(f"CLEAR: {count} entries removed")

    async def cleanup_expired(self) -> int:
        """Remove all entries past retention. Returns count of removed entries."""
        async with self._lock:
            expired_keys = [k for k, v in self._memory.items() if not v.is_retained()]
            for key in expired_keys:
                del self._memory[key]

            if expired_keys:
                self._log(f"CLEANUP: {len(expired_keys)} expired entries removed")

            return len(expired_keys)

    def _evict_oldest(self) -> None:
        """Evict the oldest entry. Caller holds the lock."""
        if not self._memory:
            return

        oldest_key = min(
            self._memory.keys(),
            key=lambda k: self._memory[k].timestamp,
        )
        del self._memory[oldest_key]
        self._stats.evictions += 1
        logger.warning(f"[ExpiringStore] Store full, evicted {oldest_key[:50]}")

    def __len__(self) -> int:
        return len(self._memory)

    def get_stats(self) -> "CacheStats":
        """Get store statistics."""
        self._stats.size = len(self._memory)
        self._stats.max_size = self._max_size
        return self._stats

    def _log(self, message: str) -> None:
        """Log debug message if debug mode is enabled."""
        if self._debug:
            logger.debug(f"[ExpiringStore] {message}")


@dataclass
class CacheStats:
    """Store statistics."""

    hits: int = 0
    misses: int = 0
    expired_hits: int = 0
    evictions: int = 0
    size: int = 0
    max_size: int = 0

    @property
    def hit_rate(self) -> float:
        """Share of lookups that found a live entry."""
        total = self.hits + self.expired_hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "expired_hits": self.expired_hits,
            "evictions": self.evictions,
            "size": self.size,
            "max_size": self.max_size,
            "hit_rate": f"{self.hit_rate:.2%}",
        }
