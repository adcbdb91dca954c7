"""Bounded in-memory cache with per-entry expiry and priority-aware eviction."""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Callable

from .config import CacheSettings

logger = logging.getLogger(__name__)


class CachePriority(IntEnum):
    """Eviction order tiebreaker. Lower values are evicted first."""

    LOW = 0
    NORMAL = 1
    HIGH = 2


class ExpirationKind(str, Enum):
    ABSOLUTE = "absolute"
    SLIDING = "sliding"


class _Miss:
    __slots__ = ()

    def __repr__(self) -> str:
        return "MISS"

    def __bool__(self) -> bool:
        return False


MISS: Any = _Miss()


@dataclass(slots=True)
class CacheEntry:
    key: str
    value: Any
    created_at: float
    ttl: float
    expires_at: float
    priority: CachePriority
    size_bytes: int
    last_access: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True, slots=True)
class CacheStats:
    enabled: bool
    expiration: ExpirationKind
    entries: int
    size_bytes: int
    capacity_bytes: int
    hits: int
    misses: int
    evictions: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "expiration": self.expiration.value,
            "entries": self.entries,
            "size_bytes": self.size_bytes,
            "capacity_bytes": self.capacity_bytes,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
        }


class CacheStore:
    """Thread-safe key/value store bounded by an approximate byte budget.

    Entries expire either a fixed ``ttl`` after insertion (absolute) or
    ``ttl`` after their last successful read (sliding), depending on
    ``CacheSettings.use_absolute_expiration``. When the resident size grows
    past ``compaction_percentage`` of the capacity, expired entries go first,
    then the lowest priority, then the least recently used, until the
    resident size is back under that threshold.

    A disabled store never holds anything: ``get`` misses and ``set`` does
    nothing.
    """

    def __init__(
        self,
        settings: CacheSettings,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._enabled = settings.enable_caching
        self._expiration = (
            ExpirationKind.ABSOLUTE if settings.use_absolute_expiration else ExpirationKind.SLIDING
        )
        self._capacity = settings.capacity_bytes
        self._threshold = int(self._capacity * settings.compaction_percentage)
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._size = 0
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def expiration(self) -> ExpirationKind:
        return self._expiration

    def disable(self) -> None:
        """Turn the store off and drop everything it holds."""

        with self._lock:
            self._enabled = False
            self._entries.clear()
            self._size = 0

    def enable(self) -> None:
        with self._lock:
            self._enabled = True

    def get(self, key: str) -> Any:
        """Return the cached value for ``key`` or ``MISS``."""

        with self._lock:
            if not self._enabled:
                self._misses += 1
                return MISS
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return MISS
            now = self._clock()
            if entry.is_expired(now):
                self._drop(key)
                self._misses += 1
                return MISS
            entry.last_access = now
            if self._expiration is ExpirationKind.SLIDING:
                entry.expires_at = now + entry.ttl
            self._entries.move_to_end(key)
            self._hits += 1
            return entry.value

    def set(
        self,
        key: str,
        value: Any,
        ttl: float,
        priority: CachePriority = CachePriority.NORMAL,
        size_bytes: int = 0,
    ) -> bool:
        """Store ``value`` under ``key`` for ``ttl`` seconds.

        Returns ``False`` when nothing was stored (disabled store, zero ttl,
        or an entry larger than the whole capacity).
        """

        if ttl <= 0:
            return False
        size_bytes = max(int(size_bytes), 0)
        with self._lock:
            if not self._enabled:
                return False
            if size_bytes > self._capacity:
                logger.warning(
                    "Refusing to cache %s: %s bytes exceeds capacity of %s bytes",
                    key,
                    size_bytes,
                    self._capacity,
                )
                return False
            if key in self._entries:
                self._drop(key)
            now = self._clock()
            self._entries[key] = CacheEntry(
                key=key,
                value=value,
                created_at=now,
                ttl=ttl,
                expires_at=now + ttl,
                priority=priority,
                size_bytes=size_bytes,
                last_access=now,
            )
            self._size += size_bytes
            if self._size > self._threshold:
                self._compact(now)
            return key in self._entries

    def remove(self, key: str) -> bool:
        with self._lock:
            if key not in self._entries:
                return False
            self._drop(key)
            return True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._size = 0

    def __contains__(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not entry.is_expired(self._clock())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def size_bytes(self) -> int:
        with self._lock:
            return self._size

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                enabled=self._enabled,
                expiration=self._expiration,
                entries=len(self._entries),
                size_bytes=self._size,
                capacity_bytes=self._capacity,
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
            )

    def _drop(self, key: str) -> None:
        entry = self._entries.pop(key)
        self._size -= entry.size_bytes

    def _compact(self, now: float) -> None:
        # Caller holds the lock.
        for key in [k for k, e in self._entries.items() if e.is_expired(now)]:
            self._drop(key)
            self._evictions += 1

        if self._size <= self._threshold:
            return

        # _entries is kept in recency order, so a stable sort on priority
        # yields lowest priority first, least recently used first within it.
        victims = sorted(self._entries.values(), key=lambda e: e.priority)
        for entry in victims:
            if self._size <= self._threshold:
                break
            self._drop(entry.key)
            self._evictions += 1
            logger.debug(
                "Evicted %s (priority=%s, size=%s bytes)",
                entry.key,
                entry.priority.name,
                entry.size_bytes,
            )


__all__ = [
    "MISS",
    "CacheEntry",
    "CachePriority",
    "CacheStats",
    "CacheStore",
    "ExpirationKind",
]
