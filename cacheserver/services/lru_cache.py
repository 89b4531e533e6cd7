# =============================================
# File: cacheserver/services/lru_cache.py
# Purpose: Fixed-capacity LRU cache with per-entry TTL (lazy expiration)
# =============================================
from __future__ import annotations

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Generic, List, Optional, Tuple, TypeVar

from loguru import logger

V = TypeVar("V")

# 100 years; keeps now + ttl inside the range datetime can represent
MAX_TTL_SECONDS = 100 * 365 * 24 * 3600


@dataclass
class CacheEntry(Generic[V]):
    """One cached item. `expiration` is an absolute epoch timestamp (seconds)."""
    key: str
    value: V
    expiration: float


class LRUCache(Generic[V]):
    """
    Thread-safe LRU cache where every entry also carries its own TTL.

    - The OrderedDict is both the lookup table and the recency index:
      the last item is the most recently used, the first one is the eviction victim.
    - Expiration is lazy: stale entries are dropped when `get` touches them
      or when `snapshot` scans the whole table. There is no background sweeper.
    - One lock guards every operation; none of them is re-entrant.
    """

    def __init__(self, capacity: int, clock: Callable[[], float] = time.time) -> None:
        if int(capacity) < 1:
            raise ValueError("capacity must be >= 1")
        self._capacity = int(capacity)
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry[V]]" = OrderedDict()
        self._lock = threading.Lock()
        self._stats: Dict[str, int] = {
            "hits": 0,
            "misses": 0,
            "sets": 0,
            "evictions": 0,
            "expirations": 0,
        }

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return self.size()

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> Optional[V]:
        """Return the value for `key`, or None when missing or expired."""
        value, found = self.lookup(key)
        return value if found else None

    def lookup(self, key: str) -> Tuple[Optional[V], bool]:
        """
        Return (value, True) and mark `key` most recently used,
        or (None, False) when the key is absent or its TTL has elapsed.
        """
        with self._lock:
            now = self._clock()
            entry = self._entries.get(key)
            if entry is None:
                self._stats["misses"] += 1
                return None, False
            if entry.expiration <= now:
                del self._entries[key]
                self._stats["expirations"] += 1
                self._stats["misses"] += 1
                return None, False
            self._entries.move_to_end(key, last=True)
            self._stats["hits"] += 1
            return entry.value, True

    def store(self, key: str, value: V, ttl_seconds: float) -> None:
        """Insert or update `key`; a new key over capacity evicts the LRU entry."""
        if not 0 <= ttl_seconds <= MAX_TTL_SECONDS:
            raise ValueError(f"ttl_seconds must be between 0 and {MAX_TTL_SECONDS}")
        with self._lock:
            expiration = self._clock() + ttl_seconds
            self._stats["sets"] += 1
            entry = self._entries.get(key)
            if entry is not None:
                entry.value = value
                entry.expiration = expiration
                self._entries.move_to_end(key, last=True)
                return

            self._entries[key] = CacheEntry(key=key, value=value, expiration=expiration)
            if len(self._entries) > self._capacity:
                _, victim = self._entries.popitem(last=False)
                self._stats["evictions"] += 1
                logger.debug("[cache] evicted key={} capacity={}", victim.key, self._capacity)

    # Short aliases matching dict-like caches
    set = store

    def clear(self) -> int:
        """Drop every entry; returns how many were dropped."""
        with self._lock:
            dropped = len(self._entries)
            self._entries.clear()
            return dropped

    def snapshot(self) -> List[CacheEntry[V]]:
        """
        Copies of all live entries. Entries found expired during the scan
        are removed from the cache for good.
        """
        alive, _ = self.sweep()
        return alive

    def sweep(self) -> Tuple[List[CacheEntry[V]], int]:
        """Same scan as `snapshot`, also returning how many expired entries were removed."""
        with self._lock:
            now = self._clock()
            alive: List[CacheEntry[V]] = []
            dead: List[str] = []
            for key, entry in self._entries.items():
                if entry.expiration > now:
                    alive.append(replace(entry))
                else:
                    dead.append(key)
            for key in dead:
                del self._entries[key]
            self._stats["expirations"] += len(dead)
        if dead:
            logger.info("[cache] snapshot swept expired={} live={}", len(dead), len(alive))
        return alive, len(dead)

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            out: Dict[str, Any] = dict(self._stats)
            out["size"] = len(self._entries)
            out["capacity"] = self._capacity
            return out
