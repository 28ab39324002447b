"""
Result Cache - TTL memo of finished diagnoses, safe across request threads.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: Any
    expires_at: float


def cache_key(platform: str, identifier: str) -> str:
    return f"{platform}:{identifier}"


class ResultCache:
    """TTL cache of diagnosis results. Only successful runs are ever stored."""

    def __init__(self, ttl_seconds: float = config.CACHE_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None when absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            if self._clock() >= entry.expires_at:
                # Expired - remove from cache
                del self._entries[key]
                self.misses += 1
                logger.debug(f"Cache expired: {key}")
                return None
            self.hits += 1
            logger.debug(f"Cache hit: {key}")
            return entry.value

    def set(self, key: str, value: Any) -> None:
        # A fresh entry replaces the old one; entries are never mutated.
        with self._lock:
            self._entries[key] = CacheEntry(key=key, value=value, expires_at=self._clock() + self.ttl_seconds)
        logger.debug(f"Cached: {key} for {self.ttl_seconds}s")

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            total = self.hits + self.misses
            return {
                "size": len(self._entries),
                "ttl_seconds": self.ttl_seconds,
                "hits": self.hits,
                "misses": self.misses,
                "hit_rate": round(self.hits / total, 3) if total else 0.0,
            }
