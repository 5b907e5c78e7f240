from __future__ import annotations

import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Generic, Optional, Tuple, TypeVar

from cryptoguard.core.logging import get_logger

logger = get_logger("result_cache")

V = TypeVar("V")


class ResultCache(Generic[V]):
    """Bounded TTL + LRU cache for scan results."""

    def __init__(
        self,
        max_entries: int = 256,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[float, V]]" = OrderedDict()
        self.lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[V]:
        with self.lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            stored_at, value = entry
            if self._clock() - stored_at > self.ttl_seconds:
                del self._entries[key]
                self.misses += 1
                logger.debug("Cache entry expired: %s", key)
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return value

    def set(self, key: str, value: V) -> None:
        with self.lock:
            if key in self._entries:
                self._entries.move_to_end(key)
            self._entries[key] = (self._clock(), value)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Cache full, evicted %s", evicted)

    def clear(self) -> None:
        with self.lock:
            self._entries.clear()
            logger.info("Result cache cleared")

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self.lock:
            lookups = self.hits + self.misses
            return {
                "entries": len(self._entries),
                "maxEntries": self.max_entries,
                "ttlSeconds": self.ttl_seconds,
                "hits": self.hits,
                "misses": self.misses,
                "hitRate": round(self.hits / lookups, 3) if lookups else 0.0,
            }

    def __len__(self) -> int:
        with self.lock:
            return len(self._entries)
