# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-09-30
# Updated: 2026-10-07
# Description: InMemoryEmbeddingCache
# -----------------------------------------------------------------------------
import logging
import threading
import time
from collections import OrderedDict
from typing import Callable, Dict, Optional, Tuple

import numpy as np

from cache.CacheEntry import CacheEntry
from settings import CACHE_DEFAULTS
from utility.logging_utils import get_class_logger


class InMemoryEmbeddingCache:
    """
    Process-local embedding cache.

    - One lock guards the map; entries are immutable and vectors are stored as
      read-only copies, so a reader never sees a half-written vector.
    - Expiry is absolute from insertion (no sliding on read).
    - Expired entries read as misses and are physically removed by sweep(),
      which runs on every put.
    - max_entries (0/None = unbounded) evicts the oldest insert first.
    """

    def __init__(
        self,
        *,
        max_entries: Optional[int] = CACHE_DEFAULTS["max_entries"] or None,
        clock: Callable[[], float] = time.monotonic,
        logger: logging.Logger | None = None,
    ):
        self.max_entries = max_entries
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._stats = {"hits": 0, "misses": 0, "expired": 0, "evictions": 0}
        self.logger = logger or get_class_logger(self.__class__)

    def get(self, key: str) -> Tuple[Optional[np.ndarray], bool]:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._stats["misses"] += 1
                return None, False
            if entry.is_expired(now):
                self._stats["expired"] += 1
                self._stats["misses"] += 1
                return None, False
            self._stats["hits"] += 1
            return entry.vector, True

    def put(self, key: str, vector: np.ndarray, ttl: float) -> None:
        if ttl <= 0:
            raise ValueError(f"ttl must be > 0, got {ttl!r}")

        stored = np.array(vector, dtype=np.float64)
        stored.setflags(write=False)

        now = self._clock()
        entry = CacheEntry(key=key, vector=stored, expires_at=now + ttl)

        with self._lock:
            self._sweep_locked(now)
            self._entries.pop(key, None)
            self._entries[key] = entry
            if self.max_entries:
                while len(self._entries) > self.max_entries:
                    self._entries.popitem(last=False)
                    self._stats["evictions"] += 1

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def sweep(self) -> int:
        """Drop every expired entry now. Returns how many were removed."""
        now = self._clock()
        with self._lock:
            return self._sweep_locked(now)

    def _sweep_locked(self, now: float) -> int:
        expired = [k for k, e in self._entries.items() if e.is_expired(now)]
        for k in expired:
            del self._entries[k]
        if expired:
            self.logger.debug("Swept %d expired cache entries", len(expired))
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {**self._stats, "size": len(self._entries)}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        _, found = self.get(key)
        return found
