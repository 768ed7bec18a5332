# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-01
# Updated: 2026-10-18
# Description: FailSafeEmbeddingCache
# -----------------------------------------------------------------------------
import logging
import threading
from typing import Optional, Tuple

import numpy as np

from cache.EmbeddingCache import EmbeddingCache
from errors.RetrievalErrors import CacheUnavailableError
from utility.logging_utils import get_class_logger


class FailSafeEmbeddingCache:
    """
    Wraps a (possibly remote) cache so an unreachable store degrades to
    always-miss instead of failing the embedding request.
    Only CacheUnavailableError is absorbed; anything else propagates.
    """

    def __init__(self, inner: EmbeddingCache, *, logger: logging.Logger | None = None):
        self.inner = inner
        self.logger = logger or get_class_logger(self.__class__)
        self.unavailable_count = 0
        self._count_lock = threading.Lock()

    def _record_unavailable(self) -> None:
        with self._count_lock:
            self.unavailable_count += 1

    def get(self, key: str) -> Tuple[Optional[np.ndarray], bool]:
        try:
            return self.inner.get(key)
        except CacheUnavailableError as e:
            self._record_unavailable()
            self.logger.warning("Cache unavailable on get (treating as miss): %s", e)
            return None, False

    def put(self, key: str, vector: np.ndarray, ttl: float) -> None:
        try:
            self.inner.put(key, vector, ttl)
        except CacheUnavailableError as e:
            self._record_unavailable()
            self.logger.warning("Cache unavailable on put (write dropped): %s", e)

    def invalidate(self, key: str) -> None:
        try:
            self.inner.invalidate(key)
        except CacheUnavailableError as e:
            self._record_unavailable()
            self.logger.warning("Cache unavailable on invalidate: %s", e)
