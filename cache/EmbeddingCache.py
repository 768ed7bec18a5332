# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-09-30
# Description: EmbeddingCache
# -----------------------------------------------------------------------------

from typing import Optional, Protocol, Tuple, runtime_checkable

import numpy as np


@runtime_checkable
class EmbeddingCache(Protocol):
    """
    Fingerprint -> vector store with expiry.
    Implementations must be safe under concurrent get/put. A store that cannot be
    reached raises CacheUnavailableError (see FailSafeEmbeddingCache).
    """

    def get(self, key: str) -> Tuple[Optional[np.ndarray], bool]:
        ...

    def put(self, key: str, vector: np.ndarray, ttl: float) -> None:
        ...

    def invalidate(self, key: str) -> None:
        ...
