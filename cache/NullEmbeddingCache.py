# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-09-30
# Description: NullEmbeddingCache
# -----------------------------------------------------------------------------
from typing import Optional, Tuple

import numpy as np


class NullEmbeddingCache:
    """Always misses. Used when caching is disabled."""

    def get(self, key: str) -> Tuple[Optional[np.ndarray], bool]:
        return None, False

    def put(self, key: str, vector: np.ndarray, ttl: float) -> None:
        return None

    def invalidate(self, key: str) -> None:
        return None
