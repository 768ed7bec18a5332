# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-09-30
# Description: CacheEntry
# -----------------------------------------------------------------------------
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class CacheEntry:
    """Cached vector for one content fingerprint. Owned by the cache only."""
    key: str
    vector: np.ndarray
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at
