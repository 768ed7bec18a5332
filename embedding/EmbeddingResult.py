# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-02
# Description: EmbeddingResult
# -----------------------------------------------------------------------------
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np


@dataclass(frozen=True)
class EmbeddingResult:
    """
    Outcome for one input slot of an embedding request:
    exactly one of `vector` / `error` is set.
    """
    index: int
    text: str
    vector: Optional[np.ndarray] = None
    error: Optional[Exception] = None
    cached: bool = False
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None and self.vector is not None

    def unwrap(self) -> np.ndarray:
        """Return the vector or raise the slot's error."""
        if self.error is not None:
            raise self.error
        if self.vector is None:
            raise ValueError(f"Embedding slot {self.index} has neither vector nor error")
        return self.vector


def vectors_or_raise(results: Sequence[EmbeddingResult]) -> List[np.ndarray]:
    """All-or-nothing view over a batch: raises the first slot error in input order."""
    return [r.unwrap() for r in results]


@dataclass
class BatchSummary:
    requested: int = 0
    unique: int = 0
    cache_hits: int = 0
    provider_calls: int = 0
    retries: int = 0
    succeeded: int = 0
    failed: int = 0
    cancelled: bool = False
