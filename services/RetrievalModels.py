# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-04
# Description: RetrievalModels
# -----------------------------------------------------------------------------
from dataclasses import dataclass, field
from typing import Any, List, Optional

import numpy as np

from chunking.TextChunk import TextChunk
from embedding.EmbeddingResult import EmbeddingResult
from ranking.SimilarityResult import SimilarityResult


@dataclass(frozen=True)
class IndexedChunk:
    """A chunk and the outcome of embedding it (vector or per-item error)."""
    chunk: TextChunk
    result: EmbeddingResult

    @property
    def ok(self) -> bool:
        return self.result.ok

    @property
    def vector(self) -> Optional[np.ndarray]:
        return self.result.vector


@dataclass(frozen=True)
class SearchCandidate:
    """Something searchable: an opaque item, its text, and its vector if it has one."""
    item: Any
    text: str
    vector: Optional[Any] = None


@dataclass
class SearchResponse:
    query: str
    results: List[SimilarityResult] = field(default_factory=list)
    # True when ranking fell back to keyword overlap instead of vectors
    fallback: bool = False
    error: Optional[Exception] = None
