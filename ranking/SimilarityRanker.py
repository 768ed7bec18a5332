# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-03
# Updated: 2026-10-12
# Description: SimilarityRanker
# -----------------------------------------------------------------------------
import logging
from typing import Any, Iterable, List, Sequence, Tuple, TypeVar

import numpy as np

from errors.RetrievalErrors import ConfigurationError, DimensionMismatchError
from ranking.SimilarityResult import SimilarityResult
from utility.logging_utils import get_class_logger

T = TypeVar("T")


def _as_array(v: Any) -> np.ndarray:
    arr = np.asarray(v, dtype=np.float64)
    if arr.ndim != 1:
        raise ValueError(f"Vector must be 1-D, got shape {arr.shape}")
    return arr


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine of the angle between a and b, in [-1, 1].
    Zero-magnitude input scores 0.0; unequal lengths raise DimensionMismatchError.
    """
    va = _as_array(a)
    vb = _as_array(b)
    if va.shape[0] != vb.shape[0]:
        raise DimensionMismatchError(expected=va.shape[0], actual=vb.shape[0])

    norm_a = float(np.linalg.norm(va))
    norm_b = float(np.linalg.norm(vb))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    score = float(np.dot(va, vb) / (norm_a * norm_b))
    # clamp floating-point overshoot, e.g. 1.0000000000000002
    return max(-1.0, min(1.0, score))


def average_embeddings(vectors: Iterable[Sequence[float]]) -> np.ndarray:
    """Element-wise mean of equally sized vectors."""
    arrays = [_as_array(v) for v in vectors]
    if not arrays:
        raise ConfigurationError("Cannot average an empty list of embeddings")
    dims = arrays[0].shape[0]
    for arr in arrays[1:]:
        if arr.shape[0] != dims:
            raise DimensionMismatchError(expected=dims, actual=arr.shape[0])
    return np.mean(np.vstack(arrays), axis=0)


class SimilarityRanker:
    """
    Scores candidates against a query vector and returns the top-k above a threshold.
    Ordering is by descending score; equal scores keep input order.
    """

    def __init__(self, *, logger: logging.Logger | None = None):
        self.logger = logger or get_class_logger(self.__class__)

    def find_similar(
        self,
        query: Sequence[float],
        candidates: Iterable[Tuple[T, Sequence[float]]],
        k: int,
        min_similarity: float,
    ) -> List[SimilarityResult[T]]:
        if k <= 0:
            return []

        q = _as_array(query)
        scored: List[SimilarityResult[T]] = []
        dropped = 0

        for index, (item, vector) in enumerate(candidates):
            try:
                score = cosine_similarity(q, vector)
            except DimensionMismatchError as e:
                dropped += 1
                self.logger.warning("Skipping candidate %d: %s", index, e)
                continue
            if score < min_similarity:
                continue
            scored.append(SimilarityResult(item=item, score=score, index=index))

        # sort() is stable, so equal scores stay in input order
        scored.sort(key=lambda r: -r.score)

        if dropped:
            self.logger.warning("Ranking excluded %d candidate(s) with mismatched dimensions", dropped)
        self.logger.debug(
            "Ranked %d candidate(s) >= %.3f, returning %d (k=%d)",
            len(scored),
            min_similarity,
            min(k, len(scored)),
            k,
        )
        return scored[:k]


_default: SimilarityRanker | None = None


def find_similar(
    query: Sequence[float],
    candidates: Iterable[Tuple[T, Sequence[float]]],
    k: int,
    min_similarity: float,
) -> List[SimilarityResult[T]]:
    global _default
    if _default is None:
        _default = SimilarityRanker()
    return _default.find_similar(query, candidates, k, min_similarity)
