# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-03
# Description: SimilarityResult
# -----------------------------------------------------------------------------
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class SimilarityResult(Generic[T]):
    """A ranked candidate. `index` is its position in the candidate input."""
    item: T
    score: float
    index: int
