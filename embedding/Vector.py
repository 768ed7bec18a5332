# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-09-30
# Description: Vector
# -----------------------------------------------------------------------------
from typing import Any, Optional

import numpy as np

from errors.RetrievalErrors import EmbeddingValidationError

# Read-only 1-D float64 array
Vector = np.ndarray


def as_vector(values: Any, dimensions: Optional[int] = None) -> Vector:
    """
    Convert provider output into a frozen float64 vector.
    Wrong dimensionality is rejected, never truncated or padded.
    """
    try:
        arr = np.array(values, dtype=np.float64)  # always a copy
    except (TypeError, ValueError) as e:
        raise EmbeddingValidationError(f"Embedding is not a numeric sequence: {e}") from e

    if arr.ndim != 1:
        raise EmbeddingValidationError(f"Embedding must be 1-D, got shape {arr.shape}")
    if dimensions is not None and arr.shape[0] != dimensions:
        raise EmbeddingValidationError(
            f"Invalid embedding dimension: expected {dimensions}, got {arr.shape[0]}"
        )
    if arr.shape[0] == 0:
        raise EmbeddingValidationError("Embedding is empty")
    if not np.all(np.isfinite(arr)):
        raise EmbeddingValidationError("Embedding contains NaN or infinite components")

    arr.setflags(write=False)
    return arr
