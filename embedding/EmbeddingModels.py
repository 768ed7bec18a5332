# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-01
# Description: EmbeddingModels
# -----------------------------------------------------------------------------
import math
from typing import Dict

DEFAULT_EMBED_MODEL = "text-embedding-3-small"

# Expected dimensions for models:
# - text-embedding-3-small → 1536
# - text-embedding-3-large → 3072
MODEL_DIMENSIONS: Dict[str, int] = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}

# USD per 1M input tokens
MODEL_PRICING_PER_MILLION: Dict[str, float] = {
    "text-embedding-3-small": 0.02,
    "text-embedding-3-large": 0.13,
    "text-embedding-ada-002": 0.10,
}


def embedding_dimensions(model: str = DEFAULT_EMBED_MODEL) -> int:
    return MODEL_DIMENSIONS.get(model, 1536)


def estimate_token_count(text: str) -> int:
    """Rough estimate: ~4 characters per token for English text."""
    return math.ceil(len(text or "") / 4)


def estimate_embedding_cost(token_count: int, model: str = DEFAULT_EMBED_MODEL) -> float:
    price = MODEL_PRICING_PER_MILLION.get(model, MODEL_PRICING_PER_MILLION[DEFAULT_EMBED_MODEL])
    return (token_count / 1_000_000) * price
