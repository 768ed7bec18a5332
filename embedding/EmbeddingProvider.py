# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-01
# Description: EmbeddingProvider
# -----------------------------------------------------------------------------

from typing import List, Protocol, Sequence, runtime_checkable


@runtime_checkable
class EmbeddingProvider(Protocol):
    """
    Single-text embedding call owned by a collaborator (HTTP, auth, SDK...).
    Raises ProviderTransientError (worth retrying) or ProviderPermanentError.
    """

    def embed(self, text: str) -> Sequence[float]:
        ...


@runtime_checkable
class BatchEmbeddingProvider(EmbeddingProvider, Protocol):
    """Provider that can embed several texts in one request, same order as input."""

    def embed_many(self, texts: List[str]) -> List[Sequence[float]]:
        ...
