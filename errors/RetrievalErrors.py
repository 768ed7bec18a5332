# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-09-29
# Description: RetrievalErrors
# -----------------------------------------------------------------------------
from typing import Optional


class RetrievalError(Exception):
    """Base class for every error raised by the chunking/retrieval engine."""


class ConfigurationError(RetrievalError, ValueError):
    """Invalid call parameters (chunk sizes, batch size, k...). Never retried."""


class DimensionMismatchError(RetrievalError, ValueError):
    def __init__(self, expected: int, actual: int, message: Optional[str] = None):
        self.expected = expected
        self.actual = actual
        super().__init__(
            message or f"Vector dimension mismatch: expected {expected}, got {actual}"
        )


class ProviderError(RetrievalError):
    """
    Failure reported by the embedding provider.
    `transient` decides whether the orchestrator may retry the call.
    """

    transient: bool = False

    def __init__(self, message: str = "", *, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class ProviderTransientError(ProviderError):
    """Rate limiting, timeouts, 5xx and connection problems."""

    transient = True


class ProviderTimeoutError(ProviderTransientError):
    pass


class ProviderPermanentError(ProviderError):
    """Auth failures, rejected input, other 4xx."""

    transient = False


class EmbeddingValidationError(ProviderPermanentError):
    """A vector (or its input) failed validation at the engine boundary."""


class CacheUnavailableError(RetrievalError):
    """The cache backing store could not be reached."""


class EmbeddingCancelledError(RetrievalError):
    """The caller cancelled the request before this item completed."""
