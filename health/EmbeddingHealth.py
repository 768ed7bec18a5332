# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-05
# Description: EmbeddingHealth
# -----------------------------------------------------------------------------
import time
import logging
from typing import Optional

from embedding.EmbeddingProvider import EmbeddingProvider
from embedding.Vector import as_vector
from errors.RetrievalErrors import RetrievalError
from utility.logging_utils import get_logger


class EmbeddingHealth:
    """
    Smoke test for the embedding provider.

    Verifies:
      - The embedding call completes successfully
      - The response contains a valid (finite, non-empty) vector
      - The vector dimension matches the expected dimension (if provided)
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        expected_dim: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.provider = provider
        self.expected_dim = expected_dim
        self.logger = logger or get_logger(__name__)
        self.last_latency_ms: Optional[float] = None

        self.logger.info("Initialising EmbeddingHealth with provider: %r", provider)

    def run(self) -> bool:
        """
        Run the embedding smoke test.

        Returns:
            True if the embedding call succeeds and (optionally) the dimension matches.
        """
        test_text = "Grant retrieval embedding healthcheck"
        self.logger.info("Running embedding healthcheck using provider: %r", self.provider)

        try:
            start = time.perf_counter()
            raw = self.provider.embed(test_text)
            self.last_latency_ms = (time.perf_counter() - start) * 1000.0

            vector = as_vector(raw)
            dim = vector.shape[0]

            self.logger.info(
                "Embedding call succeeded in %.1f ms. Returned dimension: %d",
                self.last_latency_ms,
                dim,
            )

            if self.expected_dim is not None and dim != self.expected_dim:
                self.logger.warning(
                    "Dimension mismatch: expected %d, got %d.",
                    self.expected_dim,
                    dim,
                )
                return False

            self.logger.info("Embedding healthcheck PASSED.")
            return True

        except RetrievalError as e:
            self.logger.error("Embedding healthcheck FAILED: %s", e)
            return False
