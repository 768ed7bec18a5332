# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-01
# Updated: 2026-10-10
# Description: OpenAIEmbeddingProvider
# -----------------------------------------------------------------------------
import logging
from typing import Any, List, Optional, Sequence

import openai
from openai import AzureOpenAI, OpenAI

from config.Config import Config
from errors.RetrievalErrors import (
    ProviderError,
    ProviderPermanentError,
    ProviderTimeoutError,
    ProviderTransientError,
)
from settings import EMBED_DEFAULTS
from utility.logging_utils import get_class_logger


def classify_openai_error(e: Exception) -> ProviderError:
    """Map an openai SDK exception onto the transient/permanent taxonomy."""
    # APITimeoutError subclasses APIConnectionError, so check it first
    if isinstance(e, openai.APITimeoutError):
        return ProviderTimeoutError(f"Embedding request timed out: {e}", cause=e)
    if isinstance(e, (openai.RateLimitError, openai.APIConnectionError, openai.InternalServerError)):
        return ProviderTransientError(f"{type(e).__name__}: {e}", cause=e)
    if isinstance(e, openai.APIStatusError):
        status = getattr(e, "status_code", None)
        if status is not None and (status >= 500 or status in (408, 409, 429)):
            return ProviderTransientError(f"{type(e).__name__} ({status}): {e}", cause=e)
        return ProviderPermanentError(f"{type(e).__name__} ({status}): {e}", cause=e)
    return ProviderPermanentError(f"{type(e).__name__}: {e}", cause=e)


class OpenAIEmbeddingProvider:
    """
    Embedding provider over the openai SDK (direct OpenAI or Azure OpenAI).

    SDK-level retries are switched off: retry/backoff belongs to the orchestrator,
    which needs to see every transient failure. The request timeout is handed to the
    client so a hung HTTP call is abandoned by the SDK itself.
    """

    def __init__(
        self,
        cfg: Config,
        *,
        request_timeout: float = EMBED_DEFAULTS["request_timeout"],
        dimensions: Optional[int] = None,
        client: Any = None,
        logger: logging.Logger | None = None,
    ):
        self.cfg = cfg
        self.request_timeout = request_timeout
        self.dimensions = dimensions
        self.logger = logger or get_class_logger(self.__class__)
        self.model = cfg.embed_model

        self.client = client or self._init_client()
        self.logger.info(
            "OpenAI embedding provider initialised: %s (timeout=%.1fs)",
            cfg.summary(),
            request_timeout,
        )

    def _init_client(self) -> Any:
        if self.cfg.use_azure:
            return AzureOpenAI(
                api_key=self.cfg.openai_azure_api_key,
                azure_endpoint=self.cfg.openai_azure_endpoint.rstrip("/"),
                api_version=self.cfg.openai_azure_api_version,
                timeout=self.request_timeout,
                max_retries=0,
            )
        return OpenAI(
            api_key=self.cfg.openai_api_key,
            base_url=self.cfg.openai_base_url or None,
            timeout=self.request_timeout,
            max_retries=0,
        )

    def _create(self, texts: List[str]) -> List[Sequence[float]]:
        kwargs: dict = {"model": self.model, "input": texts}
        if self.dimensions is not None:
            kwargs["dimensions"] = self.dimensions

        try:
            resp = self.client.embeddings.create(**kwargs)
        except openai.OpenAIError as e:
            raise classify_openai_error(e) from e

        data = list(getattr(resp, "data", None) or [])
        if len(data) != len(texts):
            raise ProviderPermanentError(
                f"Provider returned {len(data)} embeddings for {len(texts)} inputs"
            )
        # items carry their input position; do not trust response order
        if all(getattr(d, "index", None) is not None for d in data):
            data.sort(key=lambda d: d.index)
        return [d.embedding for d in data]

    def embed(self, text: str) -> Sequence[float]:
        return self._create([text])[0]

    def embed_many(self, texts: List[str]) -> List[Sequence[float]]:
        if not texts:
            return []
        return self._create(list(texts))

    def __repr__(self) -> str:
        return f"OpenAIEmbeddingProvider(model={self.model!r})"
