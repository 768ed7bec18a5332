# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-10
# Description: test_openai_embedding_provider.py
# -----------------------------------------------------------------------------
from types import SimpleNamespace

import httpx
import openai
import pytest

from cache.InMemoryEmbeddingCache import InMemoryEmbeddingCache
from config.Config import Config
from embedding.EmbeddingModels import embedding_dimensions, estimate_embedding_cost, estimate_token_count
from embedding.EmbeddingOrchestrator import EmbeddingOrchestrator
from embedding.OpenAIEmbeddingProvider import OpenAIEmbeddingProvider, classify_openai_error
from errors.RetrievalErrors import (
    EmbeddingValidationError,
    ProviderPermanentError,
    ProviderTimeoutError,
    ProviderTransientError,
)

REQUEST = httpx.Request("POST", "https://api.openai.com/v1/embeddings")


def _status_error(cls, status: int):
    return cls(
        message=f"HTTP {status}",
        response=httpx.Response(status, request=REQUEST),
        body=None,
    )


def _config(**overrides) -> Config:
    values = {
        "openai_api_key": "sk-test",
        "openai_base_url": "",
        "openai_embed_model": "text-embedding-3-small",
        "openai_azure_api_key": "",
        "openai_azure_endpoint": "",
        "openai_azure_embed_deployment": "",
        "openai_azure_api_version": "2024-10-21",
    }
    values.update(overrides)
    return Config(**values)


class FakeEmbeddings:
    """Stands in for client.embeddings; answers in reverse order like a shuffled API response."""

    def __init__(self, error: Exception | None = None, drop: int = 0):
        self.error = error
        self.drop = drop
        self.requests = []

    def create(self, **kwargs):
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        texts = kwargs["input"]
        data = [
            SimpleNamespace(index=i, embedding=[float(i), float(len(t))])
            for i, t in enumerate(texts)
        ]
        data.reverse()
        return SimpleNamespace(data=data[self.drop:])


def _provider(embeddings: FakeEmbeddings, **kwargs) -> OpenAIEmbeddingProvider:
    return OpenAIEmbeddingProvider(_config(), client=SimpleNamespace(embeddings=embeddings), **kwargs)


# ---------------------------------------------------------------------------
# error classification
# ---------------------------------------------------------------------------
@pytest.mark.parametrize(
    "error",
    [
        _status_error(openai.RateLimitError, 429),
        _status_error(openai.InternalServerError, 500),
        _status_error(openai.APIStatusError, 503),
        _status_error(openai.APIStatusError, 408),
        openai.APIConnectionError(request=REQUEST),
    ],
)
def test_transient_errors(error):
    mapped = classify_openai_error(error)
    assert isinstance(mapped, ProviderTransientError)
    assert mapped.transient
    assert mapped.cause is error


def test_timeout_error():
    mapped = classify_openai_error(openai.APITimeoutError(request=REQUEST))
    assert isinstance(mapped, ProviderTimeoutError)
    assert mapped.transient


@pytest.mark.parametrize(
    "error",
    [
        _status_error(openai.AuthenticationError, 401),
        _status_error(openai.BadRequestError, 400),
        _status_error(openai.NotFoundError, 404),
        ValueError("something else"),
    ],
)
def test_permanent_errors(error):
    mapped = classify_openai_error(error)
    assert isinstance(mapped, ProviderPermanentError)
    assert not mapped.transient


# ---------------------------------------------------------------------------
# provider
# ---------------------------------------------------------------------------
def test_embed_many_restores_input_order():
    embeddings = FakeEmbeddings()
    provider = _provider(embeddings)

    vectors = provider.embed_many(["a", "bb", "ccc"])

    assert vectors == [[0.0, 1.0], [1.0, 2.0], [2.0, 3.0]]
    assert embeddings.requests == [{"model": "text-embedding-3-small", "input": ["a", "bb", "ccc"]}]


def test_embed_single_text_and_dimensions_parameter():
    embeddings = FakeEmbeddings()
    provider = _provider(embeddings, dimensions=2)

    assert provider.embed("hello") == [0.0, 5.0]
    assert embeddings.requests[0]["dimensions"] == 2


def test_empty_batch_makes_no_request():
    embeddings = FakeEmbeddings()
    assert _provider(embeddings).embed_many([]) == []
    assert embeddings.requests == []


def test_sdk_errors_are_classified():
    embeddings = FakeEmbeddings(error=_status_error(openai.RateLimitError, 429))
    with pytest.raises(ProviderTransientError) as exc:
        _provider(embeddings).embed("hello")
    assert isinstance(exc.value.__cause__, openai.RateLimitError)


def test_short_response_is_permanent():
    with pytest.raises(ProviderPermanentError):
        _provider(FakeEmbeddings(drop=1)).embed_many(["a", "b"])


def test_clients_built_from_config():
    direct = OpenAIEmbeddingProvider(_config())
    assert isinstance(direct.client, openai.OpenAI)
    assert direct.model == "text-embedding-3-small"

    azure = OpenAIEmbeddingProvider(
        _config(
            openai_api_key="",
            openai_azure_api_key="azure-key",
            openai_azure_endpoint="https://example.openai.azure.com/",
            openai_azure_embed_deployment="embed-deployment",
        )
    )
    assert isinstance(azure.client, openai.AzureOpenAI)
    assert azure.model == "embed-deployment"


def test_orchestrator_uses_batch_requests():
    embeddings = FakeEmbeddings()
    provider = _provider(embeddings, dimensions=2)

    with EmbeddingOrchestrator(provider, InMemoryEmbeddingCache(), backoff_initial=0.0) as orch:
        assert orch.dimensions == 2
        results = orch.embed_batch(["first text", "second text", "third text"])

    assert all(r.ok for r in results)
    assert len(embeddings.requests) == 1
    assert results[1].vector.tolist() == [1.0, float(len("second text"))]


def test_orchestrator_rejects_vectors_of_the_wrong_model_size():
    provider = _provider(FakeEmbeddings())  # 3-small declares 1536 dims, fake returns 2

    with EmbeddingOrchestrator(provider, InMemoryEmbeddingCache()) as orch:
        result = orch.embed_batch(["some text"])[0]

    assert isinstance(result.error, EmbeddingValidationError)


# ---------------------------------------------------------------------------
# model table
# ---------------------------------------------------------------------------
def test_model_dimensions():
    assert embedding_dimensions("text-embedding-3-small") == 1536
    assert embedding_dimensions("text-embedding-3-large") == 3072
    assert embedding_dimensions("unknown-model") == 1536


def test_token_and_cost_estimates():
    assert estimate_token_count("") == 0
    assert estimate_token_count("abcd" * 10) == 10
    assert estimate_token_count("abcde") == 2
    assert estimate_embedding_cost(1_000_000, "text-embedding-3-small") == pytest.approx(0.02)
    assert estimate_embedding_cost(500_000, "text-embedding-3-large") == pytest.approx(0.065)
