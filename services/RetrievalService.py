# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-04
# Updated: 2026-10-18
# Description: RetrievalService.py
# -----------------------------------------------------------------------------
from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from cache.EmbeddingCache import EmbeddingCache
from chunking.TextChunk import TextChunk
from chunking.TextChunker import TextChunker, validate_chunk_params
from config.Config import Config
from embedding.CancellationToken import CancellationToken
from embedding.EmbeddingOrchestrator import EmbeddingOrchestrator
from embedding.EmbeddingProvider import EmbeddingProvider
from embedding.EmbeddingResult import EmbeddingResult
from embedding.OpenAIEmbeddingProvider import OpenAIEmbeddingProvider
from errors.RetrievalErrors import ConfigurationError, ProviderError
from keywords.KeywordExtractor import KeywordExtractor, keyword_similarity
from keywords.KeywordResult import KeywordResult
from normalization.TextNormalizer import TextNormalizer
from ranking.SimilarityRanker import SimilarityRanker, average_embeddings, cosine_similarity
from ranking.SimilarityResult import SimilarityResult
from services.RetrievalModels import IndexedChunk, SearchCandidate, SearchResponse
from settings import CHUNK_DEFAULTS, EMBED_DEFAULTS, SEARCH_DEFAULTS
from utility.logging_utils import get_class_logger


class RetrievalService:
    """
    The engine's entry points for the surrounding application:
      - normalize / chunk / extract_keywords (pure)
      - embed / embed_batch (cache + provider via EmbeddingOrchestrator)
      - find_similar (cosine top-k)
    plus the composed flows built on them: index_document, find_similar_texts,
    semantic_chunk and search (with keyword fallback).
    """

    def __init__(
        self,
        *,
        orchestrator: EmbeddingOrchestrator,
        normalizer: TextNormalizer | None = None,
        chunker: TextChunker | None = None,
        keyword_extractor: KeywordExtractor | None = None,
        ranker: SimilarityRanker | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.normalizer = normalizer or orchestrator.normalizer
        self.chunker = chunker or TextChunker()
        self.keyword_extractor = keyword_extractor or KeywordExtractor()
        self.ranker = ranker or SimilarityRanker()
        self.logger = logger or get_class_logger(self.__class__)

    @classmethod
    def build_default(
        cls,
        cfg: Config | None = None,
        *,
        provider: EmbeddingProvider | None = None,
        cache: EmbeddingCache | None = None,
    ) -> "RetrievalService":
        """Wire the engine from env: OpenAI/Azure provider, in-memory cache, settings defaults."""
        if provider is None:
            provider = OpenAIEmbeddingProvider(
                cfg or Config.from_env(),
                request_timeout=EMBED_DEFAULTS["request_timeout"],
            )
        orchestrator = EmbeddingOrchestrator(provider, cache)
        return cls(orchestrator=orchestrator)

    def close(self) -> None:
        self.orchestrator.close()

    # ------------------------------------------------------------------
    # core entry points
    # ------------------------------------------------------------------
    def normalize(self, text: str) -> str:
        return self.normalizer.normalize(text)

    def chunk(
        self,
        text: str,
        max_size: Optional[int] = None,
        overlap: Optional[int] = None,
        mode: Optional[str] = None,
    ) -> List[TextChunk]:
        return self.chunker.chunk(text, max_size=max_size, overlap=overlap, mode=mode)

    def extract_keywords(self, text: str, limit: Optional[int] = None) -> List[KeywordResult]:
        return self.keyword_extractor.extract(text, limit=limit)

    def embed(self, text: str, *, cancel_token: CancellationToken | None = None) -> np.ndarray:
        return self.orchestrator.embed(text, cancel_token=cancel_token)

    def embed_batch(
        self,
        texts: Sequence[str],
        batch_size: Optional[int] = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> List[EmbeddingResult]:
        return self.orchestrator.embed_batch(texts, batch_size, cancel_token=cancel_token)

    def find_similar(
        self,
        query: Sequence[float],
        candidates: Iterable[Tuple[Any, Sequence[float]]],
        k: int = SEARCH_DEFAULTS["k"],
        min_similarity: float = SEARCH_DEFAULTS["min_similarity"],
    ) -> List[SimilarityResult]:
        return self.ranker.find_similar(query, candidates, k, min_similarity)

    # ------------------------------------------------------------------
    # composed flows
    # ------------------------------------------------------------------
    def index_document(
        self,
        text: str,
        max_size: int = CHUNK_DEFAULTS["max_size"],
        overlap: int = CHUNK_DEFAULTS["overlap"],
        batch_size: Optional[int] = None,
        *,
        mode: Optional[str] = None,
        normalize_text: bool = True,
        cancel_token: CancellationToken | None = None,
    ) -> List[IndexedChunk]:
        """
        normalize -> chunk -> embed_batch. Chunks whose embedding failed are kept,
        carrying their error, so callers can backfill them later.
        Normalization folds newlines, so mode="paragraphs" needs normalize_text=False.
        """
        validate_chunk_params(max_size, overlap)
        source = self.normalize(text) if normalize_text else text
        chunks = self.chunk(source, max_size, overlap, mode)
        if not chunks:
            self.logger.warning("No chunks produced (empty document after normalization)")
            return []

        results = self.embed_batch([c.text for c in chunks], batch_size, cancel_token=cancel_token)
        indexed = [IndexedChunk(chunk=c, result=r) for c, r in zip(chunks, results)]

        failed = sum(1 for ic in indexed if not ic.ok)
        self.logger.info(
            "Indexed document: %d chunks (max_size=%d overlap=%d), %d embedded, %d failed",
            len(indexed),
            max_size,
            overlap,
            len(indexed) - failed,
            failed,
        )
        return indexed

    def find_similar_texts(
        self,
        query_text: str,
        candidate_texts: Sequence[str],
        k: int = SEARCH_DEFAULTS["k"],
        min_similarity: float = SEARCH_DEFAULTS["min_similarity"],
        *,
        cancel_token: CancellationToken | None = None,
    ) -> List[SimilarityResult]:
        """
        Embed the query and the candidates in one batch, then rank the candidates.
        Raises the query's error if the query itself could not be embedded;
        candidates that failed to embed are left out.
        """
        if not candidate_texts or k <= 0:
            return []

        results = self.embed_batch([query_text, *candidate_texts], cancel_token=cancel_token)
        query_vector = results[0].unwrap()

        candidates = []
        for text, res in zip(candidate_texts, results[1:]):
            if res.ok:
                candidates.append((text, res.vector))
            else:
                self.logger.warning("Skipping candidate %d (embedding failed): %s", res.index - 1, res.error)

        ranked = self.find_similar(query_vector, candidates, k, min_similarity)
        # report positions in candidate_texts, not in the filtered list
        positions = [i for i, r in enumerate(results[1:]) if r.ok]
        return [SimilarityResult(item=r.item, score=r.score, index=positions[r.index]) for r in ranked]

    def merge_similar_chunks(
        self,
        source: str,
        chunks: Sequence[TextChunk],
        vectors: Sequence[Optional[Sequence[float]]],
        *,
        similarity_threshold: float = 0.8,
        max_merged_size: Optional[int] = None,
    ) -> List[Tuple[TextChunk, Optional[np.ndarray]]]:
        """
        Merge runs of adjacent chunks whose embeddings are at least `similarity_threshold`
        similar, as long as the merged span stays within `max_merged_size` characters.
        A merged chunk covers source[first.start_offset:last.end_offset] and its vector is
        the mean of the merged vectors. Chunks without a vector are never merged.
        """
        if len(chunks) != len(vectors):
            raise ConfigurationError(
                f"chunks ({len(chunks)}) and vectors ({len(vectors)}) length mismatch"
            )
        if not chunks:
            return []
        if max_merged_size is None:
            max_merged_size = 2 * max(c.char_count for c in chunks)

        spans: List[Tuple[int, int, List[np.ndarray]]] = []
        cur_start, cur_end = chunks[0].start_offset, chunks[0].end_offset
        cur_vecs = [np.asarray(vectors[0], dtype=np.float64)] if vectors[0] is not None else []
        cur_mean = cur_vecs[0] if cur_vecs else None

        for c, v in zip(chunks[1:], vectors[1:]):
            nxt = np.asarray(v, dtype=np.float64) if v is not None else None
            can_merge = (
                cur_mean is not None
                and nxt is not None
                and c.end_offset - cur_start <= max_merged_size
                and cosine_similarity(cur_mean, nxt) >= similarity_threshold
            )
            if can_merge:
                cur_end = max(cur_end, c.end_offset)
                cur_vecs.append(nxt)
                cur_mean = average_embeddings(cur_vecs)
                continue

            spans.append((cur_start, cur_end, cur_vecs))
            cur_start, cur_end = c.start_offset, c.end_offset
            cur_vecs = [nxt] if nxt is not None else []
            cur_mean = nxt

        spans.append((cur_start, cur_end, cur_vecs))

        total = len(spans)
        merged: List[Tuple[TextChunk, Optional[np.ndarray]]] = []
        for i, (s, e, vecs) in enumerate(spans):
            vec = average_embeddings(vecs) if vecs else None
            merged.append((TextChunk(text=source[s:e], start_offset=s, index=i, total_chunks=total), vec))

        self.logger.debug("Semantic merge: %d chunks -> %d", len(chunks), total)
        return merged

    def semantic_chunk(
        self,
        text: str,
        max_size: int = CHUNK_DEFAULTS["max_size"],
        overlap: int = CHUNK_DEFAULTS["overlap"],
        *,
        similarity_threshold: float = 0.8,
        max_merged_size: Optional[int] = None,
        normalize_text: bool = True,
    ) -> List[Tuple[TextChunk, Optional[np.ndarray]]]:
        """Chunk, embed, then merge semantically adjacent chunks."""
        validate_chunk_params(max_size, overlap)
        source = self.normalize(text) if normalize_text else text
        indexed = self.index_document(source, max_size, overlap, normalize_text=False)
        if len(indexed) <= 1:
            return [(ic.chunk, ic.vector) for ic in indexed]

        return self.merge_similar_chunks(
            source,
            [ic.chunk for ic in indexed],
            [ic.vector for ic in indexed],
            similarity_threshold=similarity_threshold,
            max_merged_size=max_merged_size if max_merged_size is not None else 2 * max_size,
        )

    def search(
        self,
        query_text: str,
        candidates: Sequence[SearchCandidate],
        k: int = SEARCH_DEFAULTS["k"],
        min_similarity: float = SEARCH_DEFAULTS["min_similarity"],
        *,
        cancel_token: CancellationToken | None = None,
    ) -> SearchResponse:
        """
        Vector search over candidates that carry a vector. Falls back to keyword-overlap
        ranking when the query cannot be embedded or no candidate has a vector.
        """
        response = SearchResponse(query=query_text)
        if not candidates or k <= 0:
            return response

        with_vectors = [(i, c) for i, c in enumerate(candidates) if c.vector is not None]
        if with_vectors:
            try:
                query_vector = self.embed(query_text, cancel_token=cancel_token)
            except ProviderError as e:
                self.logger.warning("Query embedding failed, falling back to keyword ranking: %s", e)
                response.error = e
            else:
                ranked = self.find_similar(
                    query_vector, [(c.item, c.vector) for _, c in with_vectors], k, min_similarity
                )
                response.results = [
                    SimilarityResult(item=r.item, score=r.score, index=with_vectors[r.index][0])
                    for r in ranked
                ]
                return response
        else:
            self.logger.warning("No candidate has a vector, falling back to keyword ranking")

        response.fallback = True
        response.results = self.keyword_rank(query_text, candidates, k)
        return response

    def keyword_rank(
        self,
        query_text: str,
        candidates: Sequence[SearchCandidate],
        k: int = SEARCH_DEFAULTS["k"],
    ) -> List[SimilarityResult]:
        """Rank candidates by keyword overlap with the query; zero-overlap candidates are dropped."""
        if k <= 0:
            return []
        query_keywords = self.extract_keywords(query_text)
        if not query_keywords:
            return []

        scored = []
        for i, c in enumerate(candidates):
            score = keyword_similarity(query_keywords, self.extract_keywords(c.text))
            if score > 0.0:
                scored.append(SimilarityResult(item=c.item, score=score, index=i))
        scored.sort(key=lambda r: -r.score)
        return scored[:k]
