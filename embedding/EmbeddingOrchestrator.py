# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-02
# Updated: 2026-10-18
# Description: EmbeddingOrchestrator
# -----------------------------------------------------------------------------
import hashlib
import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set

import numpy as np

from cache.EmbeddingCache import EmbeddingCache
from cache.FailSafeEmbeddingCache import FailSafeEmbeddingCache
from cache.InMemoryEmbeddingCache import InMemoryEmbeddingCache
from cache.NullEmbeddingCache import NullEmbeddingCache
from embedding.CancellationToken import CancellationToken
from embedding.EmbeddingProvider import BatchEmbeddingProvider, EmbeddingProvider
from embedding.EmbeddingModels import embedding_dimensions
from embedding.EmbeddingResult import BatchSummary, EmbeddingResult
from embedding.Vector import as_vector
from errors.RetrievalErrors import (
    ConfigurationError,
    EmbeddingCancelledError,
    EmbeddingValidationError,
    ProviderError,
    ProviderPermanentError,
    ProviderTimeoutError,
)
from normalization.TextNormalizer import TextNormalizer
from settings import CACHE_DEFAULTS, CACHE_ENABLED, EMBED_DEFAULTS
from utility.logging_utils import get_class_logger

# upper bound on how long the scheduler blocks before re-checking cancellation
_POLL_INTERVAL = 0.05


@dataclass
class _Job:
    """One provider request: a single text, or a whole group for batch providers."""
    keys: List[str]
    texts: List[str]
    batch: bool = False
    attempts: int = 0
    ready_at: float = 0.0
    deadline: Optional[float] = None


@dataclass
class _Outcome:
    vector: Optional[np.ndarray] = None
    error: Optional[Exception] = None
    attempts: int = 0


@dataclass
class _Pending:
    key: str
    text: str
    slots: List[int] = field(default_factory=list)


class EmbeddingOrchestrator:
    """
    Cache-aware embedding front door.

    embed(text)                 -> vector, or raises the provider/validation error
    embed_batch(texts, size)    -> one EmbeddingResult per input, in input order

    Misses are grouped into batches of at most `batch_size` and sent to the provider on
    a shared thread pool (fan-out bounded by `max_concurrency`). Every attempt has a
    deadline (`request_timeout`, counted from submission); transient failures are retried
    with exponential backoff up to `max_retries`, permanent ones are final. One item
    failing never affects another item's slot.

    A provider call that never returns cannot be interrupted from Python. The attempt is
    abandoned at its deadline and, once every worker is held by such calls, the pool is
    swapped for a fresh one so later attempts and later callers are not starved.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        cache: Optional[EmbeddingCache] = None,
        *,
        dimensions: Optional[int] = EMBED_DEFAULTS["dimensions"] or None,
        batch_size: int = EMBED_DEFAULTS["batch_size"],
        ttl_seconds: float = CACHE_DEFAULTS["ttl_seconds"],
        max_retries: int = EMBED_DEFAULTS["max_retries"],
        backoff_initial: float = EMBED_DEFAULTS["backoff_initial"],
        backoff_factor: float = EMBED_DEFAULTS["backoff_factor"],
        backoff_max: float = EMBED_DEFAULTS["backoff_max"],
        request_timeout: float = EMBED_DEFAULTS["request_timeout"],
        max_concurrency: int = EMBED_DEFAULTS["max_concurrency"],
        use_batch_calls: bool = True,
        normalizer: Optional[TextNormalizer] = None,
        logger: logging.Logger | None = None,
    ):
        if max_concurrency <= 0:
            raise ConfigurationError(f"max_concurrency must be > 0, got {max_concurrency}")
        if request_timeout <= 0:
            raise ConfigurationError(f"request_timeout must be > 0, got {request_timeout}")
        if max_retries < 0:
            raise ConfigurationError(f"max_retries must be >= 0, got {max_retries}")
        if ttl_seconds <= 0:
            raise ConfigurationError(f"ttl_seconds must be > 0, got {ttl_seconds}")
        self._check_batch_size(batch_size)

        self.provider = provider
        if cache is None:
            cache = InMemoryEmbeddingCache() if CACHE_ENABLED else NullEmbeddingCache()
        self.cache = cache if isinstance(cache, FailSafeEmbeddingCache) else FailSafeEmbeddingCache(cache)

        # dimensions: explicit, else what the provider/model declares, else pinned by the first vector
        if dimensions is None:
            model = getattr(provider, "model", None)
            dimensions = getattr(provider, "dimensions", None) or (
                embedding_dimensions(model) if model else None
            )
        self.dimensions = dimensions
        self._dims_lock = threading.Lock()
        self.batch_size = batch_size
        self.ttl_seconds = ttl_seconds
        self.max_retries = max_retries
        self.backoff_initial = backoff_initial
        self.backoff_factor = backoff_factor
        self.backoff_max = backoff_max
        self.request_timeout = request_timeout
        self.max_concurrency = max_concurrency
        self.use_batch_calls = use_batch_calls and isinstance(provider, BatchEmbeddingProvider)
        self.normalizer = normalizer or TextNormalizer()
        self.logger = logger or get_class_logger(self.__class__)

        self._key_prefix = getattr(provider, "model", None) or ""
        self._pool_lock = threading.Lock()
        self._executor = self._new_executor()
        # attempts we stopped waiting for that still hold a worker thread
        self._abandoned: Set[Future] = set()
        self._summary_lock = threading.Lock()
        self.last_summary = BatchSummary()

        self.logger.info(
            "EmbeddingOrchestrator ready: provider=%r dims=%s batch_size=%d concurrency=%d "
            "timeout=%.1fs retries=%d batch_calls=%s",
            provider,
            dimensions,
            batch_size,
            max_concurrency,
            request_timeout,
            max_retries,
            self.use_batch_calls,
        )

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------
    def close(self) -> None:
        with self._pool_lock:
            self._executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> "EmbeddingOrchestrator":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    def fingerprint(self, text: str) -> str:
        """Cache key: SHA-256 of the normalized text, namespaced by model."""
        return self._key(self.normalizer.normalize(text))

    def embed(self, text: str, *, cancel_token: Optional[CancellationToken] = None) -> np.ndarray:
        result = self.embed_batch([text], batch_size=1, cancel_token=cancel_token)[0]
        return result.unwrap()

    def embed_batch(
        self,
        texts: Sequence[str],
        batch_size: Optional[int] = None,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> List[EmbeddingResult]:
        if isinstance(texts, (str, bytes)):
            raise ConfigurationError("embed_batch expects a sequence of texts, not a single string")
        batch_size = self.batch_size if batch_size is None else batch_size
        self._check_batch_size(batch_size)

        texts = list(texts)
        token = cancel_token or CancellationToken()
        summary = BatchSummary(requested=len(texts))
        results: List[Optional[EmbeddingResult]] = [None] * len(texts)

        # 1) validate + dedupe by fingerprint (first occurrence wins the provider text)
        pending: Dict[str, _Pending] = {}
        for i, text in enumerate(texts):
            if not isinstance(text, str):
                results[i] = self._failed(i, text, EmbeddingValidationError(
                    f"Text must be str, got {type(text).__name__}"))
                continue
            normalized = self.normalizer.normalize(text)
            if not normalized:
                results[i] = self._failed(i, text, EmbeddingValidationError("Text cannot be empty"))
                continue
            key = self._key(normalized)
            entry = pending.setdefault(key, _Pending(key=key, text=text.strip()))
            entry.slots.append(i)
        summary.unique = len(pending)

        # 2) cache lookups
        misses: List[_Pending] = []
        for entry in pending.values():
            vector = self._cache_lookup(entry.key)
            if vector is None:
                misses.append(entry)
                continue
            summary.cache_hits += 1
            for i in entry.slots:
                results[i] = EmbeddingResult(index=i, text=texts[i], vector=vector, cached=True)

        # 3) provider calls for misses, group by group
        groups = [misses[g:g + batch_size] for g in range(0, len(misses), batch_size)]
        for n, group in enumerate(groups, start=1):
            if token.cancelled:
                outcomes = {e.key: _Outcome(error=EmbeddingCancelledError("Request cancelled")) for e in group}
            else:
                self.logger.debug("Embedding group %d/%d (%d texts)", n, len(groups), len(group))
                outcomes = self._run_group(group, token, summary)

            for entry in group:
                outcome = outcomes[entry.key]
                if outcome.vector is not None:
                    self.cache.put(entry.key, outcome.vector, self.ttl_seconds)
                for i in entry.slots:
                    results[i] = EmbeddingResult(
                        index=i,
                        text=texts[i],
                        vector=outcome.vector,
                        error=outcome.error,
                        attempts=outcome.attempts,
                    )

        final: List[EmbeddingResult] = [r for r in results if r is not None]
        summary.succeeded = sum(1 for r in final if r.ok)
        summary.failed = len(final) - summary.succeeded
        summary.cancelled = token.cancelled
        with self._summary_lock:
            self.last_summary = summary

        log = self.logger.warning if summary.failed else self.logger.info
        log(
            "Embedded %d texts (%d unique): %d cache hits, %d provider calls, %d retries, "
            "%d succeeded, %d failed%s",
            summary.requested,
            summary.unique,
            summary.cache_hits,
            summary.provider_calls,
            summary.retries,
            summary.succeeded,
            summary.failed,
            " (cancelled)" if summary.cancelled else "",
        )
        return final

    # ------------------------------------------------------------------
    # internals
    # ------------------------------------------------------------------
    @staticmethod
    def _check_batch_size(batch_size: int) -> None:
        if not isinstance(batch_size, int) or isinstance(batch_size, bool) or batch_size <= 0:
            raise ConfigurationError(f"batch_size must be a positive int, got {batch_size!r}")

    def _key(self, normalized: str) -> str:
        digest = hashlib.sha256(normalized.encode("utf-8")).hexdigest()
        return f"{self._key_prefix}:{digest}" if self._key_prefix else digest

    @staticmethod
    def _failed(index: int, text, error: Exception) -> EmbeddingResult:
        return EmbeddingResult(index=index, text=text if isinstance(text, str) else repr(text), error=error)

    def _cache_lookup(self, key: str) -> Optional[np.ndarray]:
        vector, found = self.cache.get(key)
        if not found or vector is None:
            return None
        if self.dimensions is not None and len(vector) != self.dimensions:
            self.logger.warning(
                "Dropping cached vector with %d dims (expected %d) for key %s",
                len(vector),
                self.dimensions,
                key,
            )
            self.cache.invalidate(key)
            return None
        return vector

    def _backoff(self, attempts: int) -> float:
        return min(self.backoff_max, self.backoff_initial * (self.backoff_factor ** max(0, attempts - 1)))

    def _new_executor(self) -> ThreadPoolExecutor:
        return ThreadPoolExecutor(
            max_workers=self.max_concurrency,
            thread_name_prefix="embed_worker",
        )

    def _submit(self, job: _Job) -> Future:
        """
        Submit one attempt to the shared pool. If every worker is held by an abandoned
        (hung) call, the pool is replaced so new attempts can start; the old threads
        exit on their own once their calls return.
        """
        with self._pool_lock:
            if len(self._abandoned) >= self.max_concurrency:
                self.logger.warning(
                    "All %d embedding workers are held by abandoned calls; starting a fresh pool",
                    len(self._abandoned),
                )
                self._executor.shutdown(wait=False)
                self._executor = self._new_executor()
                self._abandoned.clear()
            return self._executor.submit(self._call, job)

    def _abandon(self, fut: Future) -> None:
        """Stop waiting for an attempt. A queued attempt is dropped; a running one is tracked until it returns."""
        if fut.cancel():
            return
        with self._pool_lock:
            self._abandoned.add(fut)
        fut.add_done_callback(self._release)

    def _release(self, fut: Future) -> None:
        with self._pool_lock:
            self._abandoned.discard(fut)

    def _call(self, job: _Job) -> List[Sequence[float]]:
        if job.batch:
            return list(self.provider.embed_many(list(job.texts)))
        return [self.provider.embed(job.texts[0])]

    def _run_group(
        self,
        group: List[_Pending],
        token: CancellationToken,
        summary: BatchSummary,
    ) -> Dict[str, _Outcome]:
        """
        Schedule provider attempts for one group until every key has an outcome,
        the caller cancels, or retries run out.
        """
        outcomes: Dict[str, _Outcome] = {}
        attempts: Dict[str, int] = {e.key: 0 for e in group}

        if self.use_batch_calls and len(group) > 1:
            waiting = [_Job(keys=[e.key for e in group], texts=[e.text for e in group], batch=True)]
        else:
            waiting = [_Job(keys=[e.key], texts=[e.text]) for e in group]
        running: Dict[Future, _Job] = {}

        def settle_error(job: _Job, error: Exception, now: float) -> None:
            transient = isinstance(error, ProviderError) and error.transient
            if transient and job.attempts <= self.max_retries:
                delay = self._backoff(job.attempts)
                summary.retries += 1
                self.logger.warning(
                    "Embedding attempt %d/%d failed for %d text(s), retrying in %.2fs: %s",
                    job.attempts,
                    self.max_retries + 1,
                    len(job.keys),
                    delay,
                    error,
                )
                job.ready_at = now + delay
                job.deadline = None
                waiting.append(job)
            elif job.batch:
                # isolate the failure: each text gets its own request and its own result
                self.logger.warning(
                    "Batch embedding of %d texts failed (%s); falling back to single calls",
                    len(job.keys),
                    error,
                )
                waiting.extend(
                    _Job(keys=[k], texts=[t], ready_at=now) for k, t in zip(job.keys, job.texts)
                )
            else:
                key = job.keys[0]
                self.logger.error(
                    "Embedding failed after %d attempt(s) (%s): %s",
                    attempts[key],
                    "transient" if transient else "permanent",
                    error,
                )
                outcomes[key] = _Outcome(error=error, attempts=attempts[key])

        def settle_success(job: _Job, raw_vectors: List[Sequence[float]], now: float) -> None:
            if len(raw_vectors) != len(job.keys):
                settle_error(
                    job,
                    ProviderPermanentError(
                        f"Provider returned {len(raw_vectors)} vectors for {len(job.keys)} texts"
                    ),
                    now,
                )
                return
            for key, raw in zip(job.keys, raw_vectors):
                try:
                    vector = as_vector(raw, self.dimensions)
                    if self.dimensions is None:
                        with self._dims_lock:
                            if self.dimensions is None:
                                self.dimensions = int(vector.shape[0])
                                self.logger.info("Embedding dimensionality pinned to %d", self.dimensions)
                        vector = as_vector(vector, self.dimensions)
                    outcomes[key] = _Outcome(vector=vector, attempts=attempts[key])
                except EmbeddingValidationError as e:
                    self.logger.error("Provider returned an invalid embedding: %s", e)
                    outcomes[key] = _Outcome(error=e, attempts=attempts[key])

        while waiting or running:
            now = time.monotonic()

            if token.cancelled:
                for fut in running:
                    self._abandon(fut)
                running.clear()
                waiting.clear()
                break

            # submit whatever is due, within the fan-out limit
            for job in sorted((j for j in waiting if j.ready_at <= now), key=lambda j: j.ready_at):
                if len(running) >= self.max_concurrency:
                    break
                waiting.remove(job)
                job.attempts += 1
                for key in job.keys:
                    attempts[key] += 1
                summary.provider_calls += 1
                # deadline counts from submission, so an attempt queued behind a hung worker still expires
                job.deadline = now + self.request_timeout
                running[self._submit(job)] = job

            # how long we may block: next deadline, next due retry, or the poll interval
            timeout = _POLL_INTERVAL
            for job in running.values():
                if job.deadline is not None:
                    timeout = min(timeout, job.deadline - now)
            if len(running) < self.max_concurrency:
                for job in waiting:
                    timeout = min(timeout, job.ready_at - now)
            timeout = max(0.0, timeout)

            if running:
                done, _ = wait(list(running), timeout=timeout, return_when=FIRST_COMPLETED)
            else:
                token.wait(timeout)
                done = set()

            now = time.monotonic()
            for fut in done:
                job = running.pop(fut)
                try:
                    raw_vectors = fut.result()
                except ProviderError as e:
                    settle_error(job, e, now)
                except Exception as e:
                    settle_error(job, ProviderPermanentError(f"Unexpected provider failure: {e!r}", cause=e), now)
                else:
                    settle_success(job, raw_vectors, now)

            # abandon attempts that overran their deadline; the worker finishes in the background
            for fut, job in list(running.items()):
                if job.deadline is not None and now >= job.deadline:
                    running.pop(fut)
                    self._abandon(fut)
                    settle_error(
                        job,
                        ProviderTimeoutError(f"Embedding request exceeded {self.request_timeout:.1f}s"),
                        now,
                    )

        for entry in group:
            if entry.key not in outcomes:
                outcomes[entry.key] = _Outcome(
                    error=EmbeddingCancelledError("Request cancelled before the embedding completed"),
                    attempts=attempts[entry.key],
                )
        return outcomes
