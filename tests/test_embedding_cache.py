# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-07
# Updated: 2026-10-18
# Description: test_embedding_cache.py
# -----------------------------------------------------------------------------
import logging
import threading

import numpy as np
import pytest

from cache.FailSafeEmbeddingCache import FailSafeEmbeddingCache
from cache.InMemoryEmbeddingCache import InMemoryEmbeddingCache
from cache.NullEmbeddingCache import NullEmbeddingCache
from fakes import ManualClock, UnreachableCache


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def cache(clock):
    return InMemoryEmbeddingCache(max_entries=None, clock=clock)


def test_get_miss_then_hit(cache):
    assert cache.get("k") == (None, False)
    cache.put("k", np.array([1.0, 2.0]), ttl=10)
    vector, found = cache.get("k")
    assert found
    assert vector.tolist() == [1.0, 2.0]


def test_entry_expires_after_ttl(cache, clock):
    cache.put("k", [1.0, 2.0], ttl=10)
    clock.advance(9)
    assert cache.get("k")[1]
    clock.advance(1)
    assert cache.get("k") == (None, False)


def test_reads_do_not_extend_ttl(cache, clock):
    cache.put("k", [1.0], ttl=10)
    for _ in range(5):
        clock.advance(3)
        cache.get("k")
    assert not cache.get("k")[1]


def test_put_resets_ttl(cache, clock):
    cache.put("k", [1.0], ttl=10)
    clock.advance(8)
    cache.put("k", [2.0], ttl=10)
    clock.advance(8)
    vector, found = cache.get("k")
    assert found
    assert vector.tolist() == [2.0]


def test_sweep_removes_expired_entries(cache, clock):
    cache.put("a", [1.0], ttl=5)
    cache.put("b", [1.0], ttl=50)
    clock.advance(10)
    assert len(cache) == 2  # expiry is lazy
    assert cache.sweep() == 1
    assert len(cache) == 1
    assert "b" in cache
    assert "a" not in cache


def test_put_sweeps_expired_entries(cache, clock):
    cache.put("a", [1.0], ttl=5)
    clock.advance(10)
    cache.put("b", [1.0], ttl=5)
    assert len(cache) == 1


def test_invalidate(cache):
    cache.put("k", [1.0], ttl=10)
    cache.invalidate("k")
    cache.invalidate("missing")
    assert cache.get("k") == (None, False)


def test_non_positive_ttl_rejected(cache):
    with pytest.raises(ValueError):
        cache.put("k", [1.0], ttl=0)


def test_stored_vector_is_an_immutable_copy(cache):
    original = np.array([1.0, 2.0, 3.0])
    cache.put("k", original, ttl=10)
    original[0] = 99.0

    vector, _ = cache.get("k")
    assert vector.tolist() == [1.0, 2.0, 3.0]
    with pytest.raises(ValueError):
        vector[0] = 5.0


def test_max_entries_evicts_oldest(clock):
    cache = InMemoryEmbeddingCache(max_entries=2, clock=clock)
    cache.put("a", [1.0], ttl=10)
    cache.put("b", [2.0], ttl=10)
    cache.put("c", [3.0], ttl=10)
    assert "a" not in cache
    assert "b" in cache and "c" in cache
    assert cache.stats()["evictions"] == 1


def test_stats_and_clear(cache, clock):
    cache.put("k", [1.0], ttl=1)
    cache.get("k")
    cache.get("nope")
    clock.advance(2)
    cache.get("k")
    stats = cache.stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 2
    assert stats["expired"] == 1
    cache.clear()
    assert len(cache) == 0


def test_concurrent_readers_never_see_torn_vectors():
    cache = InMemoryEmbeddingCache(max_entries=None)
    dims = 256
    errors = []
    stop = threading.Event()

    def writer(value: float):
        while not stop.is_set():
            cache.put("shared", np.full(dims, value), ttl=60)

    def reader():
        for _ in range(2000):
            vector, found = cache.get("shared")
            if found and not np.all(vector == vector[0]):
                errors.append(vector.copy())

    writers = [threading.Thread(target=writer, args=(float(v),)) for v in range(4)]
    readers = [threading.Thread(target=reader) for _ in range(4)]
    for t in writers + readers:
        t.start()
    for t in readers:
        t.join()
    stop.set()
    for t in writers:
        t.join()

    assert errors == []


def test_null_cache_always_misses():
    cache = NullEmbeddingCache()
    cache.put("k", [1.0], ttl=10)
    assert cache.get("k") == (None, False)


def test_fail_safe_cache_degrades_to_miss():
    inner = UnreachableCache()
    cache = FailSafeEmbeddingCache(inner)
    assert cache.get("k") == (None, False)
    cache.put("k", [1.0], ttl=10)
    cache.invalidate("k")
    assert cache.unavailable_count == 3
    assert inner.attempts == 3


def test_fail_safe_cache_passes_through(clock):
    cache = FailSafeEmbeddingCache(InMemoryEmbeddingCache(clock=clock))
    cache.put("k", [1.0], ttl=10)
    assert cache.get("k")[1]
    assert cache.unavailable_count == 0


def test_fail_safe_counter_is_exact_under_concurrency():
    quiet = logging.getLogger("fail_safe_quiet")
    quiet.setLevel(logging.ERROR)
    cache = FailSafeEmbeddingCache(UnreachableCache(), logger=quiet)

    def hammer():
        for i in range(500):
            cache.get(f"k{i}")

    threads = [threading.Thread(target=hammer) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert cache.unavailable_count == 4000
