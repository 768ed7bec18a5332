# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-05
# Description: fakes.py - in-process providers / caches / clocks for unit tests
# -----------------------------------------------------------------------------
import threading
import time
from typing import Dict, List, Optional, Sequence

from errors.RetrievalErrors import CacheUnavailableError


def default_vector(text: str) -> List[float]:
    """Deterministic 3-d vector for a text."""
    return [float(len(text)), float(sum(map(ord, text)) % 97 + 1), 1.0]


class ScriptedProvider:
    """
    Single-text provider.
      vectors:  text -> vector to return (else default_vector)
      failures: text -> exception (always raised) or list of exceptions (raised in turn, then succeed)
      delays:   text -> seconds to sleep before answering
      gates:    text -> threading.Event to block on before answering
    """

    def __init__(
        self,
        vectors: Optional[Dict[str, Sequence[float]]] = None,
        *,
        failures: Optional[Dict[str, object]] = None,
        delays: Optional[Dict[str, float]] = None,
        gates: Optional[Dict[str, threading.Event]] = None,
    ):
        self.vectors = dict(vectors or {})
        self.failures = dict(failures or {})
        self.delays = dict(delays or {})
        self.gates = dict(gates or {})
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def _answer(self, text: str) -> Sequence[float]:
        gate = self.gates.get(text)
        if gate is not None:
            gate.wait(5.0)
        delay = self.delays.get(text)
        if delay:
            time.sleep(delay)

        with self._lock:
            script = self.failures.get(text)
            if isinstance(script, list):
                if script:
                    raise script.pop(0)
            elif script is not None:
                raise script

        return self.vectors.get(text, default_vector(text))

    def embed(self, text: str) -> Sequence[float]:
        with self._lock:
            self.calls.append(text)
        return self._answer(text)

    def calls_for(self, text: str) -> int:
        with self._lock:
            return self.calls.count(text)

    def __repr__(self) -> str:
        return "ScriptedProvider()"


class ScriptedBatchProvider(ScriptedProvider):
    """Adds embed_many; `batch_failures` are raised by successive embed_many calls."""

    def __init__(self, *args, batch_failures: Optional[List[Exception]] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.batch_failures = list(batch_failures or [])
        self.batch_calls: List[List[str]] = []

    def embed_many(self, texts: List[str]) -> List[Sequence[float]]:
        with self._lock:
            self.batch_calls.append(list(texts))
            if self.batch_failures:
                raise self.batch_failures.pop(0)
        return [self._answer(t) for t in texts]


class ManualClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class UnreachableCache:
    """Cache whose backing store is always down."""

    def __init__(self):
        self.attempts = 0

    def get(self, key):
        self.attempts += 1
        raise CacheUnavailableError("cache service unreachable")

    def put(self, key, vector, ttl):
        self.attempts += 1
        raise CacheUnavailableError("cache service unreachable")

    def invalidate(self, key):
        self.attempts += 1
        raise CacheUnavailableError("cache service unreachable")
