# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-09-28
# Updated: 2026-10-18
# Description: settings.py
# -----------------------------------------------------------------------------
import os
from typing import Any, Dict


def _env(name: str, default: str = "") -> str:
    """Read env var safely and strip whitespace."""
    return (os.getenv(name) or default).strip()


def _env_int(name: str, default: int) -> int:
    v = _env(name, "")
    if v == "":
        return default
    try:
        return int(v)
    except ValueError as e:
        raise RuntimeError(f"Env var {name} must be an int, got {v!r}") from e


def _env_float(name: str, default: float) -> float:
    v = _env(name, "")
    if v == "":
        return default
    try:
        return float(v)
    except ValueError as e:
        raise RuntimeError(f"Env var {name} must be a float, got {v!r}") from e


def _env_bool(name: str, default: bool) -> bool:
    v = _env(name, "")
    if v == "":
        return default
    v = v.lower()
    if v in ("1", "true", "t", "yes", "y", "on"):
        return True
    if v in ("0", "false", "f", "no", "n", "off"):
        return False
    raise RuntimeError(f"Env var {name} must be a boolean, got {v!r}")


# -----------------------------------------------------------------------------
# Chunking (characters, not tokens)
# -----------------------------------------------------------------------------
CHUNK_DEFAULTS: Dict[str, Any] = {
    "max_size": _env_int("GRANT_CHUNK_MAX_SIZE", 1000),
    "overlap": _env_int("GRANT_CHUNK_OVERLAP", 200),
    # characters | sentences | paragraphs
    "mode": _env("GRANT_CHUNK_MODE", "characters").lower(),
}


# -----------------------------------------------------------------------------
# Embedding orchestration
# -----------------------------------------------------------------------------
EMBED_DEFAULTS: Dict[str, Any] = {
    # 0 = derive from the model (3-small / ada-002 -> 1536, 3-large -> 3072)
    "dimensions": _env_int("GRANT_EMBED_DIMENSIONS", 0),
    "batch_size": _env_int("GRANT_EMBED_BATCH_SIZE", 100),
    "max_concurrency": _env_int("GRANT_EMBED_MAX_CONCURRENCY", 8),
    "request_timeout": _env_float("GRANT_EMBED_REQUEST_TIMEOUT", 30.0),
    "max_retries": _env_int("GRANT_EMBED_MAX_RETRIES", 3),
    "backoff_initial": _env_float("GRANT_EMBED_BACKOFF_INITIAL", 0.8),
    "backoff_factor": _env_float("GRANT_EMBED_BACKOFF_FACTOR", 1.7),
    "backoff_max": _env_float("GRANT_EMBED_BACKOFF_MAX", 10.0),
}


# -----------------------------------------------------------------------------
# Embedding cache (in-process)
# -----------------------------------------------------------------------------
CACHE_ENABLED = _env_bool("GRANT_CACHE_ENABLED", True)

CACHE_DEFAULTS: Dict[str, Any] = {
    "ttl_seconds": _env_float("GRANT_CACHE_TTL_SECONDS", 3600.0),
    # 0 means unbounded
    "max_entries": _env_int("GRANT_CACHE_MAX_ENTRIES", 10000),
}


# -----------------------------------------------------------------------------
# Search / ranking
# -----------------------------------------------------------------------------
SEARCH_DEFAULTS: Dict[str, Any] = {
    "k": _env_int("GRANT_SEARCH_K", 5),
    "min_similarity": _env_float("GRANT_SEARCH_MIN_SIMILARITY", 0.7),
}

KEYWORD_DEFAULTS: Dict[str, Any] = {
    "min_length": _env_int("GRANT_KEYWORD_MIN_LENGTH", 3),
    # 0 means "return every term"
    "limit": _env_int("GRANT_KEYWORD_LIMIT", 0),
}


# -----------------------------------------------------------------------------
# Sanity checks (tunable)
# -----------------------------------------------------------------------------
if CHUNK_DEFAULTS["max_size"] <= 0:
    raise RuntimeError("GRANT_CHUNK_MAX_SIZE must be > 0")

if not 0 <= CHUNK_DEFAULTS["overlap"] < CHUNK_DEFAULTS["max_size"]:
    raise RuntimeError(
        f"GRANT_CHUNK_OVERLAP must be in [0, {CHUNK_DEFAULTS['max_size']}), "
        f"got {CHUNK_DEFAULTS['overlap']}"
    )

if CHUNK_DEFAULTS["mode"] not in ("characters", "sentences", "paragraphs"):
    raise RuntimeError(
        f"GRANT_CHUNK_MODE must be characters, sentences or paragraphs, got {CHUNK_DEFAULTS['mode']!r}"
    )

if EMBED_DEFAULTS["dimensions"] < 0:
    raise RuntimeError("GRANT_EMBED_DIMENSIONS must be >= 0")

for _name in ("batch_size", "max_concurrency"):
    if EMBED_DEFAULTS[_name] <= 0:
        raise RuntimeError(f"EMBED_DEFAULTS[{_name!r}] must be > 0")

if EMBED_DEFAULTS["request_timeout"] <= 0:
    raise RuntimeError("GRANT_EMBED_REQUEST_TIMEOUT must be > 0")

if EMBED_DEFAULTS["max_retries"] < 0:
    raise RuntimeError("GRANT_EMBED_MAX_RETRIES must be >= 0")

if CACHE_DEFAULTS["ttl_seconds"] <= 0:
    raise RuntimeError("GRANT_CACHE_TTL_SECONDS must be > 0")

if not -1.0 <= SEARCH_DEFAULTS["min_similarity"] <= 1.0:
    raise RuntimeError("GRANT_SEARCH_MIN_SIMILARITY must be within [-1, 1]")
