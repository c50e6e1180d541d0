"""
On-disk JSON cache for provider results (embedding vectors).

Entries live under `cache.dir` (default `.cache/colleaguematch/`), one JSON file per
(namespace, key) named by the SHA-256 of both, wrapped in a small envelope:

    {"created_at_unix": 0, "ttl_seconds": 86400, "value": ...}

TTL is checked on read. Expired entries stay on disk so a caller can fall back to
them (`get_stale`) when the provider is down.
"""

from __future__ import annotations

import contextvars
import json
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from hashlib import sha256
from pathlib import Path
from typing import Any, Iterator

from colleaguematch.config.settings import Settings
from colleaguematch.core.env import resolve_project_path

logger = logging.getLogger(__name__)


@dataclass
class CacheStats:
    """Cache counters for one request or CLI run."""

    hits: int = 0
    misses: int = 0
    expired: int = 0
    sets: int = 0
    stale_fallbacks: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "expired": self.expired,
            "sets": self.sets,
            "stale_fallbacks": self.stale_fallbacks,
        }


_current_stats: contextvars.ContextVar[CacheStats | None] = contextvars.ContextVar(
    "colleaguematch_cache_stats", default=None
)


@contextmanager
def record_cache_stats() -> Iterator[CacheStats]:
    """Count cache activity inside the `with` block (per thread / task)."""
    stats = CacheStats()
    token = _current_stats.set(stats)
    try:
        yield stats
    finally:
        _current_stats.reset(token)


def _count(name: str) -> None:
    stats = _current_stats.get()
    if stats is not None:
        setattr(stats, name, getattr(stats, name) + 1)


class FileCache:
    """Filesystem-backed cache keyed by (namespace, key)."""

    def __init__(self, base_dir: Path, enabled: bool = True, default_ttl_seconds: int = 86400):
        self._base_dir = Path(base_dir)
        self._enabled = enabled
        self._default_ttl_seconds = default_ttl_seconds

    def _entry_path(self, namespace: str, key: str) -> Path:
        digest = sha256(f"{namespace}:{key}".encode("utf-8")).hexdigest()
        return self._base_dir / namespace / f"{digest}.json"

    def _load(self, namespace: str, key: str) -> dict[str, Any] | None:
        path = self._entry_path(namespace, key)
        if not path.exists():
            return None
        try:
            envelope = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable cache entry: %s", path)
            return None
        if not isinstance(envelope, dict) or "value" not in envelope:
            return None
        return envelope

    def get(self, namespace: str, key: str, ttl_seconds: int | None = None) -> Any | None:
        """Return the cached value, or None when missing, expired or disabled.

        `ttl_seconds` overrides the TTL stored with the entry.
        """
        if not self._enabled:
            return None

        envelope = self._load(namespace, key)
        if envelope is None:
            _count("misses")
            return None

        ttl = ttl_seconds if ttl_seconds is not None else int(envelope.get("ttl_seconds", 0))
        age = int(time.time()) - int(envelope.get("created_at_unix", 0))
        if age > ttl:
            _count("misses")
            _count("expired")
            return None

        _count("hits")
        return envelope["value"]

    def get_stale(self, namespace: str, key: str) -> Any | None:
        """Return the cached value regardless of age (counted as a stale fallback)."""
        if not self._enabled:
            return None
        envelope = self._load(namespace, key)
        if envelope is None:
            return None
        _count("stale_fallbacks")
        return envelope["value"]

    def set(self, namespace: str, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """Store a JSON-serializable value (temp file + atomic replace)."""
        if not self._enabled:
            return

        path = self._entry_path(namespace, key)
        path.parent.mkdir(parents=True, exist_ok=True)
        envelope = {
            "created_at_unix": int(time.time()),
            "ttl_seconds": int(ttl_seconds if ttl_seconds is not None else self._default_ttl_seconds),
            "value": value,
        }
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(envelope, ensure_ascii=False), encoding="utf-8")
        tmp.replace(path)
        _count("sets")


def build_file_cache(settings: Settings) -> FileCache:
    """Create the project cache from settings (relative dirs resolve against the repo root)."""
    return FileCache(
        base_dir=resolve_project_path(settings.cache.dir),
        enabled=settings.cache.enabled,
        default_ttl_seconds=settings.cache.default_ttl_seconds,
    )
