"""
Embedding provider client (OpenAI-compatible `/embeddings` REST endpoint).

Flow:
1) drop blank inputs (`embed` rejects them outright)
2) serve vectors already in the file cache (keyed by model + dimensions + text)
3) POST the rest in batches of `embedding.batch_size`
4) validate the response shape and vector lengths, then cache
5) if the provider fails, fall back to expired cache entries when every text has one

Any transport, HTTP or response-shape problem surfaces as `EmbeddingUnavailableError`,
so callers can keep scoring without embeddings.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

import httpx

from colleaguematch.config.settings import Settings
from colleaguematch.core.cache import FileCache
from colleaguematch.core.http import post_json

logger = logging.getLogger(__name__)

CACHE_NAMESPACE = "embeddings"


class EmbeddingUnavailableError(RuntimeError):
    """Raised when the embedding provider cannot produce vectors."""


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Anything that turns text into fixed-length vectors."""

    def embed(self, text: str) -> list[float]: ...

    def embed_batch(self, texts: list[str]) -> list[list[float]]: ...


def _parse_response(data: Any, *, expected: int, dimensions: int) -> list[list[float]]:
    items = data.get("data") if isinstance(data, dict) else None
    if not isinstance(items, list) or len(items) != expected:
        raise EmbeddingUnavailableError(
            f"Malformed embedding response: expected {expected} items, got "
            f"{len(items) if isinstance(items, list) else type(items).__name__}"
        )

    if not all(isinstance(item, dict) for item in items):
        raise EmbeddingUnavailableError("Malformed embedding response: items must be objects")
    try:
        ordered = sorted(items, key=lambda item: int(item.get("index", 0)))
    except (TypeError, ValueError) as e:
        raise EmbeddingUnavailableError("Malformed embedding response: bad item index") from e

    vectors: list[list[float]] = []
    for item in ordered:
        vector = item.get("embedding")
        if not isinstance(vector, list) or len(vector) != dimensions:
            raise EmbeddingUnavailableError(
                f"Malformed embedding vector (expected {dimensions} dimensions)"
            )
        try:
            vectors.append([float(x) for x in vector])
        except (TypeError, ValueError) as e:
            raise EmbeddingUnavailableError("Malformed embedding vector (non-numeric values)") from e
    return vectors


class EmbeddingClient:
    """Synchronous client for an OpenAI-compatible embeddings API."""

    def __init__(self, settings: Settings, cache: FileCache | None = None):
        self._settings = settings
        self._cache = cache

    @property
    def model(self) -> str:
        return self._settings.embedding.model

    @property
    def dimensions(self) -> int:
        return self._settings.embedding.dimensions

    def _cache_key(self, text: str) -> str:
        return f"{self.model}:{self.dimensions}:{text}"

    def _request(self, inputs: list[str]) -> list[list[float]]:
        cfg = self._settings.embedding
        if not cfg.api_key:
            raise EmbeddingUnavailableError("Embedding API key is not configured (set OPENAI_API_KEY)")

        payload = {"model": cfg.model, "input": inputs, "dimensions": cfg.dimensions}
        headers = {"Authorization": f"Bearer {cfg.api_key}"}
        try:
            data = post_json(
                cfg.base_url,
                payload=payload,
                headers=headers,
                timeout_seconds=self._settings.app.http_timeout_seconds,
            )
        except httpx.HTTPError as e:
            raise EmbeddingUnavailableError(f"Embedding request failed: {e}") from e
        except ValueError as e:
            raise EmbeddingUnavailableError("Embedding response was not valid JSON") from e

        return _parse_response(data, expected=len(inputs), dimensions=cfg.dimensions)

    def _stale_vectors(self, texts: list[str]) -> list[list[float]] | None:
        """Expired cache entries for every text, or None if any is missing."""
        if self._cache is None:
            return None
        out: list[list[float]] = []
        for text in texts:
            cached = self._cache.get_stale(CACHE_NAMESPACE, self._cache_key(text))
            if not isinstance(cached, list) or len(cached) != self.dimensions:
                return None
            out.append(cached)
        return out

    def embed(self, text: str) -> list[float]:
        """Embed a single text.

        Raises:
            ValueError: If `text` is empty or whitespace.
            EmbeddingUnavailableError: If the provider fails.
        """
        if not text or not text.strip():
            raise ValueError("Cannot embed empty text")
        return self.embed_batch([text])[0]

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed many texts; blank entries are dropped, order is preserved for the rest."""
        inputs = [t for t in texts if t and t.strip()]
        if not inputs:
            return []

        ttl = self._settings.embedding.cache_ttl_seconds
        vectors: list[list[float] | None] = [None] * len(inputs)
        pending: list[int] = []
        for i, text in enumerate(inputs):
            cached = None
            if self._cache is not None:
                cached = self._cache.get(CACHE_NAMESPACE, self._cache_key(text), ttl_seconds=ttl)
            if isinstance(cached, list) and len(cached) == self.dimensions:
                vectors[i] = cached
            else:
                pending.append(i)

        batch_size = self._settings.embedding.batch_size
        for start in range(0, len(pending), batch_size):
            chunk = pending[start : start + batch_size]
            try:
                fresh = self._request([inputs[i] for i in chunk])
            except EmbeddingUnavailableError:
                stale = self._stale_vectors([inputs[i] for i in chunk])
                if stale is None:
                    raise
                logger.warning(
                    "Embedding provider unavailable; serving %s expired cached vector(s)", len(chunk)
                )
                for i, vector in zip(chunk, stale):
                    vectors[i] = vector
                continue
            for i, vector in zip(chunk, fresh):
                vectors[i] = vector
                if self._cache is not None:
                    self._cache.set(CACHE_NAMESPACE, self._cache_key(inputs[i]), vector, ttl_seconds=ttl)

        if pending:
            logger.info(
                "Embedded %s text(s) via %s (%s served from cache)",
                len(pending),
                self.model,
                len(inputs) - len(pending),
            )
        return [v for v in vectors if v is not None]
