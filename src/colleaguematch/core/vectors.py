"""
Vector math for embeddings (numpy).

Inputs and outputs stay plain Python lists so they serialize straight into the
Pydantic models and the JSON cache.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Sequence

import numpy as np

logger = logging.getLogger(__name__)


class EmbeddingDimensionError(ValueError):
    """Raised when two vectors that must be compared have different lengths."""


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between `a` and `b`, in [-1, 1].

    Returns 0.0 when either vector has zero magnitude.

    Raises:
        EmbeddingDimensionError: If the vectors differ in length.
    """
    if len(a) != len(b):
        raise EmbeddingDimensionError(f"Vector length mismatch: {len(a)} != {len(b)}")

    left = np.asarray(a, dtype=float)
    right = np.asarray(b, dtype=float)
    norm_a = np.linalg.norm(left)
    norm_b = np.linalg.norm(right)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    # Clip tiny floating point overshoot.
    return float(np.clip(np.dot(left, right) / (norm_a * norm_b), -1.0, 1.0))


def mean_vector(vectors: Sequence[Sequence[float]]) -> list[float]:
    """Element-wise arithmetic mean of equally sized vectors."""
    if not vectors:
        raise ValueError("mean_vector requires at least one vector")
    size = len(vectors[0])
    for v in vectors[1:]:
        if len(v) != size:
            raise EmbeddingDimensionError(f"Vector length mismatch: {len(v)} != {size}")

    return np.mean(np.asarray(vectors, dtype=float), axis=0).tolist()


def parse_embedding(raw: Any) -> list[float] | None:
    """Normalize a stored embedding value into a float list.

    Storage layers hand vectors back either as a list or as a JSON-encoded string
    (e.g. `"[0.1, 0.2]"`). Anything else, including malformed strings, yields None.
    """
    if raw is None:
        return None
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.warning("Discarding unparsable embedding string (len=%s)", len(raw))
            return None
    if not isinstance(raw, (list, tuple)) or not raw:
        return None
    try:
        return [float(x) for x in raw]
    except (TypeError, ValueError):
        return None
