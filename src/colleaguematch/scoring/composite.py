"""
Shared scoring utilities.

Small, reusable helpers used across feature scorers:
- `clamp01`: keep values within 0..1 for stable output
- `normalize_weights`: convert arbitrary non-negative weights into a 1.0-summing distribution
- `weighted_total`: dot product of component scores and weights
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


def clamp01(x: float) -> float:
    """Clamp a number into the [0.0, 1.0] range."""
    return max(0.0, min(1.0, float(x)))


@dataclass(frozen=True)
class ComponentResult:
    """A normalized feature score plus explainability payload."""

    score: float
    details: dict[str, Any]
    reasons: list[str]

    @classmethod
    def from_tuple(cls, result: tuple[float, dict, list[str]]) -> "ComponentResult":
        score, details, reasons = result
        return cls(score=clamp01(score), details=details, reasons=reasons)


def normalize_weights(weights: Mapping[str, float]) -> dict[str, float]:
    """Normalize a dict of weights so they sum to 1.0 (non-negative)."""
    cleaned = {k: max(0.0, float(v)) for k, v in weights.items()}
    total = sum(cleaned.values())
    if total <= 0:
        return {k: 1.0 / len(weights) for k in weights}
    return {k: v / total for k, v in cleaned.items()}


def weighted_total(scores: Mapping[str, float], weights: Mapping[str, float]) -> float:
    """Sum of `scores[name] * weights[name]`; names missing from `weights` contribute 0."""
    return sum(float(score) * float(weights.get(name, 0.0)) for name, score in scores.items())
