"""
Colleague compatibility scoring.

Combines seven component scores into one weighted total:
embedding similarity, hobby tag overlap, MBTI, job role, department, office location
and stated-preference match. Every component lands in [0, 1]; the total is their dot
product with the weights and is not clamped.

Weight overrides are merged onto the configured defaults in `resolve_match_weights` only.
"""

from __future__ import annotations

import logging
import math
from typing import Mapping

from colleaguematch.config.settings import Settings, get_settings
from colleaguematch.domain.models import MatchBreakdown, MatchPreferences, MatchWeights, Profile
from colleaguematch.features.attributes import score_department, score_job_role, score_location
from colleaguematch.features.embedding_similarity import score_embedding_similarity
from colleaguematch.features.mbti import score_mbti
from colleaguematch.features.preference_match import score_preference_match
from colleaguematch.features.tags import score_tag_overlap
from colleaguematch.scoring.composite import ComponentResult, normalize_weights, weighted_total

logger = logging.getLogger(__name__)


def resolve_match_weights(
    settings: Settings, overrides: MatchWeights | Mapping[str, float | None] | None = None
) -> dict[str, float]:
    """Merge partial weight overrides onto the configured defaults.

    With `scoring.weight_policy == "normalize"` the merged weights are rescaled to sum
    to 1.0; with `raw` they are used as-is and a warning is logged when they do not.
    """
    weights = {k: float(v) for k, v in settings.scoring.weights.items()}

    if isinstance(overrides, MatchWeights):
        overrides = overrides.model_dump(exclude_none=True)
    for name, value in (overrides or {}).items():
        if value is None:
            continue
        if name not in weights:
            raise ValueError(f"Unknown match weight: '{name}'")
        if float(value) < 0:
            raise ValueError(f"Match weight '{name}' must be >= 0")
        weights[name] = float(value)

    if settings.scoring.weight_policy == "normalize":
        return normalize_weights(weights)

    total = sum(weights.values())
    if not math.isclose(total, 1.0, abs_tol=settings.scoring.weight_sum_tolerance):
        logger.warning("Match weights sum to %.4f (expected 1.0); totals are not rescaled", total)
    return weights


def score_components(
    user: Profile,
    candidate: Profile,
    preferences: MatchPreferences | None = None,
    *,
    settings: Settings | None = None,
) -> dict[str, ComponentResult]:
    """Run every feature scorer and return the results keyed by component name."""
    settings = settings or get_settings()
    preferences = preferences or MatchPreferences()

    return {
        "embedding": ComponentResult.from_tuple(score_embedding_similarity(user, candidate)),
        "tag": ComponentResult.from_tuple(score_tag_overlap(user, candidate)),
        "mbti": ComponentResult.from_tuple(score_mbti(user, candidate, settings=settings)),
        "job_role": ComponentResult.from_tuple(score_job_role(user, candidate, preferences=preferences)),
        "department": ComponentResult.from_tuple(
            score_department(user, candidate, preferences=preferences, settings=settings)
        ),
        "location": ComponentResult.from_tuple(score_location(user, candidate, preferences=preferences)),
        "preference": ComponentResult.from_tuple(
            score_preference_match(user, candidate, preferences=preferences)
        ),
    }


def score_compatibility(
    user: Profile,
    candidate: Profile,
    preferences: MatchPreferences | None = None,
    weights: Mapping[str, float] | None = None,
    *,
    settings: Settings | None = None,
) -> MatchBreakdown:
    """Score how well `candidate` fits `user`.

    `weights` should come from `resolve_match_weights`; when omitted the configured
    defaults are resolved. Callers are expected to redact private fields beforehand
    (see `colleaguematch.recommender.recommend.redact_private_fields`).

    Raises:
        EmbeddingDimensionError: If the two profiles carry embeddings of different lengths.
    """
    settings = settings or get_settings()
    if weights is None:
        weights = resolve_match_weights(settings)

    components = score_components(user, candidate, preferences, settings=settings)
    scores = {name: result.score for name, result in components.items()}
    return MatchBreakdown(
        **scores,
        total=weighted_total(scores, weights),
        embedding_slots=components["embedding"].details.get("slots", {}),
    )
