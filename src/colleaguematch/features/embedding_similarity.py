"""
Embedding similarity between two profiles.

Each slot both profiles hold contributes `(cosine + 1) / 2`, mapping [-1, 1] onto [0, 1];
the score is the mean over contributing slots. The combined slot is always tried, the
specialized slots (collaboration style, strengths, preferred people type) only when both
sides carry them. No shared slot scores 0.0.

Vectors of different lengths raise `EmbeddingDimensionError`: that is a data bug, not a
missing-data case.
"""

from __future__ import annotations

from colleaguematch.domain.models import Profile, SPECIALIZED_EMBEDDING_FIELDS
from colleaguematch.core.vectors import cosine_similarity

EMBEDDING_SLOTS: tuple[str, ...] = ("combined", *SPECIALIZED_EMBEDDING_FIELDS)


def score_embedding_similarity(user: Profile, candidate: Profile) -> tuple[float, dict, list[str]]:
    slot_scores: dict[str, float] = {}
    for slot in EMBEDDING_SLOTS:
        left = getattr(user.embeddings, slot)
        right = getattr(candidate.embeddings, slot)
        if left is None or right is None:
            continue
        slot_scores[slot] = (cosine_similarity(left, right) + 1.0) / 2.0

    score = sum(slot_scores.values()) / len(slot_scores) if slot_scores else 0.0
    details = {"slots": slot_scores}
    return score, details, []
