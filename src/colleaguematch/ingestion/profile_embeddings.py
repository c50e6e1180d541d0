"""
Profile embedding generation.

One vector per non-empty free-text field, plus a `combined` vector that is the
element-wise mean of those per-field vectors (not an embedding of the concatenated
text). Profiles without any free text fall back to a short pseudo-sentence built from
department / job role / MBTI / hobbies, embedded as `combined` only.

`regenerate_embeddings` refreshes many profiles sequentially, spaced by a rate limiter;
one profile failing never aborts the run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from hashlib import sha256
from typing import Iterable, Literal, Mapping

from colleaguematch.config.settings import Settings
from colleaguematch.core.rate_limit import TokenBucketRateLimiter
from colleaguematch.core.vectors import mean_vector
from colleaguematch.domain.models import (
    EMBEDDING_TEXT_FIELDS,
    SPECIALIZED_EMBEDDING_FIELDS,
    Profile,
    ProfileEmbeddings,
)
from colleaguematch.ingestion.embedding_client import EmbeddingProvider, EmbeddingUnavailableError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FallbackContext:
    department: str | None = None
    job_role: str | None = None
    mbti: str | None = None
    hobbies: tuple[str, ...] = ()

    @classmethod
    def from_profile(cls, profile: Profile) -> "FallbackContext":
        return cls(
            department=profile.department,
            job_role=profile.job_role,
            mbti=profile.mbti,
            hobbies=tuple(profile.hobbies),
        )


@dataclass(frozen=True)
class GeneratedEmbeddings:
    embeddings: ProfileEmbeddings
    source_text_hash: str
    source: Literal["fields", "fallback"]


@dataclass
class RegenerationReport:
    updated: list[Profile] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    throttled_seconds: float = 0.0

    def as_dict(self) -> dict[str, object]:
        return {
            "updated": len(self.updated),
            "skipped": len(self.skipped),
            "failed": len(self.failed),
            "failures": dict(self.failed),
            "throttled_seconds": round(self.throttled_seconds, 3),
        }


def text_hash(texts: Iterable[str]) -> str:
    """SHA-256 over the sorted texts joined with `|` (order-independent)."""
    return sha256("|".join(sorted(texts)).encode("utf-8")).hexdigest()


def collect_profile_texts(source: Profile | Mapping[str, str | None]) -> dict[str, str]:
    """Non-empty free-text fields, in the fixed embedding order."""
    out: dict[str, str] = {}
    for name in EMBEDDING_TEXT_FIELDS:
        value = source.get(name) if isinstance(source, Mapping) else getattr(source, name)
        if value and value.strip():
            out[name] = value.strip()
    return out


def build_fallback_text(context: FallbackContext | None) -> str | None:
    """`부서: … | 직군: … | MBTI: … | 취미: a, b` with only the parts that are present."""
    if context is None:
        return None
    parts: list[str] = []
    if context.department:
        parts.append(f"부서: {context.department}")
    if context.job_role:
        parts.append(f"직군: {context.job_role}")
    if context.mbti:
        parts.append(f"MBTI: {context.mbti}")
    if context.hobbies:
        parts.append(f"취미: {', '.join(context.hobbies)}")
    return " | ".join(parts) if parts else None


def generate_profile_embeddings(
    client: EmbeddingProvider,
    texts: Profile | Mapping[str, str | None],
    fallback: FallbackContext | None = None,
) -> GeneratedEmbeddings | None:
    """Embed a profile's free text; returns None when there is nothing to embed.

    Raises:
        EmbeddingUnavailableError: If the provider fails.
    """
    field_texts = collect_profile_texts(texts)

    if not field_texts:
        fallback_text = build_fallback_text(fallback)
        if fallback_text is None:
            return None
        vector = client.embed(fallback_text)
        return GeneratedEmbeddings(
            embeddings=ProfileEmbeddings(combined=vector),
            source_text_hash=text_hash([fallback_text]),
            source="fallback",
        )

    names = list(field_texts)
    vectors = client.embed_batch([field_texts[n] for n in names])
    if len(vectors) != len(names):
        raise EmbeddingUnavailableError(
            f"Provider returned {len(vectors)} vectors for {len(names)} texts"
        )
    by_field = dict(zip(names, vectors))

    embeddings = ProfileEmbeddings(
        combined=mean_vector(vectors),
        **{name: by_field[name] for name in SPECIALIZED_EMBEDDING_FIELDS if name in by_field},
    )
    return GeneratedEmbeddings(
        embeddings=embeddings,
        source_text_hash=text_hash(field_texts.values()),
        source="fields",
    )


def regenerate_embeddings(
    client: EmbeddingProvider,
    profiles: Iterable[Profile],
    *,
    settings: Settings,
    limiter: TokenBucketRateLimiter | None = None,
) -> RegenerationReport:
    """Recompute embeddings for every profile, one provider call at a time."""
    spacing = settings.embedding.request_spacing_seconds
    if limiter is None and spacing > 0:
        limiter = TokenBucketRateLimiter.from_spacing(spacing)

    report = RegenerationReport()
    for profile in profiles:
        context = FallbackContext.from_profile(profile)
        # Nothing to embed means no provider call, so nothing to pace.
        if not collect_profile_texts(profile) and build_fallback_text(context) is None:
            report.skipped.append(profile.user_id)
            continue

        if limiter is not None:
            report.throttled_seconds += limiter.acquire()
        try:
            generated = generate_profile_embeddings(client, profile, context)
        except (EmbeddingUnavailableError, ValueError) as e:
            logger.warning("Embedding regeneration failed for user_id=%s: %s", profile.user_id, e)
            report.failed[profile.user_id] = str(e)
            continue

        if generated is None:
            report.skipped.append(profile.user_id)
            continue
        report.updated.append(profile.model_copy(update={"embeddings": generated.embeddings}))

    logger.info("Embedding regeneration finished: %s", report.as_dict())
    return report
