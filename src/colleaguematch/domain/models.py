"""
Domain models (Pydantic).

These types are the stable "contract" between layers:
- stored entities (`Profile`, `Club`, `ClubMembership`)
- request inputs (`MatchPreferences`, `MatchWeights`, `ExpandedQuery`)
- explainable scoring output (`MatchBreakdown`, `MatchExplanation`, `ClubRecommendation`)

Keeping them in one place gives early validation, typed refactors and consistent
JSON output across the API and the CLI.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from colleaguematch.config.settings import QueryIntent, SearchStrategy
from colleaguematch.core.vectors import parse_embedding

Visibility = Literal["public", "department", "private"]

MBTI_PATTERN = re.compile(r"^[EI][SN][TF][JP]$")

# Free-text fields in the fixed order used for embedding generation.
EMBEDDING_TEXT_FIELDS: tuple[str, ...] = (
    "collaboration_style",
    "strengths",
    "preferred_people_type",
    "work_description",
    "tech_stack",
    "interests",
    "career_goals",
)
# Free-text fields that also get a dedicated embedding slot.
SPECIALIZED_EMBEDDING_FIELDS: tuple[str, ...] = (
    "collaboration_style",
    "strengths",
    "preferred_people_type",
)


def normalize_mbti(value: str | None) -> str | None:
    """Upper-case an MBTI code; return None when it is not a valid 4-letter type."""
    if not value:
        return None
    code = value.strip().upper()
    return code if MBTI_PATTERN.match(code) else None


def dedupe_tags(tags: list[str]) -> list[str]:
    """Strip blanks and drop case-insensitive duplicates, keeping first-seen order."""
    seen: set[str] = set()
    out: list[str] = []
    for tag in tags:
        cleaned = (tag or "").strip()
        key = cleaned.lower()
        if not cleaned or key in seen:
            continue
        seen.add(key)
        out.append(cleaned)
    return out


class ProfileEmbeddings(BaseModel):
    """Up to four embedding vectors; each is absent when its source text was never supplied."""

    combined: list[float] | None = None
    collaboration_style: list[float] | None = None
    strengths: list[float] | None = None
    preferred_people_type: list[float] | None = None

    @field_validator("*", mode="before")
    @classmethod
    def _parse_stored_vector(cls, value: Any) -> list[float] | None:
        return parse_embedding(value)


class Profile(BaseModel):
    """A colleague profile: the viewer or a matching candidate."""

    user_id: str
    name: str | None = None

    department: str | None = None
    job_role: str | None = None
    office_location: str | None = None
    mbti: str | None = None
    hobbies: list[str] = Field(default_factory=list)

    collaboration_style: str | None = None
    strengths: str | None = None
    preferred_people_type: str | None = None
    work_description: str | None = None
    tech_stack: str | None = None
    interests: str | None = None
    career_goals: str | None = None

    # Only consulted by semantic search.
    living_location: str | None = None
    hometown: str | None = None
    education: str | None = None
    favorite_food: str | None = None
    age_range: str | None = None
    certifications: str | None = None
    languages: str | None = None

    embeddings: ProfileEmbeddings = Field(default_factory=ProfileEmbeddings)
    visibility: dict[str, Visibility] = Field(default_factory=dict)

    @field_validator("mbti")
    @classmethod
    def _normalize_mbti(cls, value: str | None) -> str | None:
        return normalize_mbti(value)

    @field_validator("hobbies")
    @classmethod
    def _normalize_hobbies(cls, tags: list[str]) -> list[str]:
        return dedupe_tags(tags)

    def is_private(self, field: str) -> bool:
        return self.visibility.get(field) == "private"


class MatchPreferences(BaseModel):
    """The viewer's stated preferences about whom they want to meet."""

    preferred_departments: list[str] = Field(default_factory=list)
    preferred_job_roles: list[str] = Field(default_factory=list)
    preferred_locations: list[str] = Field(default_factory=list)
    preferred_mbti_types: list[str] = Field(default_factory=list)
    prefer_cross_department: bool = False

    @field_validator("preferred_mbti_types")
    @classmethod
    def _upper_mbti(cls, values: list[str]) -> list[str]:
        return [code for code in (normalize_mbti(v) for v in values) if code]

    def has_explicit_lists(self) -> bool:
        return bool(
            self.preferred_departments
            or self.preferred_job_roles
            or self.preferred_locations
            or self.preferred_mbti_types
        )


class MatchWeights(BaseModel):
    """Optional per-request overrides for the seven compatibility weights."""

    embedding: float | None = Field(default=None, ge=0)
    tag: float | None = Field(default=None, ge=0)
    mbti: float | None = Field(default=None, ge=0)
    job_role: float | None = Field(default=None, ge=0)
    department: float | None = Field(default=None, ge=0)
    location: float | None = Field(default=None, ge=0)
    preference: float | None = Field(default=None, ge=0)


class MatchBreakdown(BaseModel):
    """Seven named component scores plus the weighted total."""

    embedding: float = Field(..., ge=0, le=1)
    tag: float = Field(..., ge=0, le=1)
    mbti: float = Field(..., ge=0, le=1)
    job_role: float = Field(..., ge=0, le=1)
    department: float = Field(..., ge=0, le=1)
    location: float = Field(..., ge=0, le=1)
    preference: float = Field(..., ge=0, le=1)
    total: float = Field(..., ge=0)
    # Per-slot similarities behind `embedding`, only for slots both profiles hold.
    embedding_slots: dict[str, float] = Field(default_factory=dict)

    def components(self) -> dict[str, float]:
        return self.model_dump(exclude={"total", "embedding_slots"})


class MatchDetail(BaseModel):
    """One UI row: a dimension label, a human-readable value and its score."""

    dimension: str
    label: str
    value: str
    score: float = Field(..., ge=0, le=1)


class MatchExplanation(BaseModel):
    summary: str
    highlights: list[str] = Field(default_factory=list)
    conversation_starters: list[str] = Field(default_factory=list)
    details: list[MatchDetail] = Field(default_factory=list)


class MatchRecommendation(BaseModel):
    """One ranked colleague: the (redacted) candidate, scores and explanation."""

    candidate: Profile
    breakdown: MatchBreakdown
    explanation: MatchExplanation


class MatchRecommendationResult(BaseModel):
    generated_at: datetime
    viewer_id: str
    results: list[MatchRecommendation]
    meta: dict[str, Any] = Field(default_factory=dict)


class Club(BaseModel):
    id: str
    name: str
    category: str | None = None
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    member_count: int = Field(0, ge=0)
    recent_activity_count: int = Field(0, ge=0)

    @field_validator("tags")
    @classmethod
    def _normalize_tags(cls, tags: list[str]) -> list[str]:
        return dedupe_tags(tags)


class ClubMembership(BaseModel):
    user_id: str
    club_id: str
    status: Literal["active", "pending", "left"] = "active"


class ClubWeights(BaseModel):
    """Optional per-request overrides for the five club weights."""

    tag_match: float | None = Field(default=None, ge=0)
    social_graph: float | None = Field(default=None, ge=0)
    member_composition: float | None = Field(default=None, ge=0)
    activity_level: float | None = Field(default=None, ge=0)
    category_preference: float | None = Field(default=None, ge=0)


class ClubBreakdown(BaseModel):
    tag_match: float = Field(..., ge=0, le=1)
    social_graph: float = Field(..., ge=0, le=1)
    member_composition: float = Field(..., ge=0, le=1)
    activity_level: float = Field(..., ge=0, le=1)
    category_preference: float = Field(..., ge=0, le=1)


class ClubRecommendation(BaseModel):
    club: Club
    breakdown: ClubBreakdown
    total: float = Field(..., ge=0)
    reasons: list[str] = Field(default_factory=list)
    social_match_count: int = Field(0, ge=0)


class ClubRecommendationResult(BaseModel):
    generated_at: datetime
    viewer_id: str
    results: list[ClubRecommendation]
    meta: dict[str, Any] = Field(default_factory=dict)


class ProfileFieldHints(BaseModel):
    """Keywords to look for inside the three personality free-text fields."""

    collaboration_style: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    preferred_people_type: list[str] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.collaboration_style or self.strengths or self.preferred_people_type)


class ExpandedQuery(BaseModel):
    """Structured hints derived from a natural-language search query."""

    original_query: str
    expanded_description: str = ""
    suggested_mbti_types: list[str] = Field(default_factory=list)
    suggested_hobby_tags: list[str] = Field(default_factory=list)
    search_keywords: list[str] = Field(default_factory=list)
    profile_field_hints: ProfileFieldHints = Field(default_factory=ProfileFieldHints)
    confidence: float = Field(0.5, ge=0, le=1)
    query_intent: QueryIntent = "general"
    intent_confidence: float = Field(0.5, ge=0, le=1)

    @field_validator("suggested_mbti_types")
    @classmethod
    def _validate_mbti(cls, values: list[str]) -> list[str]:
        out: list[str] = []
        for value in values:
            code = normalize_mbti(value)
            if code and code not in out:
                out.append(code)
        return out[:4]


class SemanticSignals(BaseModel):
    vector: float = Field(0.0, ge=0, le=1)
    profile_field: float = Field(0.0, ge=0, le=1)
    mbti: float = Field(0.0, ge=0, le=1)
    tag: float = Field(0.0, ge=0, le=1)
    text: float = Field(0.0, ge=0, le=1)


class SemanticSearchResult(BaseModel):
    profile: Profile
    score: float = Field(..., ge=0)
    signals: SemanticSignals
    reasons: list[str] = Field(default_factory=list)


class SearchResponse(BaseModel):
    generated_at: datetime
    expanded_query: ExpandedQuery
    strategy: SearchStrategy
    results: list[SemanticSearchResult]
    meta: dict[str, Any] = Field(default_factory=dict)


class MatchRecommendationRequest(BaseModel):
    """Stateless colleague recommendation request: the viewer plus a candidate pool."""

    viewer: Profile
    candidates: list[Profile] = Field(default_factory=list)
    preferences: MatchPreferences | None = None
    weights: MatchWeights | None = None
    limit: int | None = Field(default=None, ge=1)
    settings_overrides: dict[str, Any] | None = None


class ClubRecommendationRequest(BaseModel):
    viewer: Profile
    clubs: list[Club] = Field(default_factory=list)
    memberships: list[ClubMembership] = Field(default_factory=list)
    profiles: list[Profile] = Field(default_factory=list)
    # None means "derive from colleague recommendations over `profiles`".
    recommended_user_ids: list[str] | None = None
    exclude_joined: bool = True
    weights: ClubWeights | None = None
    limit: int | None = Field(default=None, ge=1)
    settings_overrides: dict[str, Any] | None = None


class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1)
    viewer_id: str | None = None
    candidates: list[Profile] = Field(default_factory=list)
    mode: Literal["expanded", "exact"] = "expanded"
    query_embedding: list[float] | None = None
    strategy: SearchStrategy | None = None
    limit: int | None = Field(default=None, ge=1)
    min_score: float | None = Field(default=None, ge=0)
    settings_overrides: dict[str, Any] | None = None
