"""
API routes.

Endpoints (all stateless: callers send the profiles/clubs to score):
- POST `/api/matches/recommendations`: ranked colleagues with explanations.
- POST `/api/clubs/recommendations`: ranked clubs with reasons.
- POST `/api/search`: semantic search over a candidate list.
- GET  `/api/settings`: tuning knobs for clients (secrets removed).
- GET  `/healthz`: liveness check.

Invalid input raises `ValueError` in the recommender and becomes HTTP 400 here.
"""

from __future__ import annotations

import logging
from typing import Callable

from fastapi import APIRouter, HTTPException

from colleaguematch.config.settings import get_settings
from colleaguematch.core.cache import build_file_cache, record_cache_stats
from colleaguematch.domain.models import (
    ClubRecommendationRequest,
    ClubRecommendationResult,
    MatchRecommendationRequest,
    MatchRecommendationResult,
    SearchRequest,
    SearchResponse,
)
from colleaguematch.ingestion.embedding_client import EmbeddingClient
from colleaguematch.recommender.recommend import (
    recommend_clubs_for_request,
    recommend_colleagues_for_request,
    search_colleagues,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _bad_request(e: ValueError) -> HTTPException:
    return HTTPException(status_code=400, detail={"code": "VALIDATION_ERROR", "message": str(e)})


def _query_embedder() -> Callable[[str], list[float]] | None:
    """Embedding function for search queries, or None when no API key is configured."""
    settings = get_settings()
    if not settings.embedding.api_key:
        return None
    return EmbeddingClient(settings, build_file_cache(settings)).embed


@router.get("/healthz")
def healthz() -> dict:
    return {"status": "ok"}


@router.post("/api/matches/recommendations", response_model=MatchRecommendationResult)
def post_match_recommendations(request: MatchRecommendationRequest) -> MatchRecommendationResult:
    """Score every candidate against the viewer and return the top matches."""
    try:
        return recommend_colleagues_for_request(request, settings=get_settings())
    except ValueError as e:
        raise _bad_request(e) from e


@router.post("/api/clubs/recommendations", response_model=ClubRecommendationResult)
def post_club_recommendations(request: ClubRecommendationRequest) -> ClubRecommendationResult:
    """Score clubs for the viewer (joined clubs are excluded unless `exclude_joined` is false)."""
    try:
        return recommend_clubs_for_request(request, settings=get_settings())
    except ValueError as e:
        raise _bad_request(e) from e


@router.post("/api/search", response_model=SearchResponse)
def post_search(request: SearchRequest) -> SearchResponse:
    """Semantic search; the query is embedded server-side when the request has no vector."""
    embed_query = _query_embedder() if request.query_embedding is None else None
    try:
        with record_cache_stats() as stats:
            result = search_colleagues(request, settings=get_settings(), embed_query=embed_query)
    except ValueError as e:
        raise _bad_request(e) from e
    return result.model_copy(update={"meta": {**result.meta, "cache": stats.as_dict()}})


@router.get("/api/settings")
def get_public_settings() -> dict:
    """Return safe-to-expose settings (credentials and provider URL removed)."""
    data = get_settings().model_dump(mode="json")
    embedding = data.get("embedding", {})
    embedding.pop("api_key", None)
    embedding.pop("base_url", None)

    return {
        "app": {"name": data.get("app", {}).get("name")},
        "embedding": embedding,
        "scoring": data.get("scoring", {}),
        "explain": data.get("explain", {}),
        "clubs": data.get("clubs", {}),
        "search": data.get("search", {}),
    }
