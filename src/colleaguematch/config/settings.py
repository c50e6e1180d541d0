# src/colleaguematch/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/colleaguematch/config/defaults.yaml`, or from the complete YAML
file named by `COLLEAGUEMATCH_CONFIG_PATH` instead, then overridden by environment variables
(e.g., `OPENAI_API_KEY`, `COLLEAGUEMATCH_LOG_LEVEL`).

The model defaults mirror `defaults.yaml`, so a bare `Settings()` is usable as-is.

Design rule:
- Tuning knobs (weights, thresholds, keyword tables) live in YAML, not hard-coded in scoring code.
"""

from __future__ import annotations

import os
from copy import deepcopy
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field

from colleaguematch.core.env import load_dotenv_if_present

MatchComponentName = Literal[
    "embedding", "tag", "mbti", "job_role", "department", "location", "preference"
]
ClubComponentName = Literal[
    "tag_match", "social_graph", "member_composition", "activity_level", "category_preference"
]
SearchSignalName = Literal["vector", "profile_field", "mbti", "tag", "text"]
QueryIntent = Literal["personality", "skill", "hobby", "mbti", "department", "general"]
SearchStrategy = Literal["text_heavy", "balanced", "vector_heavy"]


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `colleaguematch.config`."""
    text = resources.files("colleaguematch.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "colleaguematch"
    http_timeout_seconds: float = 15
    log_level: str = "INFO"


class CacheSettings(BaseModel):
    enabled: bool = True
    dir: str = ".cache/colleaguematch"
    default_ttl_seconds: int = 60 * 60 * 24


class DatasetSettings(BaseModel):
    path: str = "data/dataset.json"


class EmbeddingSettings(BaseModel):
    base_url: str = "https://api.openai.com/v1/embeddings"
    model: str = "text-embedding-3-small"
    dimensions: int = Field(1536, ge=1)
    api_key: str | None = None
    batch_size: int = Field(100, ge=1)
    cache_ttl_seconds: int = 60 * 60 * 24 * 30
    request_spacing_seconds: float = Field(0.35, ge=0)


class MbtiScoreSettings(BaseModel):
    exact: float = Field(1.0, ge=0, le=1)
    three_letters: float = Field(0.7, ge=0, le=1)
    first_letter: float = Field(0.3, ge=0, le=1)


class CrossDepartmentSettings(BaseModel):
    different: float = Field(1.0, ge=0, le=1)
    same: float = Field(0.0, ge=0, le=1)


class ScoringSettings(BaseModel):
    weights: dict[MatchComponentName, float] = Field(
        default_factory=lambda: {
            "embedding": 0.30,
            "tag": 0.25,
            "mbti": 0.12,
            "job_role": 0.10,
            "department": 0.08,
            "location": 0.05,
            "preference": 0.10,
        }
    )
    weight_policy: Literal["raw", "normalize"] = "raw"
    weight_sum_tolerance: float = Field(1e-6, ge=0)
    mbti: MbtiScoreSettings = Field(default_factory=MbtiScoreSettings)
    cross_department: CrossDepartmentSettings = Field(default_factory=CrossDepartmentSettings)
    top_n_default: int = Field(10, ge=1)
    max_results: int = Field(50, ge=1)
    candidate_pool_limit: int = Field(100, ge=1)


class ExplainSettings(BaseModel):
    notable_thresholds: dict[MatchComponentName, float] = Field(
        default_factory=lambda: {
            "embedding": 0.6,
            "tag": 0.3,
            "mbti": 0.7,
            "job_role": 0.8,
            "department": 0.8,
            "location": 0.8,
            "preference": 0.7,
        }
    )
    # Specialized embedding slots explained on their own; a slot must score above its threshold.
    slot_thresholds: dict[str, float] = Field(
        default_factory=lambda: {"collaboration_style": 0.6, "strengths": 0.5}
    )
    max_highlights: int = Field(3, ge=1)
    max_conversation_starters: int = Field(3, ge=1)


class ActivityStep(BaseModel):
    min_count: int = Field(..., ge=1)
    score: float = Field(..., ge=0, le=1)


class ClubReasonThresholds(BaseModel):
    tag_match: float = 0.5
    member_composition: float = 0.5
    activity_level: float = 0.6
    category_preference: float = 0.5


_CLUB_CATEGORY_KEYWORDS: dict[str, list[str]] = {
    "스포츠": ["운동", "헬스", "러닝", "축구", "농구", "테니스", "배드민턴", "등산", "수영", "골프", "자전거"],
    "게임": ["게임", "보드게임", "PC게임", "콘솔", "e스포츠", "롤", "배그"],
    "음악": ["음악", "밴드", "악기", "기타", "피아노", "드럼", "노래", "합창"],
    "미술": ["미술", "그림", "드로잉", "수채화", "일러스트", "디자인"],
    "독서": ["독서", "책", "문학", "시", "에세이", "소설"],
    "요리": ["요리", "베이킹", "음식", "맛집"],
    "여행": ["여행", "캠핑", "등산", "백패킹"],
    "봉사": ["봉사", "기부", "환경"],
    "자기계발": ["자기계발", "스터디", "영어", "외국어", "프로그래밍", "코딩"],
    "사진": ["사진", "카메라", "촬영"],
    "기타": [],
}


class ClubSettings(BaseModel):
    weights: dict[ClubComponentName, float] = Field(
        default_factory=lambda: {
            "tag_match": 0.35,
            "social_graph": 0.25,
            "member_composition": 0.20,
            "activity_level": 0.10,
            "category_preference": 0.10,
        }
    )
    social_graph_cap: int = Field(5, ge=1)
    composition_factor_weights: dict[Literal["tag", "department", "job_role", "location"], float] = Field(
        default_factory=lambda: {"tag": 1.0, "department": 0.5, "job_role": 0.3, "location": 0.2}
    )
    activity_steps: list[ActivityStep] = Field(
        default_factory=lambda: [
            ActivityStep(min_count=50, score=1.0),
            ActivityStep(min_count=30, score=0.8),
            ActivityStep(min_count=10, score=0.6),
            ActivityStep(min_count=5, score=0.4),
            ActivityStep(min_count=1, score=0.2),
        ]
    )
    category_neutral_score: float = Field(0.5, ge=0, le=1)
    category_match_cap: int = Field(2, ge=1)
    category_keywords: dict[str, list[str]] = Field(
        default_factory=lambda: deepcopy(_CLUB_CATEGORY_KEYWORDS)
    )
    reason_thresholds: ClubReasonThresholds = Field(default_factory=ClubReasonThresholds)
    max_reasons: int = Field(3, ge=1)
    top_n_default: int = Field(10, ge=1)


_SEARCH_STRATEGY_WEIGHTS: dict[str, dict[str, float]] = {
    "text_heavy": {"vector": 0.15, "profile_field": 0.25, "mbti": 0.10, "tag": 0.10, "text": 0.40},
    "balanced": {"vector": 0.25, "profile_field": 0.30, "mbti": 0.10, "tag": 0.10, "text": 0.25},
    "vector_heavy": {"vector": 0.40, "profile_field": 0.30, "mbti": 0.10, "tag": 0.10, "text": 0.10},
}

_SEARCH_INTENT_WEIGHTS: dict[str, dict[str, float]] = {
    "personality": {"vector": 0.20, "profile_field": 0.40, "mbti": 0.10, "tag": 0.05, "text": 0.25},
    "skill": {"vector": 0.15, "profile_field": 0.25, "mbti": 0.05, "tag": 0.05, "text": 0.50},
    "hobby": {"vector": 0.15, "profile_field": 0.15, "mbti": 0.05, "tag": 0.40, "text": 0.25},
    "mbti": {"vector": 0.10, "profile_field": 0.15, "mbti": 0.50, "tag": 0.05, "text": 0.20},
    "department": {"vector": 0.10, "profile_field": 0.20, "mbti": 0.05, "tag": 0.05, "text": 0.60},
    "general": {"vector": 0.25, "profile_field": 0.30, "mbti": 0.10, "tag": 0.10, "text": 0.25},
}

_SEARCH_INTENT_KEYWORDS: dict[str, list[str]] = {
    "personality": ["밝은", "활발", "꼼꼼", "성실", "책임감", "소통", "협력", "적극", "친절", "유쾌", "긍정", "섬세"],
    "skill": [
        "개발", "프로그래밍", "react", "vue", "python", "java", "기술", "설계", "분석", "디자인",
        "엔지니어", "backend", "frontend",
    ],
    "hobby": ["취미", "좋아하", "즐기", "운동", "게임", "영화", "음악", "여행", "독서", "등산", "요리"],
    "mbti": [
        "intj", "intp", "entj", "entp", "infj", "infp", "enfj", "enfp",
        "istj", "isfj", "estj", "esfj", "istp", "isfp", "estp", "esfp", "외향", "내향",
    ],
    "department": ["팀", "부서", "그룹", "본부", "연구소", "개발팀", "디자인팀", "마케팅", "영업"],
    "general": [],
}

_SEARCH_SPECIFIC_KEYWORDS: list[str] = [
    "react", "vue", "angular", "typescript", "javascript", "python", "java", "node", "kotlin", "swift",
    "go", "rust", "docker", "kubernetes", "aws", "gcp", "azure", "sql", "graphql", "next", "spring",
    "프론트엔드", "백엔드", "풀스택", "frontend", "backend", "devops", "qa", "pm", "디자인", "마케팅",
    "판교", "강남", "재택", "원격", "remote",
]

_SEARCH_DESCRIPTIVE_TERMS: list[str] = [
    "같은", "사람", "분", "스타일", "느낌", "비슷한", "정도", "좋아하", "원하", "있는", "하는",
    "찾고", "싶은", "되는", "할 수", "잘하", "못하",
]

_SEARCH_HOBBY_TAGS: list[str] = [
    "운동", "독서", "영화/드라마", "음악", "게임", "여행", "요리", "사진", "캠핑", "등산", "수영",
    "헬스", "러닝", "자전거", "골프", "테니스", "축구", "농구", "배드민턴", "볼링", "당구", "보드게임",
    "카페", "맛집탐방", "와인", "커피", "베이킹", "그림", "악기연주", "노래", "댄스", "요가", "필라테스",
    "명상", "반려동물", "식물", "인테리어", "패션", "뷰티", "IT/테크", "재테크", "자기계발", "봉사활동",
    "외국어",
]


class SearchSettings(BaseModel):
    limit_default: int = Field(20, ge=1)
    min_score: float = Field(0.1, ge=0)
    strategy_blend: float = Field(0.6, ge=0, le=1)
    strategy_weights: dict[SearchStrategy, dict[SearchSignalName, float]] = Field(
        default_factory=lambda: deepcopy(_SEARCH_STRATEGY_WEIGHTS)
    )
    intent_weights: dict[QueryIntent, dict[SearchSignalName, float]] = Field(
        default_factory=lambda: deepcopy(_SEARCH_INTENT_WEIGHTS)
    )
    intent_keywords: dict[QueryIntent, list[str]] = Field(
        default_factory=lambda: deepcopy(_SEARCH_INTENT_KEYWORDS)
    )
    specific_keywords: list[str] = Field(default_factory=lambda: list(_SEARCH_SPECIFIC_KEYWORDS))
    descriptive_terms: list[str] = Field(default_factory=lambda: list(_SEARCH_DESCRIPTIVE_TERMS))
    hobby_tags: list[str] = Field(default_factory=lambda: list(_SEARCH_HOBBY_TAGS))
    max_keywords: int = Field(5, ge=1)


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    dataset: DatasetSettings = Field(default_factory=DatasetSettings)
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    scoring: ScoringSettings = Field(default_factory=ScoringSettings)
    explain: ExplainSettings = Field(default_factory=ExplainSettings)
    clubs: ClubSettings = Field(default_factory=ClubSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small to avoid exposing unsafe overrides.
    """
    load_dotenv_if_present()
    data = dict(data)
    cache_dir = os.getenv("COLLEAGUEMATCH_CACHE_DIR")
    if cache_dir:
        data.setdefault("cache", {})["dir"] = cache_dir

    log_level = os.getenv("COLLEAGUEMATCH_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    dataset_path = os.getenv("COLLEAGUEMATCH_DATASET_PATH")
    if dataset_path:
        data.setdefault("dataset", {})["path"] = dataset_path

    api_key = os.getenv("OPENAI_API_KEY")
    if api_key:
        data.setdefault("embedding", {})["api_key"] = api_key

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("COLLEAGUEMATCH_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")


@lru_cache
def get_synonym_dictionary() -> dict[str, list[str]]:
    """Load the packaged keyword synonym dictionary (cached, lower-cased)."""
    raw = _read_package_yaml("synonyms.yaml")
    out: dict[str, list[str]] = {}
    for key, values in raw.items():
        out[str(key).lower()] = [str(v).lower() for v in (values or [])]
    return out
