"""
Dataset loader.

A dataset is one local JSON file (default: `data/dataset.json`) shaped like:

    {"profiles": [...], "clubs": [...], "memberships": [...]}

Every section is optional. Entries are validated into typed Pydantic models so scoring
code can rely on a consistent shape (embeddings may be stored as lists or JSON strings).
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter

from colleaguematch.core.env import resolve_project_path
from colleaguematch.domain.models import Club, ClubMembership, Profile

_PROFILES_ADAPTER = TypeAdapter(list[Profile])
_CLUBS_ADAPTER = TypeAdapter(list[Club])
_MEMBERSHIPS_ADAPTER = TypeAdapter(list[ClubMembership])


@dataclass
class Dataset:
    profiles: list[Profile] = field(default_factory=list)
    clubs: list[Club] = field(default_factory=list)
    memberships: list[ClubMembership] = field(default_factory=list)

    def profile(self, user_id: str) -> Profile:
        """Look up a profile by id.

        Raises:
            ValueError: If no profile has that id.
        """
        for p in self.profiles:
            if p.user_id == user_id:
                return p
        raise ValueError(f"Unknown user_id '{user_id}'")


def _read_payload(path: str | Path) -> dict[str, Any]:
    resolved = resolve_project_path(path)
    payload = json.loads(resolved.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"Invalid dataset root in {resolved}; expected an object.")
    return payload


def load_dataset(path: str | Path) -> Dataset:
    """Load and validate a dataset JSON file."""
    payload = _read_payload(path)
    return Dataset(
        profiles=_PROFILES_ADAPTER.validate_python(payload.get("profiles") or []),
        clubs=_CLUBS_ADAPTER.validate_python(payload.get("clubs") or []),
        memberships=_MEMBERSHIPS_ADAPTER.validate_python(payload.get("memberships") or []),
    )


def save_dataset(dataset: Dataset, path: str | Path) -> Path:
    """Write `dataset` back to disk (temp file + atomic replace)."""
    resolved = resolve_project_path(path)
    payload = {
        "profiles": _PROFILES_ADAPTER.dump_python(dataset.profiles, mode="json"),
        "clubs": _CLUBS_ADAPTER.dump_python(dataset.clubs, mode="json"),
        "memberships": _MEMBERSHIPS_ADAPTER.dump_python(dataset.memberships, mode="json"),
    }
    resolved.parent.mkdir(parents=True, exist_ok=True)
    tmp = resolved.with_suffix(".tmp")
    tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    tmp.replace(resolved)
    return resolved
