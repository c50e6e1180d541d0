"""
Per-request settings overrides (safe subset).

API and CLI callers can send `settings_overrides` to tune matching knobs for a single
request. This module:
- validates the override payload against an allowlist,
- deep-merges the safe subset onto current settings,
- re-validates with Pydantic so types/ranges stay correct.

Secrets (`embedding.api_key`), provider URLs and file paths are never overridable.
"""

from __future__ import annotations

from typing import Any, Mapping

from colleaguematch.config.settings import Settings

# True allows any key under the subtree; a nested dict allows only the listed keys.
ALLOWED_SETTINGS_OVERRIDES_TREE: dict[str, Any] = {
    "scoring": True,
    "explain": True,
    "clubs": True,
    "search": True,
    "embedding": {"batch_size": True, "request_spacing_seconds": True},
}


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    merged: dict[str, Any] = dict(base)
    for key, override_value in override.items():
        if isinstance(override_value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = _deep_merge(dict(merged[key]), override_value)
            continue
        merged[key] = override_value
    return merged


def _filter_overrides(
    overrides: Mapping[str, Any],
    *,
    allowed_tree: Mapping[str, Any],
    path: tuple[str, ...] = (),
) -> dict[str, Any]:
    filtered: dict[str, Any] = {}
    for key, value in overrides.items():
        dotted_path = ".".join((*path, key))
        if key not in allowed_tree:
            raise ValueError(f"settings_overrides contains a disallowed key: '{dotted_path}'")

        allowed = allowed_tree[key]
        if allowed is True:
            filtered[key] = value
            continue

        if not isinstance(value, Mapping):
            raise ValueError(f"settings_overrides key '{dotted_path}' must be a mapping")
        filtered[key] = _filter_overrides(value, allowed_tree=allowed, path=(*path, key))
    return filtered


def apply_settings_overrides(settings: Settings, overrides: Mapping[str, Any] | None) -> Settings:
    """Return a new Settings with the allowlisted `overrides` merged in.

    Raises:
        ValueError: If any key falls outside the allowlist (message carries the dotted path),
            or if the merged payload fails validation.
    """
    if not overrides:
        return settings

    safe_overrides = _filter_overrides(overrides, allowed_tree=ALLOWED_SETTINGS_OVERRIDES_TREE)
    merged_payload = _deep_merge(settings.model_dump(mode="python"), safe_overrides)
    return Settings.model_validate(merged_payload)
