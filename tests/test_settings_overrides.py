from __future__ import annotations

# pytest is the test runner used across the repository.
import pytest

# Use the real packaged defaults so the tests track the actual config structure.
from colleaguematch.config.settings import Settings, get_settings

# The override helper is pure (no network) and guards what callers may change per request.
from colleaguematch.config.overrides import apply_settings_overrides


def test_apply_settings_overrides_returns_same_object_when_none():
    # Baseline settings are a cached Pydantic model.
    settings = get_settings()

    # No overrides is a no-op that hands back the very same object.
    out = apply_settings_overrides(settings, None)
    assert out is settings


def test_apply_settings_overrides_can_override_allowed_numeric_knobs():
    # Do not mutate the baseline: it is shared via lru_cache.
    settings = get_settings()

    # Raise the MBTI weight for this request only.
    overrides = {"scoring": {"weights": {"mbti": 0.5}}}

    # A NEW Settings model is returned, re-validated by Pydantic.
    out = apply_settings_overrides(settings, overrides)

    assert out.scoring.weights["mbti"] == 0.5
    # Sibling weights survive the deep merge.
    assert out.scoring.weights["tag"] == settings.scoring.weights["tag"]

    # The shared settings stay untouched (no cross-request leakage).
    assert settings.scoring.weights["mbti"] != 0.5


def test_apply_settings_overrides_allows_listed_embedding_knobs():
    settings = get_settings()

    out = apply_settings_overrides(settings, {"embedding": {"batch_size": 8}})

    assert out.embedding.batch_size == 8
    assert out.embedding.model == settings.embedding.model


def test_apply_settings_overrides_rejects_disallowed_keys_with_clear_path():
    settings = get_settings()

    # Credentials are never overridable from a request body.
    overrides = {"embedding": {"api_key": "sk-attacker"}}

    # The message carries the dotted path so callers can find the offending key.
    # Note: a literal dot in the regex must be escaped as `\.`.
    with pytest.raises(ValueError, match=r"embedding\.api_key"):
        apply_settings_overrides(settings, overrides)


def test_apply_settings_overrides_rejects_unknown_top_level_sections():
    settings = get_settings()

    # Cache and dataset paths point at the filesystem, so they are not in the allowlist.
    with pytest.raises(ValueError, match=r"disallowed key: 'cache'"):
        apply_settings_overrides(settings, {"cache": {"dir": "/tmp/elsewhere"}})


def test_apply_settings_overrides_rejects_wrong_value_shapes_for_restricted_subtrees():
    settings = get_settings()

    # `embedding` is a restricted subtree (only some nested keys are allowed),
    # so its override must be a mapping, not a scalar.
    with pytest.raises(ValueError, match=r"settings_overrides key 'embedding' must be a mapping"):
        apply_settings_overrides(settings, {"embedding": 1})


def test_apply_settings_overrides_revalidates_values():
    settings = get_settings()

    # Allowed key, invalid value: Pydantic's ValidationError is a ValueError.
    with pytest.raises(ValueError):
        apply_settings_overrides(settings, {"scoring": {"weight_policy": "sometimes"}})


def test_model_defaults_mirror_the_packaged_yaml():
    # Code that builds `Settings()` directly must behave like the packaged configuration.
    packaged = get_settings()
    bare = Settings()

    for section in ("scoring", "explain", "clubs", "search"):
        assert getattr(bare, section) == getattr(packaged, section), section
