import json

import pytest

from colleaguematch.catalog.loader import Dataset, load_dataset, save_dataset
from colleaguematch.domain.models import Profile


def _write(path, payload) -> None:
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")


def test_load_dataset_validates_and_parses_embeddings(tmp_path):
    path = tmp_path / "dataset.json"
    _write(
        path,
        {
            "profiles": [
                {
                    "user_id": "u1",
                    "mbti": "enfp",
                    "hobbies": ["러닝", "러닝 ", ""],
                    "embeddings": {"combined": "[0.1, 0.2]", "strengths": "oops"},
                }
            ],
            "clubs": [{"id": "c1", "name": "러닝크루", "tags": ["러닝"]}],
            "memberships": [{"user_id": "u1", "club_id": "c1"}],
        },
    )

    dataset = load_dataset(path)

    profile = dataset.profile("u1")
    assert profile.mbti == "ENFP"
    assert profile.hobbies == ["러닝"]
    assert profile.embeddings.combined == [0.1, 0.2]
    # Unparsable stored vectors are treated as missing.
    assert profile.embeddings.strengths is None
    assert dataset.clubs[0].name == "러닝크루"
    assert dataset.memberships[0].status == "active"


def test_missing_sections_default_to_empty(tmp_path):
    path = tmp_path / "dataset.json"
    _write(path, {})

    dataset = load_dataset(path)
    assert dataset.profiles == []
    assert dataset.clubs == []


def test_non_object_root_is_rejected(tmp_path):
    path = tmp_path / "dataset.json"
    _write(path, [])

    with pytest.raises(ValueError, match=r"expected an object"):
        load_dataset(path)


def test_unknown_profile_lookup_raises():
    with pytest.raises(ValueError, match=r"ghost"):
        Dataset().profile("ghost")


def test_save_then_load_keeps_profiles(tmp_path):
    path = tmp_path / "out" / "dataset.json"
    dataset = Dataset(profiles=[Profile(user_id="u1", department="개발팀", embeddings={"combined": [1.0, 0.0]})])

    save_dataset(dataset, path)
    reloaded = load_dataset(path)

    assert reloaded.profile("u1").department == "개발팀"
    assert reloaded.profile("u1").embeddings.combined == [1.0, 0.0]
    assert not (tmp_path / "out" / "dataset.tmp").exists()
