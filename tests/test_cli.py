import json

from colleaguematch.cli import build_parser, main


def _dataset(tmp_path):
    path = tmp_path / "dataset.json"
    payload = {
        "profiles": [
            {"user_id": "u1", "name": "나", "department": "개발팀", "hobbies": ["러닝"], "strengths": "꼼꼼함"},
            {"user_id": "u2", "name": "동료", "department": "개발팀", "hobbies": ["러닝"]},
        ],
        "clubs": [{"id": "c1", "name": "러닝크루", "category": "스포츠", "tags": ["러닝"]}],
        "memberships": [{"user_id": "u2", "club_id": "c1"}],
    }
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
    return path


class _StubEmbeddingClient:
    def __init__(self, settings, cache=None):
        pass

    def embed(self, text):
        return [1.0, 0.0]

    def embed_batch(self, texts):
        return [[1.0, 0.0] for _ in texts]


def test_parser_collects_repeatable_weights():
    parser = build_parser()
    args = parser.parse_args(["recommend", "--user", "u1", "--weight", "tag=0.4"])
    assert args.command == "recommend"
    assert args.weight == ["tag=0.4"]


def test_recommend_json_output(tmp_path, capsys):
    path = _dataset(tmp_path)

    code = main(["--dataset", str(path), "recommend", "--user", "u1", "--json"])

    assert code == 0
    data = json.loads(capsys.readouterr().out)
    assert data["viewer_id"] == "u1"
    assert [r["candidate"]["user_id"] for r in data["results"]] == ["u2"]


def test_clubs_text_output(tmp_path, capsys):
    path = _dataset(tmp_path)

    assert main(["--dataset", str(path), "clubs", "--user", "u1"]) == 0
    assert "러닝크루" in capsys.readouterr().out


def test_embed_dry_run_does_not_write(tmp_path, capsys, monkeypatch):
    monkeypatch.setattr("colleaguematch.cli.EmbeddingClient", _StubEmbeddingClient)
    path = _dataset(tmp_path)
    before = path.read_text(encoding="utf-8")

    code = main(["--dataset", str(path), "embed", "--dry-run"])

    assert code == 0
    report = json.loads(capsys.readouterr().out)
    assert report["updated"] == 2
    assert report["written"] is False
    assert path.read_text(encoding="utf-8") == before
