"""
ColleagueMatch CLI entrypoint.

For local demos and debugging over a JSON dataset (see `colleaguematch.catalog.loader`).
All scoring is delegated to `colleaguematch.recommender.recommend`.
"""

from __future__ import annotations

import argparse
import json
from typing import Any

from colleaguematch.catalog.loader import load_dataset, save_dataset
from colleaguematch.config.settings import get_settings
from colleaguematch.core.cache import build_file_cache, record_cache_stats
from colleaguematch.core.logging import configure_logging
from colleaguematch.domain.models import MatchPreferences, MatchWeights, SearchRequest
from colleaguematch.ingestion.embedding_client import EmbeddingClient
from colleaguematch.ingestion.profile_embeddings import regenerate_embeddings
from colleaguematch.recommender.recommend import recommend_clubs, recommend_colleagues, search_colleagues
from colleaguematch.scoring.explain import one_line_summary


def _parse_weight_pairs(pairs: list[str]) -> dict[str, float]:
    """Parse `NAME=VALUE` CLI arguments into a dict."""
    out: dict[str, float] = {}
    for pair in pairs:
        if "=" not in pair:
            raise ValueError(f"Invalid --weight '{pair}', expected NAME=VALUE")
        name, value = pair.split("=", 1)
        out[name.strip()] = float(value)
    return out


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _cmd_recommend(args: argparse.Namespace) -> int:
    """Handle the `recommend` subcommand."""
    settings = get_settings()
    dataset = load_dataset(args.dataset or settings.dataset.path)
    viewer = dataset.profile(args.user)

    preferences = MatchPreferences(
        preferred_departments=args.prefer_department or [],
        preferred_job_roles=args.prefer_job_role or [],
        preferred_locations=args.prefer_location or [],
        preferred_mbti_types=args.prefer_mbti or [],
        prefer_cross_department=bool(args.cross_department),
    )
    weights = MatchWeights(**_parse_weight_pairs(args.weight)) if args.weight else None

    result = recommend_colleagues(
        viewer,
        dataset.profiles,
        preferences=preferences,
        weights=weights,
        limit=args.limit,
        settings=settings,
    )

    if args.json:
        _print_json(result.model_dump(mode="json"))
        return 0

    print(f"Generated at: {result.generated_at.isoformat()}")
    print(f"Top colleagues for {viewer.name or viewer.user_id}:")
    for i, item in enumerate(result.results, start=1):
        c = item.candidate
        print(f"{i:>2}. {c.name or c.user_id} ({c.department or '-'} / {c.job_role or '-'})")
        print(f"    {one_line_summary(item.breakdown)}")
        print(f"    {item.explanation.summary}")
        for h in item.explanation.highlights:
            print(f"    - {h}")
    return 0


def _cmd_clubs(args: argparse.Namespace) -> int:
    """Handle the `clubs` subcommand."""
    settings = get_settings()
    dataset = load_dataset(args.dataset or settings.dataset.path)
    viewer = dataset.profile(args.user)

    result = recommend_clubs(
        viewer,
        dataset.clubs,
        dataset.memberships,
        dataset.profiles,
        exclude_joined=not args.include_joined,
        limit=args.limit,
        settings=settings,
    )

    if args.json:
        _print_json(result.model_dump(mode="json"))
        return 0

    print(f"Top clubs for {viewer.name or viewer.user_id}:")
    for i, item in enumerate(result.results, start=1):
        print(f"{i:>2}. {item.club.name} [{item.club.category or '-'}]  total={item.total:.3f}")
        for reason in item.reasons:
            print(f"    - {reason}")
    return 0


def _cmd_search(args: argparse.Namespace) -> int:
    """Handle the `search` subcommand."""
    settings = get_settings()
    dataset = load_dataset(args.dataset or settings.dataset.path)

    embed_query = None
    if args.embed and settings.embedding.api_key:
        embed_query = EmbeddingClient(settings, build_file_cache(settings)).embed

    request = SearchRequest(
        query=args.query,
        viewer_id=args.user,
        candidates=dataset.profiles,
        mode="exact" if args.exact else "expanded",
        limit=args.limit,
    )
    result = search_colleagues(request, settings=settings, embed_query=embed_query)

    if args.json:
        _print_json(result.model_dump(mode="json"))
        return 0

    eq = result.expanded_query
    print(f"Intent: {eq.query_intent} ({eq.intent_confidence:.1f})  strategy: {result.strategy}")
    for i, item in enumerate(result.results, start=1):
        p = item.profile
        print(f"{i:>2}. {p.name or p.user_id} ({p.department or '-'})  score={item.score:.3f}")
        print(f"    {'; '.join(item.reasons)}")
    return 0


def _cmd_embed(args: argparse.Namespace) -> int:
    """Handle the `embed` subcommand: regenerate embeddings and write the dataset back."""
    settings = get_settings()
    path = args.dataset or settings.dataset.path
    dataset = load_dataset(path)
    wanted = set(args.user)
    targets = [p for p in dataset.profiles if not wanted or p.user_id in wanted]

    client = EmbeddingClient(settings, build_file_cache(settings))
    with record_cache_stats() as stats:
        report = regenerate_embeddings(client, targets, settings=settings)

    updated = {p.user_id: p for p in report.updated}
    dataset.profiles = [updated.get(p.user_id, p) for p in dataset.profiles]
    if not args.dry_run:
        save_dataset(dataset, path)

    _print_json({**report.as_dict(), "cache": stats.as_dict(), "written": not args.dry_run})
    return 1 if report.failed and not report.updated else 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the ColleagueMatch CLI."""
    parser = argparse.ArgumentParser(prog="colleaguematch")
    parser.add_argument("--dataset", type=str, default=None, help="Dataset JSON (default: settings.dataset.path)")
    sub = parser.add_subparsers(dest="command", required=True)

    rec = sub.add_parser("recommend", help="Recommend colleagues for one user.")
    rec.add_argument("--user", required=True, help="Viewer user_id")
    rec.add_argument("--limit", type=int, default=None)
    rec.add_argument("--prefer-department", action="append", default=[])
    rec.add_argument("--prefer-job-role", action="append", default=[])
    rec.add_argument("--prefer-location", action="append", default=[])
    rec.add_argument("--prefer-mbti", action="append", default=[])
    rec.add_argument("--cross-department", action="store_true", help="Prefer colleagues from other departments")
    rec.add_argument(
        "--weight", action="append", default=[], help="Repeatable NAME=VALUE, e.g. --weight tag=0.4"
    )
    rec.add_argument("--json", action="store_true", help="Print full JSON output")
    rec.set_defaults(func=_cmd_recommend)

    clubs = sub.add_parser("clubs", help="Recommend clubs for one user.")
    clubs.add_argument("--user", required=True)
    clubs.add_argument("--limit", type=int, default=None)
    clubs.add_argument("--include-joined", action="store_true", help="Keep clubs the user already joined")
    clubs.add_argument("--json", action="store_true")
    clubs.set_defaults(func=_cmd_clubs)

    search = sub.add_parser("search", help="Semantic search over profiles.")
    search.add_argument("query")
    search.add_argument("--user", default=None, help="Exclude this user_id from results")
    search.add_argument("--limit", type=int, default=None)
    search.add_argument("--exact", action="store_true", help="Exact keyword mode (no expansion)")
    search.add_argument("--embed", action="store_true", help="Embed the query for the vector signal")
    search.add_argument("--json", action="store_true")
    search.set_defaults(func=_cmd_search)

    emb = sub.add_parser("embed", help="Regenerate profile embeddings via the provider.")
    emb.add_argument("--user", action="append", default=[], help="Repeatable; omit for all profiles")
    emb.add_argument("--dry-run", action="store_true", help="Do not write the dataset back")
    emb.set_defaults(func=_cmd_embed)

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m colleaguematch.cli`."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())
