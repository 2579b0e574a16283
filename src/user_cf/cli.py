"""Command-line front end for the user-user CF recommender.

One request per invocation (no interactive menu):

    python -m src.user_cf.cli recommend --user-id 3 --n 5
    python -m src.user_cf.cli predict --user-id 3 --item-id 12
    python -m src.user_cf.cli rmse --mode leave_one_out
    python -m src.user_cf.cli similar-users --user-id 3
    python -m src.user_cf.cli show-matrix
    python -m src.user_cf.cli check
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import pandas as pd

from ..data import normalize_id
from ..eda import run_rating_checks
from ..paths import ProjectPaths, get_repo_root, resolve_path
from ..utils import setup_logging
from .config import RMSE_MODES, UserCFConfig, load_yaml
from .recommender import UserUserCFRecommender


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="User-user collaborative filtering over a rating matrix")
    p.add_argument("--config", type=Path, default=None, help="Path to config YAML (default: <repo>/config.yaml)")
    p.add_argument("--ratings", type=Path, default=None, help="Ratings CSV (overrides dataset.ratings_csv)")
    p.add_argument("--layout", choices=("wide", "long"), default=None, help="Ratings file layout")
    p.add_argument("--movies", type=Path, default=None, help="Optional movies.csv with display titles")
    p.add_argument("--log-level", type=str, default="WARNING", help="Logging level")

    sub = p.add_subparsers(dest="command", required=True)

    rec = sub.add_parser("recommend", help="Top-N unrated items for a user")
    rec.add_argument("--user-id", type=str, required=True, help="External user id (first column of the file)")
    rec.add_argument("--n", type=int, default=10, help="How many recommendations to return")

    pred = sub.add_parser("predict", help="Predicted rating for one (user, item)")
    pred.add_argument("--user-id", type=str, required=True)
    pred.add_argument("--item-id", type=str, required=True)

    rmse = sub.add_parser("rmse", help="RMSE over all known ratings")
    rmse.add_argument("--mode", choices=RMSE_MODES, default=None, help="Default: user_cf.rmse_mode from config")

    sim = sub.add_parser("similar-users", help="Users with the most similar rating patterns")
    sim.add_argument("--user-id", type=str, required=True)
    sim.add_argument("--top-n", type=int, default=10)

    sub.add_parser("show-matrix", help="Print the loaded rating matrix")
    sub.add_parser("check", help="Run data-quality checks on the rating matrix")
    return p


def _load_recommender(args: argparse.Namespace) -> UserUserCFRecommender:
    repo_root = get_repo_root()
    config_path = resolve_path(repo_root, args.config) if args.config else repo_root / "config.yaml"
    cfg_yaml = load_yaml(config_path) if config_path.exists() else {}

    paths = ProjectPaths.from_config(repo_root, cfg_yaml)
    ratings = resolve_path(Path.cwd(), args.ratings) if args.ratings else paths.ratings_csv
    movies = resolve_path(Path.cwd(), args.movies) if args.movies else paths.movies_csv
    layout = args.layout or paths.layout

    return UserUserCFRecommender.from_csv(
        ratings,
        config=UserCFConfig.from_mapping(cfg_yaml),
        layout=layout,
        movies_path=movies,
    )


def _run(rec: UserUserCFRecommender, args: argparse.Namespace) -> int:
    if args.command == "recommend":
        n = int(args.n)
        recs = rec.recommend(normalize_id(args.user_id), n)
        print(f"\n=== Top {len(recs)} recommendations for user {args.user_id} ===")
        if recs:
            df = pd.DataFrame([r.__dict__ for r in recs])
            print(df.to_string(index=False))
        if len(recs) < n:
            print(f"Note: Only {len(recs)} recommendations are available.")

    elif args.command == "predict":
        score = rec.predict(normalize_id(args.user_id), normalize_id(args.item_id))
        print(f"Predicted rating for user {args.user_id}, item {args.item_id}: {score:.4f}")

    elif args.command == "rmse":
        mode = args.mode or rec.config.rmse_mode
        print(f"RMSE ({mode}): {rec.rmse(mode):.4f}")

    elif args.command == "similar-users":
        sims = rec.similar_users(normalize_id(args.user_id), top_n=int(args.top_n))
        print(f"\n=== Users similar to {args.user_id} ===")
        if sims:
            print(pd.DataFrame([s.__dict__ for s in sims]).to_string(index=False))
        else:
            print("No other users in the rating matrix.")

    elif args.command == "show-matrix":
        print("Ratings Matrix:")
        print(rec.store.to_frame().to_string(na_rep="-", float_format=lambda x: f"{x:.1f}"))

    elif args.command == "check":
        results = run_rating_checks(rec.store, rating_scale=rec.config.rating_scale)
        print(pd.DataFrame([r.__dict__ for r in results]).to_string(index=False))
        return 1 if any(r.status == "FAIL" for r in results) else 0

    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.log_level)
    try:
        rec = _load_recommender(args)
        return _run(rec, args)
    except (FileNotFoundError, KeyError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
