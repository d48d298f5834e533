from __future__ import annotations

import argparse
import dataclasses
from pathlib import Path

import pandas as pd

from ..config import AppConfig, load_config
from ..paths import get_repo_root, resolve_path
from ..pipelines.build import build_recommender
from ..utils import setup_logging
from .errors import UnknownKeyError


def _parse_id(raw: str):
    """Ids given on the command line are ints when they look like ints."""
    text = str(raw).strip()
    try:
        return int(text)
    except ValueError:
        return text


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Neighborhood collaborative filtering over a ratings file")
    p.add_argument("--config", type=Path, default=Path("config.yaml"), help="Path to config YAML")
    p.add_argument("--ratings", type=Path, default=None, help="Override the ratings file from the config")
    p.add_argument("--delimiter", type=str, default=None, help="Override the ratings file delimiter")
    p.add_argument("--has-headers", action="store_true", help="Ratings file starts with a header row")
    p.add_argument("--user-id", type=str, required=True, help="User to recommend for")
    p.add_argument("--item-id", type=str, default=None, help="Also predict this single item")
    p.add_argument("--orientation", choices=["user", "item"], default=None)
    p.add_argument("--policy", choices=["knn", "threshold"], default=None)
    p.add_argument("--metric", choices=["cosine", "jaccard", "pearson"], default=None)
    p.add_argument("--neighbors", type=int, default=None, help="k for the knn policy")
    p.add_argument("--threshold", type=float, default=None, help="Similarity threshold for the threshold policy")
    p.add_argument("--store", choices=["dict", "indexed", "sqlite"], default=None)
    p.add_argument("--top-similar", type=int, default=10, help="How many similar users/items to show")
    p.add_argument("--k", type=int, default=10, help="How many recommendations to show")
    p.add_argument("--include-rated", action="store_true", help="Also rank items the user already rated")
    return p


def _apply_overrides(cfg: AppConfig, args: argparse.Namespace) -> AppConfig:
    ds = cfg.dataset
    if args.ratings is not None:
        ds = dataclasses.replace(ds, path=str(args.ratings))
    if args.delimiter is not None:
        ds = dataclasses.replace(ds, delimiter=args.delimiter)
    if args.has_headers:
        ds = dataclasses.replace(ds, has_headers=True)

    overrides = {
        "orientation": args.orientation,
        "policy": args.policy,
        "metric": args.metric,
        "k": args.neighbors,
        "threshold": args.threshold,
        "store": args.store,
    }
    rc = dataclasses.replace(cfg.recommender, **{k: v for k, v in overrides.items() if v is not None})
    return dataclasses.replace(cfg, dataset=ds, recommender=rc)


def main(argv: list[str] | None = None) -> None:
    args = build_arg_parser().parse_args(argv)
    repo_root = get_repo_root()
    config_path = resolve_path(repo_root, args.config)
    cfg = load_config(config_path) if config_path.exists() else AppConfig()
    cfg = _apply_overrides(cfg, args)
    setup_logging(cfg.log_level)

    rec = build_recommender(cfg, repo_root=repo_root)
    user_id = _parse_id(args.user_id)
    item_id = None if args.item_id is None else _parse_id(args.item_id)

    # Similar users for user-based runs, similar items (to --item-id) for item-based runs.
    anchor = user_id if rec.orientation == "user" else item_id
    try:
        sims = [] if anchor is None else rec.neighbors(anchor, top_n=int(args.top_similar))
        recs = rec.recommend(user_id, exclude_rated=not args.include_rated, limit=int(args.k))
        prediction = None if item_id is None else rec.predict(user_id, item_id)
    except UnknownKeyError as exc:
        raise SystemExit(str(exc)) from exc

    if anchor is not None:
        print(f"\n=== Similar {'Users' if rec.orientation == 'user' else 'Items'} ===")
        if sims:
            print(pd.DataFrame([dataclasses.asdict(s) for s in sims]).to_string(index=False))
        else:
            print("No neighbors found.")

    if item_id is not None:
        print("\n=== Prediction ===")
        shown = "no prediction available" if prediction is None else f"{prediction:.4f}"
        print(f"user={user_id!r} item={item_id!r} -> {shown}")

    print("\n=== Recommended Items ===")
    if recs:
        print(pd.DataFrame([dataclasses.asdict(r) for r in recs]).to_string(index=False))
    else:
        print("No recommendations found (try a lower threshold or a larger k).")


if __name__ == "__main__":
    main()
