"""Micro-benchmarks for rating-store lookups and recommender build/predict.

Run with `python -m neighborcf.pipelines.benchmark` (synthetic data) or pass
`--ratings path/to/file.csv` to time a real dataset.
"""

from __future__ import annotations

import argparse
import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Hashable, Sequence

import numpy as np

from ..data import RatingRecord, ReadOptions, load_store, read_records
from ..paths import ProjectPaths, get_repo_root
from ..recommender.neighborhood import NeighborhoodRecommender
from ..store import STORE_KINDS, RatingStore, make_store
from ..utils import ReproducibilityConfig, set_global_seed, setup_logging


logger = logging.getLogger(__name__)


def synthetic_records(
    rng: np.random.Generator,
    *,
    n_users: int = 200,
    n_items: int = 300,
    density: float = 0.05,
    rating_scale: tuple[int, int] = (1, 5),
) -> list[RatingRecord]:
    """Random ratings on a `n_users` x `n_items` grid with roughly `density` fill."""
    n_ratings = max(1, int(n_users * n_items * float(density)))
    cells = rng.choice(n_users * n_items, size=min(n_ratings, n_users * n_items), replace=False)
    lo, hi = rating_scale
    values = rng.integers(lo, hi + 1, size=len(cells))
    return [
        RatingRecord(f"user_{int(c) // n_items}", f"item_{int(c) % n_items}", float(v))
        for c, v in zip(cells.tolist(), values.tolist())
    ]


def _time_calls(fn: Callable[[Hashable], Any], keys: Sequence[Hashable]) -> dict[str, float]:
    timings = np.empty(len(keys), dtype=np.float64)
    for pos, key in enumerate(keys):
        start = time.perf_counter()
        fn(key)
        timings[pos] = time.perf_counter() - start
    if len(timings) == 0:
        return {"calls": 0, "mean_us": 0.0, "p50_us": 0.0, "p95_us": 0.0}
    us = timings * 1e6
    return {
        "calls": int(len(us)),
        "mean_us": float(us.mean()),
        "p50_us": float(np.percentile(us, 50)),
        "p95_us": float(np.percentile(us, 95)),
    }


def bench_store(store: RatingStore, rng: np.random.Generator, *, samples: int) -> dict[str, Any]:
    users = sorted(store.user_ids(), key=str)
    items = sorted(store.item_ids(), key=str)
    user_sample = [users[int(i)] for i in rng.integers(0, len(users), size=samples)] if users else []
    item_sample = [items[int(i)] for i in rng.integers(0, len(items), size=samples)] if items else []
    return {
        "user_ratings": _time_calls(store.user_ratings, user_sample),
        "item_ratings": _time_calls(store.item_ratings, item_sample),
    }


def bench_recommender(
    store: RatingStore,
    rng: np.random.Generator,
    *,
    samples: int,
    orientation: str,
    k: int,
) -> dict[str, Any]:
    start = time.perf_counter()
    rec = NeighborhoodRecommender(store, orientation=orientation, k=k)  # type: ignore[arg-type]
    build_s = time.perf_counter() - start

    users = sorted(store.user_ids(), key=str)
    items = sorted(store.item_ids(), key=str)
    pairs = []
    if users and items:
        pairs = [
            (users[int(u)], items[int(i)])
            for u, i in zip(rng.integers(0, len(users), size=samples), rng.integers(0, len(items), size=samples))
        ]
    predict = _time_calls(lambda pair: rec.predict(*pair), pairs)
    return {"orientation": orientation, "k": int(k), "build_s": float(build_s), "predict": predict}


def run_benchmark(
    records: Sequence[RatingRecord],
    *,
    stores: Sequence[str],
    samples: int,
    seed: int,
    k: int,
) -> dict[str, Any]:
    rng = set_global_seed(ReproducibilityConfig(seed=seed))
    report: dict[str, Any] = {
        "run_at_utc": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "records": len(records),
        "seed": int(seed),
        "stores": {},
    }

    for kind in stores:
        start = time.perf_counter()
        store = load_store(records, make_store(kind))
        load_s = time.perf_counter() - start
        logger.info("Benchmarking store=%s (load %.3fs)", kind, load_s)

        entry = {"load_s": float(load_s), **bench_store(store, rng, samples=samples)}
        entry["recommenders"] = [
            bench_recommender(store, rng, samples=samples, orientation=o, k=k) for o in ("user", "item")
        ]
        report["stores"][kind] = entry

        close = getattr(store, "close", None)
        if callable(close):
            close()

    return report


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Benchmark rating stores and neighborhood recommenders.")
    p.add_argument("--ratings", type=Path, default=None, help="Ratings file; synthetic data when omitted.")
    p.add_argument("--delimiter", type=str, default=",", help="Ratings file delimiter.")
    p.add_argument("--has-headers", action="store_true", help="Ratings file starts with a header row.")
    p.add_argument("--stores", nargs="+", default=list(STORE_KINDS), choices=list(STORE_KINDS))
    p.add_argument("--samples", type=int, default=200, help="Lookups per timed operation.")
    p.add_argument("--k", type=int, default=20, help="Neighbors for the k-NN recommenders.")
    p.add_argument("--seed", type=int, default=42, help="Global random seed.")
    p.add_argument("--users", type=int, default=200, help="Synthetic users.")
    p.add_argument("--items", type=int, default=300, help="Synthetic items.")
    p.add_argument("--density", type=float, default=0.05, help="Synthetic rating density.")
    p.add_argument("--out", type=Path, default=None, help="Write the JSON report here.")
    return p


def main(argv: list[str] | None = None) -> None:
    setup_logging("INFO")
    args = build_arg_parser().parse_args(argv)

    if args.ratings is not None:
        records = read_records(args.ratings, ReadOptions(has_headers=bool(args.has_headers), delimiter=args.delimiter))
    else:
        rng = set_global_seed(ReproducibilityConfig(seed=int(args.seed)))
        records = synthetic_records(rng, n_users=args.users, n_items=args.items, density=args.density)

    report = run_benchmark(records, stores=args.stores, samples=int(args.samples), seed=int(args.seed), k=int(args.k))

    out = args.out
    if out is None:
        try:
            out = ProjectPaths.from_repo_root(get_repo_root()).bench_dir / "bench_report.json"
        except FileNotFoundError:
            out = None
    if out is not None:
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(json.dumps(report, indent=2, sort_keys=True) + "\n")
        logger.info("Wrote benchmark report to %s", out)

    print(json.dumps(report, indent=2, sort_keys=True))


if __name__ == "__main__":
    main()
