from __future__ import annotations

import argparse
import logging
from pathlib import Path

from ..config import AppConfig, DatasetConfig, load_config
from ..data import load_store, read_records
from ..paths import get_repo_root, resolve_path
from ..recommender.neighborhood import NeighborhoodRecommender
from ..store import RatingStore, make_store
from ..utils import setup_logging


logger = logging.getLogger(__name__)


def build_store(dataset: DatasetConfig, *, kind: str = "indexed", repo_root: Path | None = None) -> RatingStore:
    """Read the configured ratings file into a fresh store of the given kind."""
    repo_root = get_repo_root() if repo_root is None else repo_root
    path = resolve_path(repo_root, dataset.path)
    records = read_records(path, dataset.read_options())
    return load_store(records, make_store(kind))


def build_recommender(
    cfg: AppConfig,
    *,
    store: RatingStore | None = None,
    repo_root: Path | None = None,
) -> NeighborhoodRecommender:
    """Build the recommender described by `cfg`, loading the dataset unless `store` is given."""
    rc = cfg.recommender
    if store is None:
        store = build_store(cfg.dataset, kind=rc.store, repo_root=repo_root)
    return NeighborhoodRecommender(
        store,
        metric=rc.metric,
        orientation=rc.orientation,  # type: ignore[arg-type]
        **rc.selection_kwargs(),
    )


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Load ratings and build the similarity cache once (sanity check).")
    p.add_argument("--config", type=Path, default=Path("config.yaml"), help="Path to config YAML.")
    return p


def main(argv: list[str] | None = None) -> None:
    args = build_arg_parser().parse_args(argv)
    repo_root = get_repo_root()
    cfg = load_config(resolve_path(repo_root, args.config))
    setup_logging(cfg.log_level)

    rec = build_recommender(cfg, repo_root=repo_root)
    logger.info("Recommender ready: %r", rec)


if __name__ == "__main__":
    main()
