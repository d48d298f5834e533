"""YAML configuration for datasets and recommenders."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .data import Field, ReadOptions


@dataclass(frozen=True)
class DatasetConfig:
    path: str = "data/ratings.csv"
    delimiter: str = ","
    has_headers: bool = False
    fields: tuple[str, ...] = ("user_id", "item_id", "rating")

    def read_options(self) -> ReadOptions:
        return ReadOptions.custom([Field(f) for f in self.fields], self.has_headers, self.delimiter)


@dataclass(frozen=True)
class RecommenderConfig:
    orientation: str = "user"
    policy: str = "knn"  # "knn" | "threshold"
    metric: str = "cosine"
    k: int = 50
    threshold: float = 0.0
    store: str = "indexed"

    def selection_kwargs(self) -> dict[str, Any]:
        if self.policy == "knn":
            return {"k": int(self.k)}
        if self.policy == "threshold":
            return {"threshold": float(self.threshold)}
        raise ValueError(f"recommender.policy must be 'knn' or 'threshold', got {self.policy!r}")


@dataclass(frozen=True)
class AppConfig:
    dataset: DatasetConfig = field(default_factory=DatasetConfig)
    recommender: RecommenderConfig = field(default_factory=RecommenderConfig)
    log_level: str = "INFO"


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    obj = yaml.safe_load(path.read_text())
    if obj is None:
        return {}
    if not isinstance(obj, dict):
        raise ValueError(f"Expected YAML mapping at {path}, got {type(obj)}")
    return obj


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name, {})
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"config section {name!r} must be a mapping")
    return value


def config_from_dict(raw: dict[str, Any]) -> AppConfig:
    ds = _section(raw, "dataset")
    rc = _section(raw, "recommender")
    defaults_ds = DatasetConfig()
    defaults_rc = RecommenderConfig()

    dataset = DatasetConfig(
        path=str(ds.get("path", defaults_ds.path)),
        delimiter=str(ds.get("delimiter", defaults_ds.delimiter)),
        has_headers=bool(ds.get("has_headers", defaults_ds.has_headers)),
        fields=tuple(str(f) for f in ds.get("fields", defaults_ds.fields)),
    )
    recommender = RecommenderConfig(
        orientation=str(rc.get("orientation", defaults_rc.orientation)),
        policy=str(rc.get("policy", defaults_rc.policy)),
        metric=str(rc.get("metric", defaults_rc.metric)),
        k=int(rc.get("k", defaults_rc.k)),
        threshold=float(rc.get("threshold", defaults_rc.threshold)),
        store=str(rc.get("store", defaults_rc.store)),
    )
    return AppConfig(dataset=dataset, recommender=recommender, log_level=str(raw.get("log_level", "INFO")))


def load_config(path: Path | str) -> AppConfig:
    """Read `config.yaml`; missing keys fall back to defaults."""
    return config_from_dict(_load_yaml(Path(path)))
