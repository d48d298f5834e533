"""Similarity measures between sparse rating vectors.

Every metric has the same signature `(a, b, n) -> float`, where `n` is the
size of the shared index space. Only Pearson uses `n`; the others accept it
so that metrics are interchangeable.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Callable

from .sparse import SparseVector, covariance


SimilarityFn = Callable[[SparseVector, SparseVector, int], float]


def cosine(a: SparseVector, b: SparseVector, n: int = 0) -> float:
    """Cosine similarity clamped to [-1, 1]; 0.0 when either vector has zero norm."""
    norms = a.dot(a) * b.dot(b)
    if norms > 0.0:
        return max(-1.0, min(1.0, a.dot(b) / math.sqrt(norms)))
    return 0.0


def jaccard(a: SparseVector, b: SparseVector, n: int = 0) -> float:
    """Extended (Tanimoto) Jaccard similarity; 0.0 when the denominator vanishes."""
    inner = a.dot(b)
    denom = a.dot(a) + b.dot(b) - inner
    if denom == 0.0:
        return 0.0
    return inner / denom


def pearson(a: SparseVector, b: SparseVector, n: int) -> float:
    """Pearson correlation treating unrated entries as zeros over `n` entries."""
    var_a = covariance(a, a, n)
    var_b = covariance(b, b, n)
    denom = var_a * var_b
    if denom <= 0.0:
        return 0.0
    return max(-1.0, min(1.0, covariance(a, b, n) / math.sqrt(denom)))


class Metric(str, Enum):
    COSINE = "cosine"
    JACCARD = "jaccard"
    PEARSON = "pearson"

    @property
    def fn(self) -> SimilarityFn:
        return _METRICS[self]


_METRICS: dict[Metric, SimilarityFn] = {
    Metric.COSINE: cosine,
    Metric.JACCARD: jaccard,
    Metric.PEARSON: pearson,
}


def get_metric(metric: str | Metric | SimilarityFn) -> SimilarityFn:
    """Resolve a metric name, `Metric` member or callable to a similarity function."""
    if isinstance(metric, Metric):
        return metric.fn
    if isinstance(metric, str):
        try:
            return Metric(metric.strip().lower()).fn
        except ValueError as exc:
            known = ", ".join(m.value for m in Metric)
            raise ValueError(f"Unknown similarity metric {metric!r} (expected one of: {known})") from exc
    if callable(metric):
        return metric
    raise TypeError(f"metric must be a name, Metric or callable, got {type(metric)}")
