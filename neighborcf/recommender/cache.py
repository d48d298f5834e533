from __future__ import annotations

import logging
from typing import Callable, Hashable, Iterable

from ..similarity import SimilarityFn
from ..sparse import SparseVector
from .errors import SimilarityCacheError


logger = logging.getLogger(__name__)


class SimilarityCache:
    """Pairwise similarity scores keyed by ordered (a, b) entity pairs.

    Both (a, b) and (b, a) are always written together, so lookups never
    depend on key order.
    """

    def __init__(self) -> None:
        self._scores: dict[tuple[Hashable, Hashable], float] = {}

    def __len__(self) -> int:
        return len(self._scores)

    def __contains__(self, pair: object) -> bool:
        return pair in self._scores

    def get(self, a: Hashable, b: Hashable) -> float:
        try:
            return self._scores[(a, b)]
        except KeyError:
            raise SimilarityCacheError(f"No cached similarity for pair ({a!r}, {b!r})") from None

    def set(self, a: Hashable, b: Hashable, score: float) -> None:
        score = float(score)
        self._scores[(a, b)] = score
        self._scores[(b, a)] = score

    def clear(self) -> None:
        self._scores.clear()

    def build(
        self,
        keys: Iterable[Hashable],
        vector_of: Callable[[Hashable], SparseVector],
        metric: SimilarityFn,
        n: int,
    ) -> int:
        """Recompute every pair (self-pairs included); returns the number of pairs scored."""
        self.clear()
        vectors = [(key, vector_of(key)) for key in keys]
        scored = 0
        for pos, (key_a, vec_a) in enumerate(vectors):
            for key_b, vec_b in vectors[pos:]:
                self.set(key_a, key_b, metric(vec_a, vec_b, n))
                scored += 1
        return scored

    def refresh_row(
        self,
        key: Hashable,
        keys: Iterable[Hashable],
        vector_of: Callable[[Hashable], SparseVector],
        metric: SimilarityFn,
        n: int,
    ) -> int:
        """Recompute the scores of `key` against every entity in `keys`."""
        vec = vector_of(key)
        scored = 0
        for other in keys:
            other_vec = vec if other == key else vector_of(other)
            self.set(key, other, metric(vec, other_vec, n))
            scored += 1
        logger.debug("Refreshed similarity row for %r (%d pairs)", key, scored)
        return scored
