"""Neighborhood-based collaborative filtering (threshold and k-nearest variants).

A recommender holds a rating store and a complete pairwise similarity cache
over users (user-based) or items (item-based). Predictions are
similarity-weighted averages over the selected neighborhood:

- threshold policy: every neighbor with similarity strictly above `threshold`
- k-NN policy: the `k` most similar neighbors, no threshold

User-based: neighbors are the *other users who rated the item*.
Item-based: neighbors are the *other items rated by the user*.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from threading import RLock
from typing import Hashable, Iterator, Literal

from ..similarity import Metric, SimilarityFn, get_metric
from ..sparse import SparseVector
from ..store.base import UNKNOWN_RATING, ItemId, RatingStore, UserId
from .cache import SimilarityCache
from .errors import UnknownItemError, UnknownUserError


logger = logging.getLogger(__name__)

Orientation = Literal["user", "item"]


@dataclass(frozen=True)
class Recommendation:
    item_id: ItemId
    score: float

    def __iter__(self) -> Iterator:
        return iter((self.item_id, self.score))


@dataclass(frozen=True)
class Neighbor:
    id: Hashable
    similarity: float


class NeighborhoodRecommender:
    """Similarity-weighted neighborhood recommender.

    Exactly one of `threshold` or `k` selects the neighborhood policy. The
    full similarity matrix for the chosen orientation is computed eagerly in
    the constructor; later mutations refresh only the affected row.
    """

    def __init__(
        self,
        store: RatingStore,
        *,
        metric: str | Metric | SimilarityFn = Metric.COSINE,
        orientation: Orientation = "user",
        threshold: float | None = None,
        k: int | None = None,
    ) -> None:
        if (threshold is None) == (k is None):
            raise ValueError("Exactly one of `threshold` or `k` must be given")
        if k is not None and int(k) < 1:
            raise ValueError(f"k must be >= 1, got {k}")
        if orientation not in ("user", "item"):
            raise ValueError(f"orientation must be 'user' or 'item', got {orientation!r}")

        self.store = store
        self.metric = get_metric(metric)
        self.orientation: Orientation = orientation
        self.threshold = None if threshold is None else float(threshold)
        self.k = None if k is None else int(k)

        self._cache = SimilarityCache()
        self._lock = RLock()
        self.rebuild()

    def __repr__(self) -> str:
        policy = f"k={self.k}" if self.k is not None else f"threshold={self.threshold}"
        return (
            f"{type(self).__name__}(orientation={self.orientation!r}, {policy}, "
            f"metric={getattr(self.metric, '__name__', self.metric)!r}, store={self.store!r})"
        )

    # ----- orientation plumbing -----

    def _entity_ids(self) -> set[Hashable]:
        return self.store.user_ids() if self.orientation == "user" else self.store.item_ids()

    def _vector(self, entity: Hashable) -> SparseVector:
        if self.orientation == "user":
            return self.store.user_vector(entity)
        return self.store.item_vector(entity)

    def _dimension(self) -> int:
        return self.store.num_items() if self.orientation == "user" else self.store.num_users()

    def _check_user(self, user_id: UserId) -> None:
        if not self.store.has_user(user_id):
            raise UnknownUserError(user_id)

    def _check_item(self, item_id: ItemId) -> None:
        if not self.store.has_item(item_id):
            raise UnknownItemError(item_id)

    def _check_entity(self, entity: Hashable) -> None:
        if self.orientation == "user":
            self._check_user(entity)
        else:
            self._check_item(entity)

    # ----- similarity cache -----

    def rebuild(self) -> None:
        """Recompute the full pairwise similarity matrix."""
        with self._lock:
            start = time.perf_counter()
            entities = self._entity_ids()
            pairs = self._cache.build(entities, self._vector, self.metric, self._dimension())
            logger.info(
                "Built %s similarity cache: entities=%d pairs=%d elapsed=%.3fs",
                self.orientation,
                len(entities),
                pairs,
                time.perf_counter() - start,
            )

    def _refresh(self, entity: Hashable) -> None:
        self._cache.refresh_row(entity, self._entity_ids(), self._vector, self.metric, self._dimension())

    def similarity(self, a: Hashable, b: Hashable) -> float:
        """Cached similarity between two users (user-based) or two items (item-based)."""
        with self._lock:
            self._check_entity(a)
            self._check_entity(b)
            return self._cache.get(a, b)

    def neighbors(self, entity: Hashable, *, top_n: int = 10) -> list[Neighbor]:
        """The `top_n` most similar other entities, ties broken by id ascending."""
        with self._lock:
            self._check_entity(entity)
            scored = [
                Neighbor(id=other, similarity=self._cache.get(entity, other))
                for other in self._entity_ids()
                if other != entity
            ]
        scored.sort(key=lambda nb: nb.id)
        scored.sort(key=lambda nb: nb.similarity, reverse=True)
        return scored[: max(0, int(top_n))]

    # ----- prediction -----

    def _estimate(self, target: Hashable, neighbor_ratings: dict[Hashable, float]) -> float | None:
        scored = [
            (self._cache.get(target, other), other, rating)
            for other, rating in neighbor_ratings.items()
            if other != target
        ]
        if self.k is not None:
            scored.sort(key=lambda t: t[1])
            scored.sort(key=lambda t: t[0], reverse=True)
            selected = scored[: self.k]
        else:
            selected = [t for t in scored if t[0] > self.threshold]

        total_sim = 0.0
        total_rating = 0.0
        for sim, _, rating in selected:
            total_sim += sim
            total_rating += sim * rating
        if total_sim > 0.0:
            return total_rating / total_sim
        return None

    def predict(self, user_id: UserId, item_id: ItemId) -> float | None:
        """Predicted rating of `item_id` by `user_id`, or None when no neighbor qualifies.

        Raises `UnknownUserError` / `UnknownItemError` for ids the store does not know.
        """
        with self._lock:
            self._check_user(user_id)
            self._check_item(item_id)
            if self.orientation == "user":
                return self._estimate(user_id, self.store.item_ratings(item_id))
            return self._estimate(item_id, self.store.user_ratings(user_id))

    def predict_or_sentinel(self, user_id: UserId, item_id: ItemId) -> float:
        """Like `predict`, but returns `UNKNOWN_RATING` instead of None."""
        pred = self.predict(user_id, item_id)
        return UNKNOWN_RATING if pred is None else pred

    def recommend(
        self,
        user_id: UserId,
        *,
        exclude_rated: bool = True,
        limit: int | None = None,
    ) -> list[Recommendation]:
        """Rank items for `user_id` by predicted rating.

        Items without a valid prediction are skipped. Ordering is score
        descending, ties broken by item id descending.
        """
        with self._lock:
            self._check_user(user_id)
            user_ratings = self.store.user_ratings(user_id)
            out: list[Recommendation] = []
            for item_id in self.store.item_ids():
                if exclude_rated and item_id in user_ratings:
                    continue
                if self.orientation == "user":
                    score = self._estimate(user_id, self.store.item_ratings(item_id))
                else:
                    score = self._estimate(item_id, user_ratings)
                if score is not None:
                    out.append(Recommendation(item_id=item_id, score=score))

        out.sort(key=lambda r: (r.score, r.item_id), reverse=True)
        if limit is not None:
            out = out[: max(0, int(limit))]
        return out

    # ----- mutation -----

    def add_user(self, user_id: UserId) -> bool:
        with self._lock:
            added = self.store.add_user(user_id)
            if added and self.orientation == "user":
                self._refresh(user_id)
            elif added:
                logger.debug("Added user %r; cached item similarities keep the previous dimension until rebuild()", user_id)
            return added

    def add_item(self, item_id: ItemId) -> bool:
        with self._lock:
            added = self.store.add_item(item_id)
            if added and self.orientation == "item":
                self._refresh(item_id)
            elif added:
                logger.debug("Added item %r; cached user similarities keep the previous dimension until rebuild()", item_id)
            return added

    def add_rating(self, user_id: UserId, item_id: ItemId, rating: float) -> bool:
        """Store a rating and refresh the similarity row of the entity whose vector changed."""
        with self._lock:
            added = self.store.add_rating(user_id, item_id, rating)
            if added:
                self._refresh(user_id if self.orientation == "user" else item_id)
            return added

    def remove_rating(self, user_id: UserId, item_id: ItemId) -> None:
        with self._lock:
            if not self.store.has_rating(user_id, item_id):
                return
            self.store.remove_rating(user_id, item_id)
            self._refresh(user_id if self.orientation == "user" else item_id)


class ThresholdUserRecommender(NeighborhoodRecommender):
    """User-based recommender averaging over users above a similarity threshold."""

    def __init__(self, store: RatingStore, threshold: float = 0.0, *, metric=Metric.COSINE) -> None:
        super().__init__(store, metric=metric, orientation="user", threshold=threshold)


class ThresholdItemRecommender(NeighborhoodRecommender):
    """Item-based recommender averaging over items above a similarity threshold."""

    def __init__(self, store: RatingStore, threshold: float = 0.0, *, metric=Metric.COSINE) -> None:
        super().__init__(store, metric=metric, orientation="item", threshold=threshold)


class KnnUserRecommender(NeighborhoodRecommender):
    """User-based recommender averaging over the k most similar raters."""

    def __init__(self, store: RatingStore, k: int = 50, *, metric=Metric.COSINE) -> None:
        super().__init__(store, metric=metric, orientation="user", k=k)


class KnnItemRecommender(NeighborhoodRecommender):
    """Item-based recommender averaging over the k most similar rated items."""

    def __init__(self, store: RatingStore, k: int = 50, *, metric=Metric.COSINE) -> None:
        super().__init__(store, metric=metric, orientation="item", k=k)
