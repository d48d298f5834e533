"""Index-oriented rating store: dense arrays of sparse rows."""

from __future__ import annotations

from ..sparse import SparseVector
from .base import UNKNOWN_RATING, ItemId, RatingStore, UserId


class IndexedRatingStore(RatingStore):
    """Store ratings as per-user and per-item sparse rows addressed by index.

    Each id gets a dense integer index on insertion (never reused), so user
    rows live in the item index space and item rows in the user index space.
    Building vectors for the recommender is then a copy of the row.
    """

    def __init__(self) -> None:
        super().__init__()
        self._user_rows: list[dict[int, float]] = []
        self._item_rows: list[dict[int, float]] = []

    def user_ids(self) -> set[UserId]:
        return set(self._user_index.keys())

    def item_ids(self) -> set[ItemId]:
        return set(self._item_index.keys())

    def num_users(self) -> int:
        return len(self._user_index)

    def num_items(self) -> int:
        return len(self._item_index)

    def has_user(self, user_id: UserId) -> bool:
        return user_id in self._user_index

    def has_item(self, item_id: ItemId) -> bool:
        return item_id in self._item_index

    def user_ratings(self, user_id: UserId) -> dict[ItemId, float]:
        u = self._user_index.get(user_id)
        if u is None:
            return {}
        return {self._item_index.key_at(i): r for i, r in self._user_rows[u].items()}

    def item_ratings(self, item_id: ItemId) -> dict[UserId, float]:
        i = self._item_index.get(item_id)
        if i is None:
            return {}
        return {self._user_index.key_at(u): r for u, r in self._item_rows[i].items()}

    def rating(self, user_id: UserId, item_id: ItemId) -> float:
        u = self._user_index.get(user_id)
        i = self._item_index.get(item_id)
        if u is None or i is None:
            return UNKNOWN_RATING
        return self._user_rows[u].get(i, UNKNOWN_RATING)

    def add_user(self, user_id: UserId) -> bool:
        if user_id in self._user_index:
            return False
        self._user_index.index_of(user_id)
        self._user_rows.append({})
        return True

    def add_item(self, item_id: ItemId) -> bool:
        if item_id in self._item_index:
            return False
        self._item_index.index_of(item_id)
        self._item_rows.append({})
        return True

    def add_rating(self, user_id: UserId, item_id: ItemId, rating: float) -> bool:
        u = self._user_index.get(user_id)
        i = self._item_index.get(item_id)
        if u is None or i is None:
            return False
        value = float(rating)
        self._user_rows[u][i] = value
        self._item_rows[i][u] = value
        return True

    def remove_rating(self, user_id: UserId, item_id: ItemId) -> None:
        u = self._user_index.get(user_id)
        i = self._item_index.get(item_id)
        if u is None or i is None:
            return
        self._user_rows[u].pop(i, None)
        self._item_rows[i].pop(u, None)

    def num_ratings(self) -> int:
        return sum(len(row) for row in self._user_rows)

    def user_vector(self, user_id: UserId) -> SparseVector:
        u = self._user_index.get(user_id)
        row = self._user_rows[u] if u is not None else {}
        return SparseVector(len(self._item_index), row)

    def item_vector(self, item_id: ItemId) -> SparseVector:
        i = self._item_index.get(item_id)
        row = self._item_rows[i] if i is not None else {}
        return SparseVector(len(self._user_index), row)
