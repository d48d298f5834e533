"""Rating-store contract shared by every storage backend.

A store owns the user <-> item <-> rating relation. Recommenders only talk to
this interface, so backends can be swapped without the recommender knowing.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Hashable, Iterator, Mapping

from ..sparse import SparseVector


UserId = Hashable
ItemId = Hashable

# Returned by `rating()` when no rating exists for a (user, item) pair.
UNKNOWN_RATING: float = -1.0


class KeyIndex:
    """Append-only assignment of dense integer indices to opaque ids."""

    def __init__(self) -> None:
        self._index: dict[Hashable, int] = {}
        self._keys: list[Hashable] = []

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, key: object) -> bool:
        return key in self._index

    def index_of(self, key: Hashable) -> int:
        """Return the index of `key`, assigning the next free one on first sight."""
        idx = self._index.get(key)
        if idx is None:
            idx = len(self._keys)
            self._index[key] = idx
            self._keys.append(key)
        return idx

    def get(self, key: Hashable) -> int | None:
        return self._index.get(key)

    def key_at(self, idx: int) -> Hashable:
        return self._keys[int(idx)]

    def keys(self) -> list[Hashable]:
        return list(self._keys)


class RatingStore(ABC):
    """Abstract rating store.

    Invariant: a rating exists for (u, i) only if `u` is a known user and `i` a
    known item. `user_ratings`/`item_ratings` return an empty mapping for
    unknown ids rather than raising.
    """

    def __init__(self) -> None:
        self._user_index = KeyIndex()
        self._item_index = KeyIndex()

    # ----- contract -----

    @abstractmethod
    def user_ids(self) -> set[UserId]:
        ...

    @abstractmethod
    def item_ids(self) -> set[ItemId]:
        ...

    @abstractmethod
    def user_ratings(self, user_id: UserId) -> dict[ItemId, float]:
        ...

    @abstractmethod
    def item_ratings(self, item_id: ItemId) -> dict[UserId, float]:
        ...

    @abstractmethod
    def rating(self, user_id: UserId, item_id: ItemId) -> float:
        ...

    @abstractmethod
    def add_user(self, user_id: UserId) -> bool:
        ...

    @abstractmethod
    def add_item(self, item_id: ItemId) -> bool:
        ...

    @abstractmethod
    def add_rating(self, user_id: UserId, item_id: ItemId, rating: float) -> bool:
        ...

    @abstractmethod
    def remove_rating(self, user_id: UserId, item_id: ItemId) -> None:
        ...

    # ----- derived helpers -----

    def num_users(self) -> int:
        return len(self.user_ids())

    def num_items(self) -> int:
        return len(self.item_ids())

    def has_user(self, user_id: UserId) -> bool:
        return user_id in self.user_ids()

    def has_item(self, item_id: ItemId) -> bool:
        return item_id in self.item_ids()

    def has_rating(self, user_id: UserId, item_id: ItemId) -> bool:
        return item_id in self.user_ratings(user_id)

    def iter_ratings(self) -> Iterator[tuple[UserId, ItemId, float]]:
        for user_id in self.user_ids():
            for item_id, value in self.user_ratings(user_id).items():
                yield user_id, item_id, value

    def num_ratings(self) -> int:
        return sum(1 for _ in self.iter_ratings())

    def user_vector(self, user_id: UserId) -> SparseVector:
        """Ratings of `user_id` as a sparse vector over the item index space."""
        return self._to_vector(self.user_ratings(user_id), self._item_index, self.num_items())

    def item_vector(self, item_id: ItemId) -> SparseVector:
        """Ratings of `item_id` as a sparse vector over the user index space."""
        return self._to_vector(self.item_ratings(item_id), self._user_index, self.num_users())

    @staticmethod
    def _to_vector(ratings: Mapping[Hashable, float], index: KeyIndex, dimension: int) -> SparseVector:
        values = {index.index_of(key): value for key, value in ratings.items()}
        return SparseVector(max(dimension, len(index)), values)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(users={self.num_users()}, items={self.num_items()})"
