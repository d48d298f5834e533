"""Id-keyed in-memory rating store."""

from __future__ import annotations

from .base import UNKNOWN_RATING, ItemId, RatingStore, UserId


class DictRatingStore(RatingStore):
    """Reference in-memory store keyed directly by user and item ids.

    Ratings are indexed twice (by user and by item) so per-key lookups cost
    O(ratings for that key) instead of a scan over the whole relation.
    """

    def __init__(self) -> None:
        super().__init__()
        self._by_user: dict[UserId, dict[ItemId, float]] = {}
        self._by_item: dict[ItemId, dict[UserId, float]] = {}

    def user_ids(self) -> set[UserId]:
        return set(self._by_user)

    def item_ids(self) -> set[ItemId]:
        return set(self._by_item)

    def user_ratings(self, user_id: UserId) -> dict[ItemId, float]:
        return dict(self._by_user.get(user_id, {}))

    def item_ratings(self, item_id: ItemId) -> dict[UserId, float]:
        return dict(self._by_item.get(item_id, {}))

    def rating(self, user_id: UserId, item_id: ItemId) -> float:
        return self._by_user.get(user_id, {}).get(item_id, UNKNOWN_RATING)

    def num_users(self) -> int:
        return len(self._by_user)

    def num_items(self) -> int:
        return len(self._by_item)

    def has_user(self, user_id: UserId) -> bool:
        return user_id in self._by_user

    def has_item(self, item_id: ItemId) -> bool:
        return item_id in self._by_item

    def add_user(self, user_id: UserId) -> bool:
        if user_id in self._by_user:
            return False
        self._by_user[user_id] = {}
        return True

    def add_item(self, item_id: ItemId) -> bool:
        if item_id in self._by_item:
            return False
        self._by_item[item_id] = {}
        return True

    def add_rating(self, user_id: UserId, item_id: ItemId, rating: float) -> bool:
        if user_id not in self._by_user or item_id not in self._by_item:
            return False
        value = float(rating)
        self._by_user[user_id][item_id] = value
        self._by_item[item_id][user_id] = value
        return True

    def remove_rating(self, user_id: UserId, item_id: ItemId) -> None:
        self._by_user.get(user_id, {}).pop(item_id, None)
        self._by_item.get(item_id, {}).pop(user_id, None)

    def num_ratings(self) -> int:
        return sum(len(r) for r in self._by_user.values())
