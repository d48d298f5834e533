"""Error types raised by the recommenders."""

from __future__ import annotations


class UnknownKeyError(KeyError):
    """A user or item id that the rating store has never seen."""

    kind = "key"

    def __init__(self, key: object) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"Unknown {self.kind}: {self.key!r}"


class UnknownUserError(UnknownKeyError):
    kind = "user"


class UnknownItemError(UnknownKeyError):
    kind = "item"


class SimilarityCacheError(RuntimeError):
    """A similarity lookup missed for a pair the cache should already hold.

    The cache is complete after construction and kept complete by every
    mutation, so a miss means the incremental update path is broken.
    """
