"""Rating-store backends.

All backends implement `RatingStore`; `make_store(kind)` builds one by name.
"""

from __future__ import annotations

from .base import UNKNOWN_RATING, KeyIndex, RatingStore
from .indexed import IndexedRatingStore
from .memory import DictRatingStore
from .sqlite import SqliteRatingStore


STORE_KINDS = {
    "dict": DictRatingStore,
    "indexed": IndexedRatingStore,
    "sqlite": SqliteRatingStore,
}


def make_store(kind: str = "indexed", **kwargs) -> RatingStore:
    try:
        cls = STORE_KINDS[str(kind).strip().lower()]
    except KeyError as exc:
        raise ValueError(f"Unknown store kind {kind!r} (expected one of: {', '.join(STORE_KINDS)})") from exc
    return cls(**kwargs)


__all__ = [
    "UNKNOWN_RATING",
    "KeyIndex",
    "RatingStore",
    "DictRatingStore",
    "IndexedRatingStore",
    "SqliteRatingStore",
    "STORE_KINDS",
    "make_store",
]
