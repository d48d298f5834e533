from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure `import neighborcf...` works when pytest uses importlib import mode.
REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))

from neighborcf.store import DictRatingStore, RatingStore, make_store  # noqa: E402


SMALL_RATINGS = [
    # a: [x=1, y=1]        b: [x=1, y=1, z=4]        c: [x=1, z=2]
    ("a", "x", 1.0),
    ("a", "y", 1.0),
    ("b", "x", 1.0),
    ("b", "y", 1.0),
    ("b", "z", 4.0),
    ("c", "x", 1.0),
    ("c", "z", 2.0),
]


def fill(store: RatingStore, ratings) -> RatingStore:
    for user_id, item_id, rating in ratings:
        store.add_user(user_id)
        store.add_item(item_id)
        assert store.add_rating(user_id, item_id, rating)
    return store


@pytest.fixture(params=["dict", "indexed", "sqlite"])
def empty_store(request: pytest.FixtureRequest):
    store = make_store(request.param)
    yield store
    close = getattr(store, "close", None)
    if callable(close):
        close()


@pytest.fixture
def small_store() -> RatingStore:
    return fill(DictRatingStore(), SMALL_RATINGS)


@pytest.fixture
def fill_store():
    return fill
