"""SQL-backed rating store on top of sqlite3."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Iterator

from .base import UNKNOWN_RATING, ItemId, RatingStore, UserId


logger = logging.getLogger(__name__)

# Id columns are declared without a type so sqlite keeps ints as ints and
# strings as strings.
_SCHEMA = (
    "CREATE TABLE IF NOT EXISTS users (user_id PRIMARY KEY)",
    "CREATE TABLE IF NOT EXISTS items (item_id PRIMARY KEY)",
    """
    CREATE TABLE IF NOT EXISTS ratings (
        user_id NOT NULL REFERENCES users(user_id),
        item_id NOT NULL REFERENCES items(item_id),
        rating REAL NOT NULL,
        PRIMARY KEY (user_id, item_id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS ratings_by_item ON ratings (item_id)",
)


class SqliteRatingStore(RatingStore):
    """Rating store persisted in a sqlite database (in-memory by default).

    The connection is held for the lifetime of the store; call `close()` (or
    use the store as a context manager) when done.
    """

    def __init__(self, db_path: str | Path = ":memory:") -> None:
        super().__init__()
        self.db_path = str(db_path)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._init_db()

    def _init_db(self) -> None:
        with self._conn:
            for stmt in _SCHEMA:
                self._conn.execute(stmt)
        logger.debug("sqlite rating store ready at %s", self.db_path)

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "SqliteRatingStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def user_ids(self) -> set[UserId]:
        return {row[0] for row in self._conn.execute("SELECT user_id FROM users")}

    def item_ids(self) -> set[ItemId]:
        return {row[0] for row in self._conn.execute("SELECT item_id FROM items")}

    def user_ratings(self, user_id: UserId) -> dict[ItemId, float]:
        cur = self._conn.execute("SELECT item_id, rating FROM ratings WHERE user_id = ?", (user_id,))
        return {item_id: float(r) for item_id, r in cur}

    def item_ratings(self, item_id: ItemId) -> dict[UserId, float]:
        cur = self._conn.execute("SELECT user_id, rating FROM ratings WHERE item_id = ?", (item_id,))
        return {user_id: float(r) for user_id, r in cur}

    def rating(self, user_id: UserId, item_id: ItemId) -> float:
        row = self._conn.execute(
            "SELECT rating FROM ratings WHERE user_id = ? AND item_id = ?",
            (user_id, item_id),
        ).fetchone()
        return UNKNOWN_RATING if row is None else float(row[0])

    def num_users(self) -> int:
        return int(self._conn.execute("SELECT COUNT(*) FROM users").fetchone()[0])

    def num_items(self) -> int:
        return int(self._conn.execute("SELECT COUNT(*) FROM items").fetchone()[0])

    def num_ratings(self) -> int:
        return int(self._conn.execute("SELECT COUNT(*) FROM ratings").fetchone()[0])

    def has_user(self, user_id: UserId) -> bool:
        return self._conn.execute("SELECT 1 FROM users WHERE user_id = ?", (user_id,)).fetchone() is not None

    def has_item(self, item_id: ItemId) -> bool:
        return self._conn.execute("SELECT 1 FROM items WHERE item_id = ?", (item_id,)).fetchone() is not None

    def add_user(self, user_id: UserId) -> bool:
        with self._conn:
            cur = self._conn.execute("INSERT OR IGNORE INTO users (user_id) VALUES (?)", (user_id,))
        return cur.rowcount == 1

    def add_item(self, item_id: ItemId) -> bool:
        with self._conn:
            cur = self._conn.execute("INSERT OR IGNORE INTO items (item_id) VALUES (?)", (item_id,))
        return cur.rowcount == 1

    def add_rating(self, user_id: UserId, item_id: ItemId, rating: float) -> bool:
        with self._conn:
            if not (self.has_user(user_id) and self.has_item(item_id)):
                return False
            self._conn.execute(
                "INSERT OR REPLACE INTO ratings (user_id, item_id, rating) VALUES (?, ?, ?)",
                (user_id, item_id, float(rating)),
            )
        return True

    def remove_rating(self, user_id: UserId, item_id: ItemId) -> None:
        with self._conn:
            self._conn.execute("DELETE FROM ratings WHERE user_id = ? AND item_id = ?", (user_id, item_id))

    def iter_ratings(self) -> Iterator[tuple[UserId, ItemId, float]]:
        for user_id, item_id, r in self._conn.execute("SELECT user_id, item_id, rating FROM ratings"):
            yield user_id, item_id, float(r)
