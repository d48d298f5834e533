"""Ingestion adapter: turn delimited rating files into (user, item, rating) records.

The recommender core never reads files itself; it only needs the record
stream produced here (or an already populated `RatingStore`).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Hashable, Iterable, NamedTuple, Sequence

import pandas as pd

from .store.base import RatingStore
from .store.indexed import IndexedRatingStore


logger = logging.getLogger(__name__)

_INT_RE = re.compile(r"^[+-]?\d+$")


def _is_canonical_int(value: str) -> bool:
    return bool(_INT_RE.match(value)) and str(int(value)) == value


class Field(str, Enum):
    """Meaning of a column in a ratings file."""

    USER_ID = "user_id"
    ITEM_ID = "item_id"
    RATING = "rating"
    OTHER = "other"


REQUIRED_FIELDS: tuple[Field, ...] = (Field.USER_ID, Field.ITEM_ID, Field.RATING)


class RatingRecord(NamedTuple):
    user_id: Hashable
    item_id: Hashable
    rating: float


@dataclass(frozen=True)
class ReadOptions:
    """How to interpret a ratings file.

    `fields` lists the meaning of each column in order; `Field.OTHER` columns
    are read and dropped.
    """

    fields: tuple[Field, ...] = REQUIRED_FIELDS
    has_headers: bool = False
    delimiter: str = ","

    @classmethod
    def default(cls) -> "ReadOptions":
        return cls()

    @classmethod
    def custom(cls, fields: Sequence[Field | str], has_headers: bool = False, delimiter: str = ",") -> "ReadOptions":
        return cls(fields=tuple(Field(f) for f in fields), has_headers=bool(has_headers), delimiter=str(delimiter))

    def validate(self) -> None:
        for required in REQUIRED_FIELDS:
            count = sum(1 for f in self.fields if f == required)
            if count != 1:
                raise ValueError(f"fields must contain {required.value!r} exactly once, found {count}")
        if len(self.delimiter) != 1:
            raise ValueError(f"delimiter must be a single character, got {self.delimiter!r}")

    def column_of(self, field: Field) -> int:
        return self.fields.index(field)


def _coerce_ids(values: pd.Series) -> list[Hashable]:
    """Parse ids as ints when every value is a canonical integer, otherwise keep stripped strings.

    "01" or "+7" keep the whole column as strings so distinct ids never merge.
    """
    text = values.astype(str).str.strip()
    if len(text) and text.map(_is_canonical_int).all():
        return [int(v) for v in text.tolist()]
    return text.tolist()


def records_from_frame(
    df: pd.DataFrame,
    *,
    user_col: str = "user_id",
    item_col: str = "item_id",
    rating_col: str = "rating",
    first_line: int = 1,
) -> list[RatingRecord]:
    """Convert a DataFrame with user/item/rating columns into records."""
    missing = [c for c in (user_col, item_col, rating_col) if c not in df.columns]
    if missing:
        raise ValueError(f"ratings frame missing columns: {missing}")
    if df.empty:
        return []

    ratings = pd.to_numeric(df[rating_col].astype(str).str.strip(), errors="coerce")
    bad = ratings.isna().to_numpy().nonzero()[0]
    if len(bad):
        pos = int(bad[0])
        raise ValueError(
            f"Unparsable rating {df[rating_col].iloc[pos]!r} on line {first_line + pos} "
            f"({len(bad)} bad row(s) in total)"
        )

    users = _coerce_ids(df[user_col])
    items = _coerce_ids(df[item_col])
    return [RatingRecord(u, i, float(r)) for u, i, r in zip(users, items, ratings.tolist())]


def read_records(path: Path | str, options: ReadOptions | None = None) -> list[RatingRecord]:
    """Read a delimited ratings file into a list of `RatingRecord`.

    Default layout is `user,item,rating` with no header row.
    """
    options = options or ReadOptions.default()
    options.validate()

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"ratings file not found: {path}")

    try:
        df = pd.read_csv(
            path,
            sep=options.delimiter,
            header=0 if options.has_headers else None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError:
        logger.warning("Ratings file %s is empty", path)
        return []

    if df.shape[1] != len(options.fields):
        raise ValueError(
            f"{path.name} has {df.shape[1]} columns but {len(options.fields)} fields were declared"
        )

    df.columns = [f"{field.value}_{pos}" for pos, field in enumerate(options.fields)]
    cols = {field: f"{field.value}_{options.column_of(field)}" for field in REQUIRED_FIELDS}
    records = records_from_frame(
        df,
        user_col=cols[Field.USER_ID],
        item_col=cols[Field.ITEM_ID],
        rating_col=cols[Field.RATING],
        first_line=2 if options.has_headers else 1,
    )
    logger.info("Read %d rating records from %s", len(records), path)
    return records


def load_store(records: Iterable[tuple[Hashable, Hashable, float]], store: RatingStore | None = None) -> RatingStore:
    """Populate `store` (a fresh `IndexedRatingStore` by default) from records.

    Later duplicates of a (user, item) pair overwrite earlier ones.
    """
    store = IndexedRatingStore() if store is None else store
    n = 0
    for user_id, item_id, rating in records:
        store.add_user(user_id)
        store.add_item(item_id)
        store.add_rating(user_id, item_id, float(rating))
        n += 1
    logger.info(
        "Loaded %d records into %s: users=%d items=%d",
        n,
        type(store).__name__,
        store.num_users(),
        store.num_items(),
    )
    return store
