from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from neighborcf.config import AppConfig, config_from_dict, load_config
from neighborcf.data import Field, RatingRecord, ReadOptions, load_store, read_records, records_from_frame
from neighborcf.pipelines.build import build_recommender
from neighborcf.store import DictRatingStore, IndexedRatingStore


REPO_ROOT = Path(__file__).resolve().parents[1]


def _write(tmp_path: Path, name: str, text: str) -> Path:
    path = tmp_path / name
    path.write_text(text)
    return path


def test_read_default_file_parses_integer_ids(tmp_path: Path) -> None:
    path = _write(tmp_path, "mock.csv", "1,10,4.5\n2,10,3\n2,11,1\n")
    records = read_records(path)
    assert records == [RatingRecord(1, 10, 4.5), RatingRecord(2, 10, 3.0), RatingRecord(2, 11, 1.0)]


def test_zero_padded_and_signed_ids_stay_distinct_strings(tmp_path: Path) -> None:
    path = _write(tmp_path, "padded.csv", "1,10,5\n01,10,3\n+7,10,2\n")
    records = read_records(path)
    assert [r.user_id for r in records] == ["1", "01", "+7"]
    assert [r.item_id for r in records] == [10, 10, 10]

    store = load_store(records, DictRatingStore())
    assert store.num_users() == 3
    assert store.rating("1", 10) == 5.0
    assert store.rating("01", 10) == 3.0


def test_read_file_with_headers_and_custom_separator(tmp_path: Path) -> None:
    path = _write(tmp_path, "mock_separator.csv", "user?item?rating\nuser_1?item_1?2.5\nuser_2?item_1?4\n")
    options = ReadOptions.custom([Field.USER_ID, Field.ITEM_ID, Field.RATING], has_headers=True, delimiter="?")
    records = read_records(path, options)
    assert records == [RatingRecord("user_1", "item_1", 2.5), RatingRecord("user_2", "item_1", 4.0)]


def test_read_file_with_reordered_and_extra_columns(tmp_path: Path) -> None:
    path = _write(tmp_path, "mock_custom.csv", "7,u1,123456,3.0\n8,u2,123457,5.0\n")
    options = ReadOptions.custom(["item_id", "user_id", "other", "rating"])
    records = read_records(path, options)
    assert records == [RatingRecord("u1", 7, 3.0), RatingRecord("u2", 8, 5.0)]


def test_space_delimited_file(tmp_path: Path) -> None:
    path = _write(tmp_path, "movielens.csv", "326 5 4\n326 9 2\n")
    records = read_records(path, ReadOptions(delimiter=" "))
    assert [r.user_id for r in records] == [326, 326]
    assert [r.rating for r in records] == [4.0, 2.0]


def test_unparsable_rating_names_the_line(tmp_path: Path) -> None:
    path = _write(tmp_path, "bad.csv", "user,item,rating\nu1,i1,4\nu2,i1,great\n")
    with pytest.raises(ValueError, match="line 3"):
        read_records(path, ReadOptions(has_headers=True))


def test_column_count_must_match_fields(tmp_path: Path) -> None:
    path = _write(tmp_path, "wide.csv", "u1,i1,4,extra\n")
    with pytest.raises(ValueError, match="4 columns but 3 fields"):
        read_records(path)


def test_read_options_require_each_core_field_once() -> None:
    with pytest.raises(ValueError, match="rating"):
        ReadOptions.custom([Field.USER_ID, Field.ITEM_ID, Field.OTHER]).validate()
    with pytest.raises(ValueError, match="user_id"):
        ReadOptions.custom([Field.USER_ID, Field.USER_ID, Field.ITEM_ID, Field.RATING]).validate()


def test_missing_and_empty_files(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        read_records(tmp_path / "nope.csv")
    assert read_records(_write(tmp_path, "empty.csv", "")) == []


def test_records_from_frame_requires_columns() -> None:
    df = pd.DataFrame({"user_id": ["a"], "item_id": ["x"], "score": [1.0]})
    with pytest.raises(ValueError, match="missing columns"):
        records_from_frame(df)
    assert records_from_frame(df, rating_col="score") == [RatingRecord("a", "x", 1.0)]


def test_load_store_later_duplicates_win() -> None:
    store = load_store([("a", "x", 1.0), ("b", "x", 2.0), ("a", "x", 5.0)], DictRatingStore())
    assert store.rating("a", "x") == 5.0
    assert store.num_users() == 2
    assert store.num_items() == 1

    default = load_store([("a", "x", 1.0)])
    assert isinstance(default, IndexedRatingStore)


def test_config_defaults_fill_missing_keys(tmp_path: Path) -> None:
    path = _write(tmp_path, "config.yaml", "recommender:\n  orientation: item\n  policy: threshold\n  threshold: 0.25\n")
    cfg = load_config(path)
    assert cfg.recommender.orientation == "item"
    assert cfg.recommender.selection_kwargs() == {"threshold": 0.25}
    assert cfg.recommender.metric == "cosine"
    assert cfg.dataset == AppConfig().dataset


def test_config_rejects_bad_input(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")
    with pytest.raises(ValueError, match="mapping"):
        load_config(_write(tmp_path, "list.yaml", "- 1\n- 2\n"))
    with pytest.raises(ValueError, match="policy"):
        config_from_dict({"recommender": {"policy": "random"}}).recommender.selection_kwargs()


def test_repo_config_builds_a_working_recommender() -> None:
    cfg = load_config(REPO_ROOT / "config.yaml")
    rec = build_recommender(cfg, repo_root=REPO_ROOT)

    assert rec.store.num_users() == 5
    assert rec.store.num_items() == 5
    recs = rec.recommend("user_1")
    assert recs
    assert {r.item_id for r in recs} <= {"item_3", "item_4"}
    assert [r.score for r in recs] == sorted((r.score for r in recs), reverse=True)
