from __future__ import annotations

import itertools
import math

import pytest

from neighborcf.recommender import (
    KnnItemRecommender,
    KnnUserRecommender,
    NeighborhoodRecommender,
    Recommendation,
    SimilarityCacheError,
    ThresholdItemRecommender,
    ThresholdUserRecommender,
    UnknownItemError,
    UnknownUserError,
)
from neighborcf.similarity import cosine
from neighborcf.store import UNKNOWN_RATING, DictRatingStore, IndexedRatingStore


# In the small store: sim(a, b) = 1/3 and sim(a, c) = 1/sqrt(10) ~ 0.316.
SIM_AB = 1.0 / 3.0
SIM_AC = 1.0 / math.sqrt(10.0)


def test_user_similarities_match_hand_computed_cosine(small_store) -> None:
    rec = ThresholdUserRecommender(small_store, threshold=0.0)
    assert rec.similarity("a", "b") == pytest.approx(SIM_AB)
    assert rec.similarity("b", "a") == rec.similarity("a", "b")
    assert rec.similarity("a", "c") == pytest.approx(SIM_AC)
    assert rec.similarity("a", "a") == 1.0


def test_threshold_user_predict(small_store) -> None:
    low = ThresholdUserRecommender(small_store, threshold=0.0)
    expected = (SIM_AB * 4.0 + SIM_AC * 2.0) / (SIM_AB + SIM_AC)
    assert low.predict("a", "z") == pytest.approx(expected)

    # Only b clears 0.32.
    mid = ThresholdUserRecommender(small_store, threshold=0.32)
    assert mid.predict("a", "z") == pytest.approx(4.0)

    high = ThresholdUserRecommender(small_store, threshold=0.5)
    assert high.predict("a", "z") is None
    assert high.predict_or_sentinel("a", "z") == UNKNOWN_RATING


def test_knn_user_predict_keeps_most_similar_neighbors(small_store) -> None:
    one = KnnUserRecommender(small_store, k=1)
    assert one.predict("a", "z") == pytest.approx(4.0)

    two = KnnUserRecommender(small_store, k=2)
    expected = (SIM_AB * 4.0 + SIM_AC * 2.0) / (SIM_AB + SIM_AC)
    assert two.predict("a", "z") == pytest.approx(expected)


def test_predict_excludes_the_user_itself(small_store) -> None:
    # a rated y itself; the only other rater is b (rating 1).
    rec = ThresholdUserRecommender(small_store, threshold=0.0)
    assert rec.predict("a", "y") == pytest.approx(1.0)


def test_knn_with_large_k_equals_threshold_below_every_similarity(small_store) -> None:
    knn = KnnUserRecommender(small_store, k=100)
    everyone = ThresholdUserRecommender(small_store, threshold=-2.0)
    for user_id, item_id in itertools.product(sorted(small_store.user_ids()), sorted(small_store.item_ids())):
        a = knn.predict(user_id, item_id)
        b = everyone.predict(user_id, item_id)
        if b is None:
            assert a is None
        else:
            assert a == pytest.approx(b)


def test_item_based_predict(small_store) -> None:
    # Item vectors over users (a, b, c): x=[1,1,1], y=[1,1,0], z=[0,4,2].
    sim_yx = 2.0 / math.sqrt(6.0)
    sim_yz = 4.0 / math.sqrt(40.0)

    knn = KnnItemRecommender(small_store, k=1)
    assert knn.similarity("y", "x") == pytest.approx(sim_yx)
    assert knn.predict("c", "y") == pytest.approx(1.0)

    everything = ThresholdItemRecommender(small_store, threshold=0.0)
    expected = (sim_yx * 1.0 + sim_yz * 2.0) / (sim_yx + sim_yz)
    assert everything.predict("c", "y") == pytest.approx(expected)

    strict = ThresholdItemRecommender(small_store, threshold=0.7)
    assert strict.predict("c", "y") == pytest.approx(1.0)


def test_recommend_skips_rated_items_by_default(small_store) -> None:
    rec = ThresholdUserRecommender(small_store, threshold=0.0)
    recs = rec.recommend("a")
    assert [r.item_id for r in recs] == ["z"]
    assert recs[0].score == pytest.approx(rec.predict("a", "z"))

    item_id, score = recs[0]
    assert isinstance(recs[0], Recommendation)
    assert (item_id, score) == ("z", recs[0].score)


def test_recommend_ties_are_broken_by_item_id_descending(small_store) -> None:
    rec = ThresholdUserRecommender(small_store, threshold=0.0)
    recs = rec.recommend("a", exclude_rated=False)
    # x and y both predict exactly 1.0 for a.
    assert [r.item_id for r in recs] == ["z", "y", "x"]
    assert recs[1].score == recs[2].score == 1.0

    assert [r.item_id for r in rec.recommend("a", exclude_rated=False, limit=2)] == ["z", "y"]


def test_item_based_recommend(small_store) -> None:
    rec = ThresholdItemRecommender(small_store, threshold=0.0)
    recs = rec.recommend("c")
    assert [r.item_id for r in recs] == ["y"]
    assert recs[0].score == pytest.approx(rec.predict("c", "y"))


def test_non_positive_weights_never_produce_a_prediction(fill_store) -> None:
    store = fill_store(DictRatingStore(), [("p", "x", 1.0), ("q", "x", -1.0), ("q", "y", 5.0)])
    for rec in (
        ThresholdUserRecommender(store, threshold=-2.0),
        KnnUserRecommender(store, k=5),
    ):
        assert rec.similarity("p", "q") < 0.0
        assert rec.predict("p", "y") is None
        assert rec.recommend("p") == []


def test_end_to_end_similarity_is_reproducible(fill_store) -> None:
    ratings = [("u1", "i1", 5.0), ("u2", "i1", 3.0), ("u1", "i2", 4.0), ("u2", "i2", 4.0)]
    first = KnnUserRecommender(fill_store(IndexedRatingStore(), ratings), k=10)
    second = KnnUserRecommender(fill_store(IndexedRatingStore(), ratings), k=10)

    assert first.similarity("u1", "u2") == second.similarity("u1", "u2")
    assert first.similarity("u1", "u2") == pytest.approx(31.0 / math.sqrt(41.0 * 25.0))


def test_add_rating_refreshes_only_what_a_full_rebuild_would_change(small_store) -> None:
    rec = ThresholdUserRecommender(small_store, threshold=0.0)
    assert rec.add_rating("c", "y", 5.0) is True

    fresh = ThresholdUserRecommender(small_store, threshold=0.0)
    for a, b in itertools.product(sorted(small_store.user_ids()), repeat=2):
        assert rec.similarity(a, b) == pytest.approx(fresh.similarity(a, b))
    assert rec.predict("a", "z") == pytest.approx(fresh.predict("a", "z"))


def test_item_based_add_rating_refreshes_item_row(small_store) -> None:
    rec = KnnItemRecommender(small_store, k=2)
    assert rec.add_rating("a", "z", 3.0) is True

    fresh = KnnItemRecommender(small_store, k=2)
    for a, b in itertools.product(sorted(small_store.item_ids()), repeat=2):
        assert rec.similarity(a, b) == pytest.approx(fresh.similarity(a, b))


def test_add_rating_for_unknown_ids_is_rejected(small_store) -> None:
    rec = KnnUserRecommender(small_store, k=2)
    before = rec.similarity("a", "b")
    assert rec.add_rating("ghost", "x", 5.0) is False
    assert rec.add_rating("a", "ghost", 5.0) is False
    assert not small_store.has_user("ghost")
    assert rec.similarity("a", "b") == before


def test_new_user_gets_a_similarity_row(small_store) -> None:
    rec = ThresholdUserRecommender(small_store, threshold=0.0)
    assert rec.add_user("d") is True
    assert rec.add_user("d") is False
    assert rec.similarity("d", "a") == 0.0
    assert rec.predict("d", "z") is None

    assert rec.add_rating("d", "z", 5.0)
    assert rec.similarity("d", "b") > 0.0
    assert rec.predict("a", "z") is not None


def test_new_item_gets_a_similarity_row_in_item_orientation(small_store) -> None:
    rec = KnnItemRecommender(small_store, k=3)
    assert rec.add_item("w") is True
    assert rec.similarity("w", "x") == 0.0
    assert rec.add_rating("a", "w", 2.0)
    assert rec.predict("a", "w") is not None


def test_remove_rating_refreshes_similarities(small_store) -> None:
    rec = ThresholdUserRecommender(small_store, threshold=0.0)
    rec.remove_rating("c", "x")
    assert small_store.rating("c", "x") == UNKNOWN_RATING
    assert rec.similarity("a", "c") == 0.0


def test_cache_miss_is_fatal_not_zero(small_store) -> None:
    rec = ThresholdUserRecommender(small_store, threshold=0.0)
    # Mutating the store behind the recommender's back leaves the cache incomplete.
    small_store.add_user("intruder")
    small_store.add_rating("intruder", "z", 3.0)
    with pytest.raises(SimilarityCacheError):
        rec.predict("a", "z")


def test_unknown_ids_raise_typed_key_errors(small_store) -> None:
    rec = KnnUserRecommender(small_store, k=2)
    with pytest.raises(UnknownUserError):
        rec.predict("nobody", "x")
    with pytest.raises(UnknownItemError):
        rec.predict("a", "nothing")
    with pytest.raises(KeyError):
        rec.recommend("nobody")
    with pytest.raises(UnknownUserError):
        rec.neighbors("nobody")


def test_neighbors_are_sorted_by_similarity(small_store) -> None:
    rec = KnnUserRecommender(small_store, k=2)
    neighbors = rec.neighbors("a", top_n=5)
    assert [n.id for n in neighbors] == ["b", "c"]
    assert neighbors[0].similarity == pytest.approx(SIM_AB)
    assert rec.neighbors("a", top_n=1)[0].id == "b"


def test_constructor_requires_exactly_one_policy(small_store) -> None:
    with pytest.raises(ValueError):
        NeighborhoodRecommender(small_store)
    with pytest.raises(ValueError):
        NeighborhoodRecommender(small_store, threshold=0.1, k=3)
    with pytest.raises(ValueError):
        NeighborhoodRecommender(small_store, k=0)
    with pytest.raises(ValueError):
        NeighborhoodRecommender(small_store, k=3, orientation="session")  # type: ignore[arg-type]


def test_metric_can_be_named_or_injected(small_store) -> None:
    by_name = NeighborhoodRecommender(small_store, metric="pearson", k=2)
    injected = NeighborhoodRecommender(small_store, metric=cosine, k=2)
    assert by_name.similarity("a", "b") != injected.similarity("a", "b")
    assert injected.similarity("a", "b") == pytest.approx(SIM_AB)


def test_adding_an_item_keeps_pearson_user_scores_until_rebuild(fill_store) -> None:
    store = fill_store(DictRatingStore(), [("a", "x", 1.0), ("a", "y", 2.0), ("b", "x", 2.0), ("b", "y", 1.0)])
    rec = NeighborhoodRecommender(store, metric="pearson", k=2)
    # Over (x, y): a=[1, 2], b=[2, 1].
    assert rec.similarity("a", "b") == pytest.approx(-1.0)

    assert rec.add_item("w") is True
    assert rec.similarity("a", "b") == pytest.approx(-1.0)

    # Over (x, y, w): cov=1/3, var=2/3 for both.
    rec.rebuild()
    assert rec.similarity("a", "b") == pytest.approx(0.5)
    assert NeighborhoodRecommender(store, metric="pearson", k=2).similarity("a", "b") == pytest.approx(0.5)
