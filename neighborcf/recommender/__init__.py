"""Neighborhood collaborative filtering over a rating store.

Core idea:
- Index (user, item, rating) observations in a `RatingStore`
- Precompute pairwise user (or item) similarities once, then keep them fresh row by row
- Predict a rating as the similarity-weighted average over the selected neighbors
- Recommend unrated items sorted by predicted rating
"""

from .errors import SimilarityCacheError, UnknownItemError, UnknownKeyError, UnknownUserError
from .neighborhood import (
    KnnItemRecommender,
    KnnUserRecommender,
    NeighborhoodRecommender,
    Neighbor,
    Recommendation,
    ThresholdItemRecommender,
    ThresholdUserRecommender,
)

__all__ = [
    "NeighborhoodRecommender",
    "ThresholdUserRecommender",
    "ThresholdItemRecommender",
    "KnnUserRecommender",
    "KnnItemRecommender",
    "Recommendation",
    "Neighbor",
    "UnknownKeyError",
    "UnknownUserError",
    "UnknownItemError",
    "SimilarityCacheError",
]
