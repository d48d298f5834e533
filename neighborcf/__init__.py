"""Neighborhood-based collaborative filtering.

- `store`: rating stores (in-memory, index-oriented, sqlite)
- `similarity`: cosine / extended Jaccard / Pearson over sparse vectors
- `recommender`: threshold and k-NN recommenders, user- and item-based
- `data`: ratings file ingestion
"""

__version__ = "0.1.0"
