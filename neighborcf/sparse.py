"""Sparse rating vectors over an integer index space."""

from __future__ import annotations

import math
from typing import Iterator, Mapping


class SparseVector:
    """Mapping from dimension index to value; absent indices are implicitly 0.

    Two vectors are only comparable when they were built over the same index
    assignment (same `KeyIndex`), which is also what makes `dimension` agree.
    """

    __slots__ = ("_dimension", "_values")

    def __init__(self, dimension: int, values: Mapping[int, float] | None = None) -> None:
        dimension = int(dimension)
        if dimension < 0:
            raise ValueError(f"dimension must be >= 0, got {dimension}")
        data: dict[int, float] = {}
        for idx, val in (values or {}).items():
            idx = int(idx)
            if idx < 0 or idx >= dimension:
                raise IndexError(f"index {idx} out of range for dimension {dimension}")
            data[idx] = float(val)
        self._dimension = dimension
        self._values = data

    @property
    def dimension(self) -> int:
        return self._dimension

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[int]:
        return iter(self._values)

    def __contains__(self, idx: object) -> bool:
        return idx in self._values

    def __getitem__(self, idx: int) -> float:
        return self._values.get(int(idx), 0.0)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SparseVector):
            return NotImplemented
        return self._dimension == other._dimension and self._values == other._values

    def __repr__(self) -> str:
        return f"SparseVector(dimension={self._dimension}, values={self._values!r})"

    def get(self, idx: int, default: float | None = None) -> float | None:
        return self._values.get(int(idx), default)

    def items(self):
        return self._values.items()

    def indices(self) -> list[int]:
        return sorted(self._values)

    def dot(self, other: "SparseVector") -> float:
        """Sum of products over shared indices, iterating the smaller operand.

        `math.fsum` makes the result independent of iteration order, so
        `a.dot(b) == b.dot(a)` exactly.
        """
        small, large = (self, other) if len(self) <= len(other) else (other, self)
        lookup = large._values
        return math.fsum(val * lookup[idx] for idx, val in small._values.items() if idx in lookup)

    def norm(self) -> float:
        return math.sqrt(self.dot(self))

    def total(self) -> float:
        return math.fsum(self._values.values())

    def mean(self, n: int | None = None) -> float:
        """Mean over `n` entries (default: the full dimension), zeros included."""
        n = self._dimension if n is None else int(n)
        if n <= 0:
            return 0.0
        return self.total() / n


def covariance(a: SparseVector, b: SparseVector, n: int) -> float:
    """Covariance treating each vector as a uniform random variable over `n` entries."""
    n = int(n)
    if n <= 0:
        return 0.0
    return a.dot(b) / n - a.mean(n) * b.mean(n)


def legacy_covariance(a: SparseVector, b: SparseVector, n: int) -> float:
    """Historical formula `dot - (sum_a**2 + sum_b**2) / n`.

    Kept only to compare against older scores; it is not a covariance and no
    metric uses it.
    """
    n = int(n)
    if n <= 0:
        return 0.0
    sum_a = a.total()
    sum_b = b.total()
    return a.dot(b) - (sum_a * sum_a + sum_b * sum_b) / n
