"""Combinatorial indexing: t-subset enumeration and mixed-radix numbering.

A t-subset is a strictly increasing tuple of parameter indices. Within a
fixed subset, every value tuple maps to a dense integer index using a
mixed-radix numbering over the subset's domain sizes, with the first
parameter of the subset as the most significant digit.

Example:
    >>> list(all_combinations(4, 2))
    [(0, 1), (0, 2), (0, 3), (1, 2), (1, 3), (2, 3)]
    >>> radix = MixedRadix((0, 1), [3, 3, 3, 3])
    >>> radix.encode((1, 2))
    5
    >>> radix.decode(4)
    (1, 1)
"""

from __future__ import annotations

import math
from collections.abc import Iterator, Sequence


def all_combinations(n: int, m: int) -> Iterator[tuple[int, ...]]:
    """Yield all C(n, m) strictly increasing index tuples drawn from range(n).

    Tuples come out in lexicographic order. ``m == 0`` yields a single
    empty tuple; ``m > n`` yields nothing.

    Raises:
        ValueError: If n or m is negative.
    """
    if n < 0 or m < 0:
        raise ValueError(f"n and m must be non-negative (got n={n}, m={m})")

    chosen: list[int] = []

    def backtrack(start: int) -> Iterator[tuple[int, ...]]:
        left = m - len(chosen)
        if left == 0:
            yield tuple(chosen)
            return
        for i in range(start, n - left + 1):
            chosen.append(i)
            yield from backtrack(i + 1)
            chosen.pop()

    yield from backtrack(0)


def count_combinations(n: int, m: int) -> int:
    """Number of t-subsets ``all_combinations(n, m)`` produces."""
    if m > n:
        return 0
    return math.comb(n, m)


def combination_space_size(subset: Sequence[int], domain_sizes: Sequence[int]) -> int:
    """Number of value tuples over the parameters in ``subset``."""
    size = 1
    for p in subset:
        size *= domain_sizes[p]
    return size


class MixedRadix:
    """Bijection between value tuples over a t-subset and ``range(size)``.

    Place values are precomputed once per subset; ``place_values[k]`` is
    the product of the domain sizes of the parameters after position k.

    Attributes:
        subset: The parameter indices, ascending.
        radices: Domain size of each subset parameter.
        place_values: Weight of each digit.
        size: Total number of value tuples.
    """

    __slots__ = ("subset", "radices", "place_values", "size")

    def __init__(self, subset: Sequence[int], domain_sizes: Sequence[int]) -> None:
        self.subset = tuple(subset)
        self.radices = tuple(domain_sizes[p] for p in self.subset)

        place_values = [1] * len(self.radices)
        for k in range(len(self.radices) - 2, -1, -1):
            place_values[k] = place_values[k + 1] * self.radices[k + 1]
        self.place_values = tuple(place_values)
        self.size = math.prod(self.radices)

    def encode(self, values: Sequence[int]) -> int:
        """Map a value tuple (one value per subset parameter) to its index.

        Raises:
            ValueError: If the tuple has the wrong length or a digit is out of range.
        """
        if len(values) != len(self.radices):
            raise ValueError(
                f"Expected {len(self.radices)} values for subset {self.subset}, got {len(values)}"
            )
        index = 0
        for value, radix, weight in zip(values, self.radices, self.place_values):
            if not 0 <= value < radix:
                raise ValueError(
                    f"Value {value} out of range for domain of size {radix} in subset {self.subset}"
                )
            index += value * weight
        return index

    def decode(self, index: int) -> tuple[int, ...]:
        """Inverse of :meth:`encode`.

        Raises:
            ValueError: If the index is outside ``range(size)``.
        """
        if not 0 <= index < self.size:
            raise ValueError(
                f"Index {index} out of range [0, {self.size}) for subset {self.subset}"
            )
        digits = []
        for weight in self.place_values:
            digit, index = divmod(index, weight)
            digits.append(digit)
        return tuple(digits)

    def project(self, row: Sequence[int]) -> tuple[int, ...]:
        """Extract the values a full-length row assigns to the subset."""
        return tuple(row[p] for p in self.subset)

    def expand(self, values: Sequence[int], width: int, fill: int = -1) -> list[int]:
        """Build a full-length assignment holding ``values`` at the subset positions."""
        assignment = [fill] * width
        for p, value in zip(self.subset, values):
            assignment[p] = value
        return assignment

    def __repr__(self) -> str:
        return f"MixedRadix(subset={self.subset}, radices={self.radices})"


def encode(subset: Sequence[int], values: Sequence[int], domain_sizes: Sequence[int]) -> int:
    """Combination index of ``values`` within ``subset``.

    ``encode((0, 1), (1, 2), [3, 3, 3, 3]) == 5``.
    """
    return MixedRadix(subset, domain_sizes).encode(values)


def decode(index: int, subset: Sequence[int], domain_sizes: Sequence[int]) -> tuple[int, ...]:
    """Value tuple at ``index`` within ``subset``.

    ``decode(4, (1, 2), [3, 3, 3, 3]) == (1, 1)``.
    """
    return MixedRadix(subset, domain_sizes).decode(index)
