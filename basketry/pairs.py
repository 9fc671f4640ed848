"""Unordered pair generation within a basket."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import TypeVar

from .model import Pair

T = TypeVar("T")


def pairs(items: Iterable[T]) -> Iterator[Pair[T]]:
    """Yield every unordered 2-combination of *positions* in *items*.

    Repeated values are not collapsed: a product bought twice in one invoice
    contributes once per position, so ``n`` items always give
    ``n * (n - 1) // 2`` pairs.  Fewer than two items give none.

    Pairs are generated lazily in input order (``(0, 1), (0, 2), ..., (1, 2), ...``),
    so callers can stream them into a counter without materializing the
    cross product.

    Examples
    --------
    >>> [tuple(p) for p in pairs(["B", "A", "C"])]
    [('A', 'B'), ('B', 'C'), ('A', 'C')]
    >>> list(pairs(["A"]))
    []
    """
    seq = list(items)
    for i in range(len(seq)):
        for j in range(i + 1, len(seq)):
            yield Pair(seq[i], seq[j])


def n_pairs(n: int) -> int:
    """Number of pairs :func:`pairs` yields for *n* items."""
    return n * (n - 1) // 2 if n > 1 else 0
