"""Group / sum / HAVING / sort / limit over keyed weights."""

from __future__ import annotations

import heapq
from collections.abc import Hashable, Iterable, Mapping
from operator import itemgetter
from typing import Any, TypeVar

from ._validation import check_limit

K = TypeVar("K", bound=Hashable)


def aggregate(
    weighted: Iterable[tuple[K, float]],
    min_weight: float | None = None,
    limit: int | None = None,
) -> list[tuple[K, float]]:
    """Sum weights per key, then filter, sort and truncate.

    The stages run in this order:

    1. sum the weight of every ``(key, weight)`` tuple into a mapping;
    2. drop keys whose total is below *min_weight* (the HAVING clause);
    3. sort by total descending; equal totals keep first-seen key order;
    4. keep the first *limit* entries.

    The input is consumed as a stream, so a generator of pairs never has to be
    materialized.

    Parameters
    ----------
    weighted : Iterable[tuple[K, float]]
        Keyed weights.  Keys must be hashable.
    min_weight : float | None, default=None
        Keep keys whose total is ``>= min_weight``.
    limit : int | None, default=None
        Maximum number of entries to return.

    Returns
    -------
    list[tuple[K, float]]
        ``(key, total)`` sorted by descending total.

    Examples
    --------
    >>> aggregate([("a", 1), ("b", 2), ("a", 2), ("c", 3)], min_weight=3)
    [('a', 3), ('c', 3)]
    """
    check_limit(limit)
    totals: dict[K, float] = {}
    for key, weight in weighted:
        totals[key] = totals.get(key, 0) + weight
    return _select(totals, min_weight, limit)


def count(
    keys: Iterable[K],
    min_count: int | None = None,
    limit: int | None = None,
) -> list[tuple[K, int]]:
    """Occurrence count per key; same ordering rules as :func:`aggregate`.

    Examples
    --------
    >>> count(["x", "y", "y", "z", "x"], limit=2)
    [('x', 2), ('y', 2)]
    """
    check_limit(limit)
    totals: dict[K, int] = {}
    for key in keys:
        totals[key] = totals.get(key, 0) + 1
    return _select(totals, min_count, limit)  # type: ignore[return-value]


def top(
    totals: Mapping[K, Any],
    min_weight: Any = None,
    limit: int | None = None,
) -> list[tuple[K, Any]]:
    """HAVING, sort and limit over totals that are already grouped.

    Weights only need to be orderable, so a tuple such as
    ``(recommenders, quantity)`` ranks on its first element and breaks ties on
    the next.  Equal weights keep the mapping's insertion order.

    Examples
    --------
    >>> top({"a": (1, 5), "b": (2, 1), "c": (1, 9)}, limit=2)
    [('b', (2, 1)), ('c', (1, 9))]
    """
    check_limit(limit)
    return _select(totals, min_weight, limit)


def _select(totals: Mapping, minimum: Any, limit: int | None) -> list:
    entries = list(totals.items())
    if minimum is not None:
        entries = [(k, w) for k, w in entries if w >= minimum]

    # both are stable: equal weights keep first-seen order
    if limit is not None:
        return heapq.nlargest(limit, entries, key=itemgetter(1))
    return sorted(entries, key=itemgetter(1), reverse=True)
