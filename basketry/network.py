"""Customer similarity network from shared-product membership."""

from __future__ import annotations

import logging
import warnings
from collections.abc import Iterator
from typing import TYPE_CHECKING

from ._validation import check_limit
from .aggregate import count
from .config import AnalysisConfig
from .model import Pair
from .pairs import n_pairs, pairs

if TYPE_CHECKING:
    import pandas as pd

    from .store import TransactionStore

logger = logging.getLogger(__name__)

NETWORK_COLUMNS = ["customer_1", "customer_2", "shared_products_count"]


def buyers_by_product(
    store: TransactionStore,
    config: AnalysisConfig,
    include_cancelled: bool = False,
) -> dict[str, list[str]]:
    """Distinct customers per stock code, in first-purchase order.

    Repeat purchases of one product by one customer count once.  Guest
    invoices are ignored.
    """
    buyers: dict[str, dict[str, None]] = {}
    for inv in store.filtered(config, include_cancelled):
        if inv.customer_id is None:
            continue
        for item in inv.items:
            buyers.setdefault(item.stock_code, {})[inv.customer_id] = None
    return {code: list(customers) for code, customers in buyers.items()}


def _customer_pairs(buyer_sets: dict[str, list[str]]) -> Iterator[Pair[str]]:
    for customers in buyer_sets.values():
        yield from pairs(customers)


def similarity_network(
    store: TransactionStore,
    min_shared: int = 5,
    limit: int | None = 25,
    config: AnalysisConfig | None = None,
    include_cancelled: bool = False,
    warn_threshold: int = 50_000_000,
) -> pd.DataFrame:
    """Pairs of customers ranked by the number of distinct products both bought.

    For every product the distinct buyers are collected; products with a
    single buyer are dropped; every unordered buyer pair is counted once per
    product.  Pairs sharing fewer than *min_shared* products are discarded.

    The fan-out costs ``sum(|buyers(p)|**2)`` over the remaining products.
    Pairs are streamed into the counter, but the number of distinct customer
    pairs held in memory can still be large on popular products.

    Parameters
    ----------
    store : TransactionStore
        Transaction log.
    min_shared : int, default=5
        Minimum number of shared products for a pair to be reported.
    limit : int | None, default=25
        Maximum number of edges returned.
    config : AnalysisConfig | None
        Date range and cancellation prefix.  Defaults to ``AnalysisConfig()``.
    include_cancelled : bool, default=False
        Count purchases on cancellation invoices too.
    warn_threshold : int, default=50_000_000
        Emit a ``ResourceWarning`` when the pair fan-out exceeds this many pairs.

    Returns
    -------
    pd.DataFrame
        Columns ``customer_1``, ``customer_2`` (``customer_1 < customer_2``)
        and ``shared_products_count``, sorted by count descending.
    """
    import pandas as pd

    check_limit(limit)
    config = config or AnalysisConfig()

    buyers = buyers_by_product(store, config, include_cancelled)

    qualifying = {code: customers for code, customers in buyers.items() if len(customers) >= 2}
    fan_out = sum(n_pairs(len(customers)) for customers in qualifying.values())
    logger.debug(
        "similarity_network: %d products, %d with 2+ buyers, %d candidate pairs",
        len(buyers),
        len(qualifying),
        fan_out,
    )
    if fan_out > warn_threshold:
        warnings.warn(
            f"Customer pair fan-out is {fan_out:,} pairs over {len(qualifying):,} products. "
            "Narrow the date range or raise min_shared to reduce memory use.",
            ResourceWarning,
            stacklevel=2,
        )

    edges = count(_customer_pairs(qualifying), min_count=min_shared, limit=limit)

    return pd.DataFrame(
        [(pair.first, pair.second, shared) for pair, shared in edges],
        columns=NETWORK_COLUMNS,
    )
