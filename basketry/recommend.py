"""Collaborative recommendations from customers with overlapping purchases."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from ._validation import check_limit
from .aggregate import top
from .config import AnalysisConfig
from .model import Invoice, LineItem

if TYPE_CHECKING:
    import pandas as pd

    from .store import TransactionStore

logger = logging.getLogger(__name__)

RECOMMENDATION_COLUMNS = [
    "stock_code",
    "description",
    "similar_customers",
    "total_quantity",
    "avg_price",
    "most_recent_purchase",
]


@dataclass
class _Candidate:
    description: str | None
    recommenders: dict[str, None] = field(default_factory=dict)
    total_quantity: int = 0
    price_sum: float = 0.0
    lines: int = 0
    most_recent: datetime | None = None

    def add(self, customer_id: str, item: LineItem, when: datetime) -> None:
        self.recommenders[customer_id] = None
        self.total_quantity += item.quantity
        self.price_sum += item.price
        self.lines += 1
        if self.most_recent is None or when > self.most_recent:
            self.most_recent = when
        if self.description is None:
            self.description = item.description


def purchased_products(store: TransactionStore, customer_id: str, config: AnalysisConfig) -> dict[str, None]:
    """Distinct stock codes bought by *customer_id* on genuine invoices (insertion-ordered)."""
    products: dict[str, None] = {}
    for inv in store.filtered(config):
        if inv.customer_id == customer_id:
            products.update(dict.fromkeys(inv.stock_codes))
    return products


def similar_customers(
    store: TransactionStore,
    products: Mapping[str, None] | set[str],
    exclude: str,
    config: AnalysisConfig,
) -> dict[str, None]:
    """Customers other than *exclude* who bought at least one of *products*.

    Similarity here is plain product-set overlap; it does not consult the
    weighted network of :func:`basketry.network.similarity_network`.
    """
    customers: dict[str, None] = {}
    for inv in store.filtered(config):
        if inv.customer_id is None or inv.customer_id == exclude or inv.customer_id in customers:
            continue
        if any(code in products for code in inv.stock_codes):
            customers[inv.customer_id] = None
    return customers


def recommend_for_customer(
    store: TransactionStore,
    customer_id: str,
    n: int | None = 15,
    config: AnalysisConfig | None = None,
    recent_days: int | None = None,
    catalog: Mapping[str, str | None] | None = None,
) -> pd.DataFrame:
    """Recommend products the customer has not bought yet.

    The pipeline is a two-hop join over the transaction log:

    1. the target's distinct products (cancellations excluded);
    2. every other customer who bought any of them;
    3. those customers' purchases of products the target does not own;
    4. per product: number of distinct recommending customers, total
       quantity, mean unit price and latest purchase date;
    5. ranked by recommending customers, then total quantity (both
       descending), ties in first-seen order.

    Parameters
    ----------
    store : TransactionStore
        Transaction log.
    customer_id : str
        The target customer.
    n : int | None, default=15
        Number of products to return.
    config : AnalysisConfig | None
        Date range and cancellation prefix.  Defaults to ``AnalysisConfig()``.
    recent_days : int | None, default=None
        If set, only similar-customer purchases made within this many days of
        the latest such purchase are considered.
    catalog : Mapping[str, str | None] | None
        Canonical product descriptions.  Falls back to the first line-item
        description seen for the product.

    Returns
    -------
    pd.DataFrame
        One row per recommended product; empty if the customer has no
        purchase history.

    Examples
    --------
    >>> recs = recommend_for_customer(store, "13085", n=5)  # doctest: +SKIP
    """
    import pandas as pd

    check_limit(n, "n")
    if recent_days is not None and recent_days < 0:
        raise ValueError(f"recent_days must be >= 0, got {recent_days}")
    config = config or AnalysisConfig()

    owned = purchased_products(store, customer_id, config)
    if not owned:
        logger.debug("recommend_for_customer: no purchases for customer %r", customer_id)
        return pd.DataFrame(columns=RECOMMENDATION_COLUMNS)

    peers = similar_customers(store, owned, exclude=customer_id, config=config)

    purchases: list[tuple[Invoice, LineItem]] = [
        (inv, item)
        for inv in store.filtered(config)
        if inv.customer_id in peers
        for item in inv.items
        if item.stock_code not in owned
    ]
    if recent_days is not None and purchases:
        latest = max(inv.invoice_date for inv, _ in purchases)
        cutoff = latest - timedelta(days=recent_days)
        purchases = [(inv, item) for inv, item in purchases if inv.invoice_date >= cutoff]

    logger.debug(
        "recommend_for_customer: %d owned products, %d similar customers, %d candidate lines",
        len(owned),
        len(peers),
        len(purchases),
    )

    candidates: dict[str, _Candidate] = {}
    for inv, item in purchases:
        if item.stock_code not in candidates:
            description = catalog.get(item.stock_code) if catalog is not None else None
            candidates[item.stock_code] = _Candidate(description=description)
        candidates[item.stock_code].add(inv.customer_id, item, inv.invoice_date)  # type: ignore[arg-type]

    ranked = top({code: (len(cand.recommenders), cand.total_quantity) for code, cand in candidates.items()}, limit=n)

    return pd.DataFrame(
        [
            (
                code,
                candidates[code].description,
                recommenders,
                quantity,
                round(candidates[code].price_sum / candidates[code].lines, 2),
                candidates[code].most_recent,
            )
            for code, (recommenders, quantity) in ranked
        ],
        columns=RECOMMENDATION_COLUMNS,
    )
