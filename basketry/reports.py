"""Product and customer rollup reports built on the aggregation primitives."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from datetime import datetime
from typing import TYPE_CHECKING

from ._validation import check_limit
from .aggregate import aggregate, count, top
from .config import AnalysisConfig
from .model import Pair
from .pairs import pairs
from .ranking import rank_within

if TYPE_CHECKING:
    import pandas as pd

    from .store import TransactionStore

logger = logging.getLogger(__name__)

PAIR_COLUMNS = ["product_1", "product_2", "frequency"]
TOP_PRODUCT_COLUMNS = ["stock_code", "description", "total_quantity"]
PRODUCT_CUSTOMER_COLUMNS = [
    "customer_id",
    "country",
    "times_bought_this_product",
    "total_quantity",
    "last_purchase_date",
    "total_spent",
]
COUNTRY_COLUMNS = ["country", "stock_code", "description", "total_quantity", "total_revenue", "product_rank"]
SPENDER_COLUMNS = ["customer_id", "total_spent"]


def _describe(code: str, seen: Mapping[str, str | None], catalog: Mapping[str, str | None] | None) -> str | None:
    if catalog is not None and code in catalog:
        return catalog[code]
    return seen.get(code)


# ---------------------------------------------------------------------------
# 1. Products bought together
# ---------------------------------------------------------------------------


def basket_pairs(
    store: TransactionStore,
    config: AnalysisConfig,
    dedupe: bool = False,
) -> Iterator[Pair[str]]:
    """Stream the product pairs of every genuine invoice in the analysis window."""
    for inv in store.filtered(config):
        codes = inv.stock_codes
        if dedupe:
            codes = list(dict.fromkeys(codes))
        yield from pairs(codes)


def copurchase_pairs(
    store: TransactionStore,
    min_frequency: int | None = 15,
    limit: int | None = 20,
    config: AnalysisConfig | None = None,
    dedupe: bool = False,
) -> pd.DataFrame:
    """Most frequent product pairs appearing in the same invoice.

    Parameters
    ----------
    store : TransactionStore
        Transaction log.
    min_frequency : int | None, default=15
        HAVING threshold: pairs seen fewer times are dropped.
    limit : int | None, default=20
        Maximum number of pairs returned.
    config : AnalysisConfig | None
        Date range and cancellation prefix.  Defaults to ``AnalysisConfig()``.
    dedupe : bool, default=False
        Collapse repeated stock codes within an invoice before pairing.  By
        default a product listed twice contributes once per line.

    Returns
    -------
    pd.DataFrame
        Columns ``product_1``, ``product_2`` (canonical order) and ``frequency``.
    """
    import pandas as pd

    config = config or AnalysisConfig()
    counted = count(basket_pairs(store, config, dedupe=dedupe), min_count=min_frequency, limit=limit)
    return pd.DataFrame([(p.first, p.second, freq) for p, freq in counted], columns=PAIR_COLUMNS)


# ---------------------------------------------------------------------------
# 2. Best-selling products
# ---------------------------------------------------------------------------


def top_products(
    store: TransactionStore,
    limit: int | None = 10,
    config: AnalysisConfig | None = None,
    include_cancelled: bool = True,
    catalog: Mapping[str, str | None] | None = None,
) -> pd.DataFrame:
    """Products ranked by total quantity sold.

    Returns are netted out by default (``include_cancelled=True``): a
    cancellation line carries a negative quantity.
    """
    import pandas as pd

    config = config or AnalysisConfig()
    seen: dict[str, str | None] = {}

    def quantities() -> Iterator[tuple[str, int]]:
        for inv in store.filtered(config, include_cancelled):
            for item in inv.items:
                if seen.get(item.stock_code) is None:
                    seen[item.stock_code] = item.description
                yield item.stock_code, item.quantity

    totals = aggregate(quantities(), limit=limit)
    return pd.DataFrame(
        [(code, _describe(code, seen, catalog), qty) for code, qty in totals],
        columns=TOP_PRODUCT_COLUMNS,
    )


# ---------------------------------------------------------------------------
# 3. Top customers of one product
# ---------------------------------------------------------------------------


def top_customers_for_product(
    store: TransactionStore,
    stock_code: str,
    limit: int | None = 50,
    config: AnalysisConfig | None = None,
) -> pd.DataFrame:
    """Customers who bought *stock_code* most often (distinct invoices).

    Rows are keyed by ``(customer_id, country)``.  Guest checkouts are
    skipped.  ``total_spent`` is rounded to 2 decimals after summation.
    """
    import pandas as pd

    check_limit(limit)
    config = config or AnalysisConfig()

    stats: dict[tuple[str, str | None], dict] = {}
    for inv in store.filtered(config):
        if inv.customer_id is None:
            continue
        for item in inv.items:
            if item.stock_code != stock_code:
                continue
            entry = stats.setdefault(
                (inv.customer_id, inv.country),
                {"invoices": {}, "quantity": 0, "last": None, "spent": 0.0},
            )
            entry["invoices"][inv.invoice] = None
            entry["quantity"] += item.quantity
            entry["spent"] += item.amount
            last: datetime | None = entry["last"]
            if last is None or inv.invoice_date > last:
                entry["last"] = inv.invoice_date

    ranked = top({key: len(entry["invoices"]) for key, entry in stats.items()}, limit=limit)

    return pd.DataFrame(
        [
            (
                customer,
                country,
                times_bought,
                stats[(customer, country)]["quantity"],
                stats[(customer, country)]["last"],
                round(stats[(customer, country)]["spent"], 2),
            )
            for (customer, country), times_bought in ranked
        ],
        columns=PRODUCT_CUSTOMER_COLUMNS,
    )


# ---------------------------------------------------------------------------
# 4. Bestsellers per country
# ---------------------------------------------------------------------------


def country_bestsellers(
    store: TransactionStore,
    top_n: int | None = 5,
    config: AnalysisConfig | None = None,
    catalog: Mapping[str, str | None] | None = None,
) -> pd.DataFrame:
    """Top products by quantity within each country.

    Products are rolled up per ``(country, stock_code)``, ranked inside each
    country with :func:`~basketry.ranking.rank_within` and cut to *top_n*.
    Invoices without a country are skipped.  Output is sorted by country, then
    rank.
    """
    import pandas as pd

    check_limit(top_n, "top_n")
    config = config or AnalysisConfig()

    rollup: dict[tuple[str, str], list] = {}
    for inv in store.filtered(config):
        if inv.country is None:
            continue
        for item in inv.items:
            entry = rollup.setdefault((inv.country, item.stock_code), [None, 0, 0.0])
            # lexicographically largest description, as a MAX() rollup would
            if item.description is not None and (entry[0] is None or item.description > entry[0]):
                entry[0] = item.description
            entry[1] += item.quantity
            entry[2] += item.amount

    if not rollup:
        return pd.DataFrame(columns=COUNTRY_COLUMNS)

    rows = [
        {
            "country": country,
            "stock_code": code,
            "description": catalog.get(code, desc) if catalog is not None else desc,
            "total_quantity": qty,
            "total_revenue": round(revenue, 2),
        }
        for (country, code), (desc, qty, revenue) in rollup.items()
    ]
    ranked = rank_within(rows, "country", "total_quantity", top_n=top_n, rank_col="product_rank")
    logger.debug("country_bestsellers: %d country/product rows, %d kept", len(rows), len(ranked))

    return ranked.sort_values(["country", "product_rank"], kind="stable").reset_index(drop=True)[COUNTRY_COLUMNS]


# ---------------------------------------------------------------------------
# 8. Top spenders
# ---------------------------------------------------------------------------


def top_spenders(
    store: TransactionStore,
    limit: int | None = 50,
    config: AnalysisConfig | None = None,
    include_cancelled: bool = True,
) -> pd.DataFrame:
    """Customers ranked by total spend (``quantity * price`` summed, then rounded).

    With ``include_cancelled=True`` (the default) returns are netted out,
    since cancellation lines carry negative quantities.  Guest checkouts are
    skipped.
    """
    import pandas as pd

    config = config or AnalysisConfig()

    def spend() -> Iterator[tuple[str, float]]:
        for inv in store.filtered(config, include_cancelled):
            if inv.customer_id is None:
                continue
            for item in inv.items:
                yield inv.customer_id, item.amount

    totals = aggregate(spend(), limit=limit)
    return pd.DataFrame(
        [(customer, round(total, 2)) for customer, total in totals],
        columns=SPENDER_COLUMNS,
    )
