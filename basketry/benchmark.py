"""Run the report suite against one store and time each report."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from ._validation import StructuralError
from .config import AnalysisConfig
from .network import similarity_network
from .recommend import recommend_for_customer
from .reports import copurchase_pairs, country_bestsellers, top_customers_for_product, top_products, top_spenders
from .sequential import next_purchases

if TYPE_CHECKING:
    import pandas as pd

    from .store import TransactionStore

logger = logging.getLogger(__name__)

REPORTS: dict[str, Callable[..., pd.DataFrame]] = {
    "copurchase_pairs": copurchase_pairs,
    "top_products": top_products,
    "top_customers_for_product": top_customers_for_product,
    "country_bestsellers": country_bestsellers,
    "recommend_for_customer": recommend_for_customer,
    "similarity_network": similarity_network,
    "next_purchases": next_purchases,
    "top_spenders": top_spenders,
}


def run_report(name: str, store: TransactionStore, **kwargs: Any) -> pd.DataFrame:
    """Run the report registered as *name*.

    A :class:`StructuralError` raised while the report runs is re-raised with
    the report name attached.
    """
    try:
        report = REPORTS[name]
    except KeyError:
        raise ValueError(f"Unknown report {name!r}. Available reports: {sorted(REPORTS)}") from None
    try:
        return report(store, **kwargs)
    except StructuralError as exc:
        raise exc.for_report(name) from exc


def run_benchmarks(
    store: TransactionStore,
    config: AnalysisConfig | None = None,
    product: str = "85123A",
    customer: str = "13085",
    repeat: int = 1,
) -> pd.DataFrame:
    """Time every report once per repeat with its default parameters.

    Parameters
    ----------
    store : TransactionStore
        Transaction log shared by all reports.
    config : AnalysisConfig | None
        Passed to every report.  Defaults to ``AnalysisConfig()``.
    product : str, default="85123A"
        Stock code for the product-centric reports (top customers, next purchases).
    customer : str, default="13085"
        Target of the recommendation report.
    repeat : int, default=1
        Number of timed runs per report; the fastest is kept.

    Returns
    -------
    pd.DataFrame
        Columns ``report``, ``rows`` and ``seconds``, in suite order.
    """
    import pandas as pd

    if repeat < 1:
        raise ValueError(f"repeat must be >= 1, got {repeat}")
    config = config or AnalysisConfig()

    arguments: dict[str, dict[str, Any]] = {
        "top_customers_for_product": {"stock_code": product},
        "recommend_for_customer": {"customer_id": customer},
        "next_purchases": {"trigger_code": product},
    }

    rows = []
    for name in REPORTS:
        kwargs = {"config": config, **arguments.get(name, {})}
        best = float("inf")
        n_rows = 0
        for _ in range(repeat):
            t0 = time.perf_counter()
            result = run_report(name, store, **kwargs)
            best = min(best, time.perf_counter() - t0)
            n_rows = len(result)
        logger.info("%-26s %5d rows  %.3fs", name, n_rows, best)
        rows.append({"report": name, "rows": n_rows, "seconds": best})

    return pd.DataFrame(rows, columns=["report", "rows", "seconds"])
