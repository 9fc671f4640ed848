"""Next-purchase patterns following a trigger product."""

from __future__ import annotations

import bisect
import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from ._validation import check_limit
from .aggregate import count
from .config import AnalysisConfig
from .model import Invoice

if TYPE_CHECKING:
    import pandas as pd

    from .store import TransactionStore

logger = logging.getLogger(__name__)

NEXT_PURCHASE_COLUMNS = ["next_product_code", "product_name", "count", "avg_days_to_purchase"]

_UNITS = ("days", "weeks", "months", "years")
_SECONDS_PER_DAY = 86_400.0


@dataclass(frozen=True)
class Observation:
    """One line item bought after a trigger purchase."""

    customer_id: str
    stock_code: str
    description: str | None
    days_after: float


def window_end(start: datetime, window: int, unit: str = "months") -> datetime:
    """``start`` shifted forward by *window* calendar *unit*.

    Month and year arithmetic clamps to the last valid day of the target
    month: Jan 31 + 1 month is Feb 28 (Feb 29 in leap years).

    Examples
    --------
    >>> window_end(datetime(2011, 1, 31), 1)
    datetime.datetime(2011, 2, 28, 0, 0)
    """
    import pandas as pd

    unit = _normalize_unit(unit)
    if window <= 0:
        raise ValueError(f"window must be positive, got {window}")
    return (pd.Timestamp(start) + pd.DateOffset(**{unit: window})).to_pydatetime()


def _normalize_unit(unit: str) -> str:
    normalized = unit.lower() if unit.lower().endswith("s") else unit.lower() + "s"
    if normalized not in _UNITS:
        raise ValueError(f"unit must be one of {list(_UNITS)}, got {unit!r}")
    return normalized


def observations(
    store: TransactionStore,
    trigger_code: str,
    window: int = 6,
    unit: str = "months",
    config: AnalysisConfig | None = None,
) -> Iterator[Observation]:
    """Yield every purchase made within the window after a trigger purchase.

    A trigger event is a genuine invoice of a known customer that contains
    *trigger_code*.  For each event, every later genuine invoice of the same
    customer dated strictly after the trigger and strictly before the window
    end contributes one observation per line item other than the trigger
    product.  Overlapping windows of repeat triggers each see the same later
    invoice.
    """
    config = config or AnalysisConfig()
    unit = _normalize_unit(unit)
    if window <= 0:
        raise ValueError(f"window must be positive, got {window}")

    timelines: dict[str, tuple[list[Invoice], list[datetime]]] = {}

    for trigger in store.filtered(config):
        if trigger.customer_id is None or not trigger.has_product(trigger_code):
            continue

        if trigger.customer_id not in timelines:
            history = [inv for inv in store.customer_history(trigger.customer_id) if config.accepts(inv)]
            timelines[trigger.customer_id] = (history, [inv.invoice_date for inv in history])
        history, dates = timelines[trigger.customer_id]

        start = trigger.invoice_date
        end = window_end(start, window, unit)
        for idx in range(bisect.bisect_right(dates, start), bisect.bisect_left(dates, end)):
            later = history[idx]
            days_after = (later.invoice_date - start).total_seconds() / _SECONDS_PER_DAY
            for item in later.items:
                if item.stock_code == trigger_code:
                    continue
                yield Observation(trigger.customer_id, item.stock_code, item.description, days_after)


def next_purchases(
    store: TransactionStore,
    trigger_code: str,
    n: int | None = 20,
    window: int = 6,
    unit: str = "months",
    config: AnalysisConfig | None = None,
    catalog: Mapping[str, str | None] | None = None,
) -> pd.DataFrame:
    """What customers buy next after *trigger_code*, and how soon.

    Observations from :func:`observations` are grouped by product, counted
    and averaged, then ranked by count descending (ties in first-seen order).

    Parameters
    ----------
    store : TransactionStore
        Transaction log.
    trigger_code : str
        Stock code whose purchase opens an observation window.
    n : int | None, default=20
        Number of products to return.
    window : int, default=6
        Window length, in *unit*.
    unit : {"days", "weeks", "months", "years"}, default="months"
        Calendar unit of *window*.
    config : AnalysisConfig | None
        Date range and cancellation prefix.  Defaults to ``AnalysisConfig()``.
    catalog : Mapping[str, str | None] | None
        Canonical product descriptions; falls back to the first line-item
        description observed.

    Returns
    -------
    pd.DataFrame
        Columns ``next_product_code``, ``product_name``, ``count`` and
        ``avg_days_to_purchase`` (fractional days).  Empty if the trigger
        product was never sold.
    """
    import pandas as pd

    check_limit(n, "n")

    names: dict[str, str | None] = {}
    lag_days: dict[str, float] = {}

    def next_codes() -> Iterator[str]:
        for obs in observations(store, trigger_code, window=window, unit=unit, config=config):
            if obs.stock_code not in names:
                names[obs.stock_code] = (catalog.get(obs.stock_code) if catalog is not None else None) or obs.description
            lag_days[obs.stock_code] = lag_days.get(obs.stock_code, 0.0) + obs.days_after
            yield obs.stock_code

    ranked = count(next_codes(), limit=n)
    logger.debug("next_purchases: %d products after %r", len(names), trigger_code)

    return pd.DataFrame(
        [(code, names[code], cnt, lag_days[code] / cnt) for code, cnt in ranked],
        columns=NEXT_PURCHASE_COLUMNS,
    )
