"""Read-only in-memory view of a transaction log."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from datetime import datetime
from typing import TYPE_CHECKING, Any, Literal

from ._validation import StructuralError
from .config import AnalysisConfig
from .model import Invoice

if TYPE_CHECKING:
    from ._compat import DataFrame

logger = logging.getLogger(__name__)

Predicate = Callable[[Invoice], bool]


# ---------------------------------------------------------------------------
# Invoice predicates
# ---------------------------------------------------------------------------


def is_cancellation(prefix: str = "C") -> Predicate:
    return lambda inv: inv.is_cancellation(prefix)


def is_genuine(prefix: str = "C") -> Predicate:
    """Match invoices that are not cancellations/returns."""
    return lambda inv: not inv.is_cancellation(prefix)


def in_date_range(start: datetime | None = None, end: datetime | None = None) -> Predicate:
    """Match invoices dated strictly after *start* and at or before *end*."""
    window = AnalysisConfig(start=start, end=end)
    return window.in_range


def by_customer(customer_id: str) -> Predicate:
    return lambda inv: inv.customer_id == customer_id


def contains_product(stock_code: str) -> Predicate:
    return lambda inv: inv.has_product(stock_code)


def all_of(*predicates: Predicate) -> Predicate:
    return lambda inv: all(p(inv) for p in predicates)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class TransactionStore:
    """Immutable collection of :class:`~basketry.model.Invoice` records.

    Every report reads from a store; none of them mutates it, so one store can
    be shared by any number of concurrent report runs.

    Parameters
    ----------
    invoices : Iterable[Invoice]
        The transaction log.  Consumed once at construction.
    on_error : {"raise", "skip"}, default="raise"
        What to do with a record that is not an :class:`Invoice`:
        ``"raise"`` propagates a :class:`StructuralError`, ``"skip"`` logs a
        warning and leaves the record out.
    """

    def __init__(self, invoices: Iterable[Invoice], on_error: Literal["raise", "skip"] = "raise") -> None:
        if on_error not in ("raise", "skip"):
            raise ValueError(f"on_error must be 'raise' or 'skip', got {on_error!r}")
        kept: list[Invoice] = []
        self.skipped = 0
        for record in invoices:
            if isinstance(record, Invoice):
                kept.append(record)
                continue
            error = StructuralError(f"Expected Invoice, got {type(record).__name__}", key=record)
            if on_error == "raise":
                raise error
            logger.warning("Skipping record: %s", error)
            self.skipped += 1
        self._invoices: tuple[Invoice, ...] = tuple(kept)
        self._by_customer: dict[str, list[Invoice]] | None = None

    def __repr__(self) -> str:
        return f"TransactionStore(n_invoices={len(self._invoices)})"

    def __len__(self) -> int:
        return len(self._invoices)

    # ── loaders ────────────────────────────────────────────────────────

    @classmethod
    def from_transactions(cls, data: DataFrame, **kwargs: Any) -> TransactionStore:
        """Build a store from a long-format line-item frame.

        See :func:`basketry.transactions.from_transactions` for the accepted
        keyword arguments.
        """
        from .transactions import from_transactions

        return from_transactions(data, **kwargs)

    # ── queries ────────────────────────────────────────────────────────

    def invoices(self) -> Iterator[Invoice]:
        return iter(self._invoices)

    def invoices_matching(self, predicate: Predicate) -> Iterator[Invoice]:
        """Lazily yield the invoices for which *predicate* is true."""
        return (inv for inv in self._invoices if predicate(inv))

    def filtered(self, config: AnalysisConfig, include_cancelled: bool = False) -> Iterator[Invoice]:
        """Invoices inside the config's date range, cancellations dropped unless included."""
        return self.invoices_matching(lambda inv: config.accepts(inv, include_cancelled))

    def customer_history(self, customer_id: str) -> list[Invoice]:
        """All invoices of *customer_id*, ordered by ``invoice_date`` (ties keep log order)."""
        if self._by_customer is None:
            index: dict[str, list[Invoice]] = {}
            for inv in self._invoices:
                if inv.customer_id is not None:
                    index.setdefault(inv.customer_id, []).append(inv)
            for history in index.values():
                history.sort(key=lambda inv: inv.invoice_date)
            self._by_customer = index
        return list(self._by_customer.get(customer_id, ()))

    def catalog(self) -> dict[str, str | None]:
        """First non-empty line-item description per stock code."""
        catalog: dict[str, str | None] = {}
        for inv in self._invoices:
            for item in inv.items:
                if not catalog.get(item.stock_code):
                    catalog[item.stock_code] = item.description or None
        return catalog
