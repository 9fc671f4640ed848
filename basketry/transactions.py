from __future__ import annotations

import logging
import math
import time
from typing import TYPE_CHECKING, Any, Literal

from ._compat import to_pandas
from ._validation import StructuralError, require_columns
from .model import Invoice, LineItem
from .store import TransactionStore

if TYPE_CHECKING:
    import pandas as pd
    import polars as pl
    import pyarrow as pa

    from ._compat import DataFrame

logger = logging.getLogger(__name__)

_GUEST_SENTINELS = {"", "nan", "none", "null", "<na>", "nat"}


def normalize_customer_id(value: Any) -> str | None:
    """Canonical string form of a customer identifier; ``None`` for guest checkouts.

    Spreadsheet exports store ids as floats, so ``13085.0`` and ``"13085.0"``
    both normalize to ``"13085"``.

    Examples
    --------
    >>> normalize_customer_id(13085.0)
    '13085'
    >>> normalize_customer_id("nan") is None
    True
    """
    if value is None:
        return None
    if isinstance(value, float):
        if math.isnan(value):
            return None
        if value.is_integer():
            return str(int(value))
        return str(value)
    text = str(value).strip()
    if text.lower() in _GUEST_SENTINELS:
        return None
    if text.endswith(".0") and text[:-2].isdigit():
        return text[:-2]
    return text


def from_transactions(
    data: DataFrame,
    invoice_col: str = "Invoice",
    stock_code_col: str = "StockCode",
    description_col: str | None = "Description",
    quantity_col: str = "Quantity",
    date_col: str = "InvoiceDate",
    price_col: str = "Price",
    customer_col: str = "Customer ID",
    country_col: str | None = "Country",
    on_error: Literal["raise", "skip"] = "raise",
    verbose: int = 0,
) -> TransactionStore:
    """Group long-format line-item rows into invoices and wrap them in a store.

    The default column names follow the UCI Online Retail II layout.

    Parameters
    ----------
    data
        One of:

        - **Pandas DataFrame**
        - **Polars DataFrame** or **PyArrow Table** (converted internally)
        - **List of dicts**, one per line item

    invoice_col, stock_code_col, quantity_col, date_col, price_col, customer_col
        Required columns.  A missing column raises :class:`StructuralError`.

    description_col, country_col
        Optional columns.  Pass ``None`` (or omit the column from the frame)
        to leave the field empty.

    on_error
        ``"raise"`` aborts on the first invalid row (non-numeric quantity or
        price, fractional quantity, negative price, unparseable date, missing
        invoice or stock code).  ``"skip"`` drops every invoice that contains
        an invalid row and logs how many were dropped.

    verbose
        Print timestamped progress messages.

    Returns
    -------
    TransactionStore
        Invoices in first-seen order; line items in row order.

    Examples
    --------
    >>> import pandas as pd
    >>> import basketry
    >>> df = pd.DataFrame({
    ...     "Invoice": ["489434", "489434", "489435"],
    ...     "StockCode": ["85048", "79323P", "22350"],
    ...     "Quantity": [12, 12, 12],
    ...     "InvoiceDate": ["2009-12-01 07:45", "2009-12-01 07:45", "2009-12-01 07:46"],
    ...     "Price": [6.95, 6.75, 2.55],
    ...     "Customer ID": [13085.0, 13085.0, 13085.0],
    ... })
    >>> store = basketry.from_transactions(df)
    >>> len(store)
    2
    """
    import numpy as np
    import pandas as pd

    if on_error not in ("raise", "skip"):
        raise ValueError(f"on_error must be 'raise' or 'skip', got {on_error!r}")

    t0 = 0.0
    if verbose:
        t0 = time.perf_counter()

    df = to_pandas(data)
    if verbose:
        print(f"[{time.strftime('%X')}] Building invoices from DataFrame (shape={df.shape})...")

    require_columns(df.columns, [invoice_col, stock_code_col, quantity_col, date_col, price_col, customer_col])

    def _optional(col: str | None) -> pd.Series:
        if col is None or col not in df.columns:
            return pd.Series([None] * len(df), index=df.index, dtype=object)
        series = df[col].astype(object)
        return series.where(series.notna(), None)

    def _blank(col: str) -> pd.Series:
        return df[col].isna() | (df[col].astype(str).str.strip() == "")

    quantity = pd.to_numeric(df[quantity_col], errors="coerce")
    price = pd.to_numeric(df[price_col], errors="coerce")
    dates = pd.to_datetime(df[date_col], errors="coerce")

    problems = {
        "missing invoice id": _blank(invoice_col),
        "missing stock code": _blank(stock_code_col),
        "non-numeric quantity": quantity.isna(),
        "fractional quantity": quantity.notna() & (quantity != np.floor(quantity)),
        "non-numeric price": price.isna(),
        "negative price": price < 0,
        "unparseable invoice date": dates.isna(),
    }

    frame = pd.DataFrame(
        {
            "invoice": df[invoice_col].astype(str),
            "stock_code": df[stock_code_col].astype(str),
            "description": _optional(description_col),
            "quantity": quantity,
            "price": price,
            "date": dates,
            "customer": df[customer_col].map(normalize_customer_id),
            "country": _optional(country_col),
        }
    )

    bad = pd.Series(False, index=df.index)
    for reason, mask in problems.items():
        if not mask.any():
            continue
        if on_error == "raise":
            row = mask.idxmax()
            raise StructuralError(f"Row {row}: {reason}", key=df.at[row, invoice_col])
        bad |= mask

    if bad.any():
        bad_invoices = set(frame.loc[bad, "invoice"])
        frame = frame[~frame["invoice"].isin(bad_invoices)]
        logger.warning("Skipped %d invoice(s) with invalid line items", len(bad_invoices))

    invoices: list[Invoice] = []
    for invoice_id, rows in frame.groupby("invoice", sort=False):
        items = tuple(
            LineItem(
                stock_code=code,
                description=desc,
                quantity=int(qty),
                price=float(unit_price),
            )
            for code, desc, qty, unit_price in zip(
                rows["stock_code"], rows["description"], rows["quantity"], rows["price"]
            )
        )
        head = rows.iloc[0]
        invoices.append(
            Invoice(
                invoice=str(invoice_id),
                customer_id=head["customer"] if isinstance(head["customer"], str) else None,
                country=head["country"],
                invoice_date=head["date"].to_pydatetime(),
                items=items,
            )
        )

    if verbose:
        print(
            f"[{time.strftime('%X')}] Built {len(invoices):,} invoices from {len(frame):,} rows "
            f"in {time.perf_counter() - t0:.2f}s."
        )

    return TransactionStore(invoices)


def from_pandas(df: pd.DataFrame, **kwargs: Any) -> TransactionStore:
    """Shorthand for ``from_transactions(df, **kwargs)``."""
    return from_transactions(df, **kwargs)


def from_polars(df: pl.DataFrame, **kwargs: Any) -> TransactionStore:
    """Shorthand for ``from_transactions(df, **kwargs)``."""
    return from_transactions(df, **kwargs)


def from_arrow(table: pa.Table, **kwargs: Any) -> TransactionStore:
    """Shorthand for ``from_transactions(table, **kwargs)``."""
    return from_transactions(table, **kwargs)
