"""pytest configuration and shared fixtures."""

from __future__ import annotations

import os
import sys
import zipfile
from datetime import datetime
from pathlib import Path

import pytest

from basketry import Invoice, LineItem, TransactionStore

# Ensure tests/ dir is on path so `from conftest import make_invoice` works
sys.path.insert(0, os.path.dirname(__file__))


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "integration: real-world dataset tests (may download data on first run)",
    )


# ---------------------------------------------------------------------------
# Hand-built invoices
# ---------------------------------------------------------------------------


def make_invoice(
    invoice: str,
    customer: str | None,
    codes: list[str] | list[tuple[str, int, float]],
    when: datetime | str = "2010-06-01",
    country: str | None = "United Kingdom",
) -> Invoice:
    """Build an invoice from stock codes or ``(code, quantity, price)`` tuples."""
    items = []
    for entry in codes:
        if isinstance(entry, tuple):
            code, qty, price = entry
        else:
            code, qty, price = entry, 1, 1.0
        items.append(LineItem(stock_code=code, description=f"desc {code}", quantity=qty, price=price))
    if isinstance(when, str):
        when = datetime.fromisoformat(when)
    return Invoice(invoice=invoice, customer_id=customer, country=country, invoice_date=when, items=tuple(items))


@pytest.fixture
def three_invoice_store() -> TransactionStore:
    """Inv1 (C1: A, B), Inv2 (C2: B, C), Inv3 (C1: A, C)."""
    return TransactionStore(
        [
            make_invoice("1", "C1", ["A", "B"]),
            make_invoice("2", "C2", ["B", "C"]),
            make_invoice("3", "C1", ["A", "C"]),
        ]
    )


@pytest.fixture
def retail_store() -> TransactionStore:
    """A small log with cancellations, guests, two countries and repeat buyers."""
    return TransactionStore(
        [
            make_invoice("536365", "17850", [("85123A", 6, 2.55), ("71053", 6, 3.39), ("84406B", 8, 2.75)], "2010-12-01 08:26"),
            make_invoice("536366", "17850", [("22633", 6, 1.85), ("22632", 6, 1.85)], "2010-12-01 08:28"),
            make_invoice("536367", "13047", [("84879", 32, 1.69), ("85123A", 4, 2.55), ("22745", 6, 2.10)], "2010-12-01 08:34"),
            make_invoice("536368", "13047", [("22960", 6, 4.25), ("22913", 3, 4.95)], "2010-12-01 08:34"),
            make_invoice("536370", "12583", [("22728", 24, 3.75), ("85123A", 12, 2.55)], "2010-12-01 08:45", country="France"),
            make_invoice("536371", None, [("22086", 80, 2.55), ("85123A", 2, 2.95)], "2010-12-01 09:00"),
            make_invoice("C536379", "14527", [("85123A", -1, 2.55)], "2010-12-01 09:41"),
            make_invoice("536380", "14527", [("22086", 4, 2.55), ("71053", 2, 3.39)], "2010-12-02 10:00"),
            make_invoice("536381", "17850", [("22086", 12, 2.55), ("22633", 2, 1.85)], "2011-01-15 12:00"),
            make_invoice("536382", "12583", [("22086", 6, 2.55), ("22728", 2, 3.75)], "2011-03-02 11:00", country="France"),
        ]
    )


# ---------------------------------------------------------------------------
# UCI Online Retail II (no authentication required)
# Cached to tests/.dataset_cache/online_retail_II_sample.parquet after first download
# ---------------------------------------------------------------------------

CACHE_DIR = Path(__file__).parent / ".dataset_cache"
UCI_URL = "https://archive.ics.uci.edu/static/public/502/online+retail+ii.zip"
UCI_SAMPLE_PARQUET = CACHE_DIR / "online_retail_II_sample.parquet"


@pytest.fixture(scope="session")
def online_retail_df():  # type: ignore[return]
    """Return a sample of whole invoices from the UCI Online Retail II dataset.

    Cancellations and guest checkouts are kept.  Skips automatically if the
    download fails (e.g. in offline CI).
    """
    import pandas as pd

    CACHE_DIR.mkdir(exist_ok=True)

    if UCI_SAMPLE_PARQUET.exists():
        return pd.read_parquet(UCI_SAMPLE_PARQUET)

    try:
        import urllib.request

        zip_path = CACHE_DIR / "online_retail_II.zip"
        if not zip_path.exists():
            urllib.request.urlretrieve(UCI_URL, zip_path)

        xl_path = CACHE_DIR / "online_retail_II.xlsx"
        if not xl_path.exists():
            with zipfile.ZipFile(zip_path, "r") as z:
                xlsx_names = [n for n in z.namelist() if n.lower().endswith(".xlsx")]
                if not xlsx_names:
                    pytest.skip("No .xlsx found in UCI zip")
                z.extract(xlsx_names[0], CACHE_DIR)
                (CACHE_DIR / xlsx_names[0]).rename(xl_path)

        df = pd.read_excel(xl_path, sheet_name=0, engine="openpyxl")
        df["Invoice"] = df["Invoice"].astype(str)
        df["StockCode"] = df["StockCode"].astype(str)
        df["Description"] = df["Description"].astype(str)
        df = df[df["Price"] >= 0]

        import numpy as np

        all_invoices = df["Invoice"].unique()
        rng = np.random.default_rng(42)
        sample_invoices = rng.choice(all_invoices, size=min(2000, len(all_invoices)), replace=False)
        sample = df[df["Invoice"].isin(sample_invoices)].reset_index(drop=True)

        sample.to_parquet(UCI_SAMPLE_PARQUET, index=False)
        return sample

    except Exception as exc:
        pytest.skip(f"Could not download UCI Online Retail II dataset: {exc}")
