"""Analysis-wide parameters passed explicitly to every report."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .model import Invoice


@dataclass(frozen=True)
class AnalysisConfig:
    """Parameters shared by all reports of one analysis run.

    Parameters
    ----------
    cancellation_prefix : str, default="C"
        Invoices whose identifier starts with this prefix are returns/cancellations.
    start : datetime | None, default=None
        Lower bound on ``invoice_date`` (exclusive). ``None`` disables the bound.
    end : datetime | None, default=None
        Upper bound on ``invoice_date`` (inclusive). ``None`` disables the bound.
    """

    cancellation_prefix: str = "C"
    start: datetime | None = None
    end: datetime | None = None

    def __post_init__(self) -> None:
        if not self.cancellation_prefix:
            raise ValueError("cancellation_prefix must be a non-empty string")
        if self.start is not None and self.end is not None and self.end < self.start:
            raise ValueError(f"end ({self.end}) is before start ({self.start})")

    def in_range(self, invoice: Invoice) -> bool:
        if self.start is not None and not invoice.invoice_date > self.start:
            return False
        if self.end is not None and invoice.invoice_date > self.end:
            return False
        return True

    def accepts(self, invoice: Invoice, include_cancelled: bool = False) -> bool:
        """Whether *invoice* takes part in an analysis under this config."""
        if not include_cancelled and invoice.is_cancellation(self.cancellation_prefix):
            return False
        return self.in_range(invoice)
