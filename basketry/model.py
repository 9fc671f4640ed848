"""Record types for the transaction log: invoices, line items and unordered pairs."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, TypeVar

from ._validation import StructuralError

T = TypeVar("T")


@dataclass(frozen=True)
class LineItem:
    """One product line within an invoice.

    ``quantity`` is signed: a negative value is a returned quantity.
    ``description`` is the denormalized copy printed on the invoice and may be
    stale relative to a product catalog.
    """

    stock_code: str
    description: str | None
    quantity: int
    price: float

    def __post_init__(self) -> None:
        if self.stock_code is None or self.stock_code == "":
            raise StructuralError("Line item has no stock code")
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise StructuralError(
                f"Quantity must be an integer, got {type(self.quantity).__name__}",
                key=self.stock_code,
            )
        if isinstance(self.price, bool) or not isinstance(self.price, (int, float)):
            raise StructuralError(
                f"Price must be numeric, got {type(self.price).__name__}",
                key=self.stock_code,
            )
        if math.isnan(self.price) or self.price < 0:
            raise StructuralError(f"Price must be a non-negative number, got {self.price}", key=self.stock_code)

    @property
    def amount(self) -> float:
        """Unrounded line total (``quantity * price``)."""
        return self.quantity * self.price


@dataclass(frozen=True)
class Invoice:
    """A single transaction.

    Instances are immutable once built; ``items`` is always a non-empty tuple.
    A guest checkout carries ``customer_id=None``.
    """

    invoice: str
    customer_id: str | None
    country: str | None
    invoice_date: datetime
    items: tuple[LineItem, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.invoice:
            raise StructuralError("Invoice has no identifier")
        if not isinstance(self.invoice_date, datetime):
            raise StructuralError(
                f"Invoice date must be a datetime, got {type(self.invoice_date).__name__}",
                key=self.invoice,
            )
        if not isinstance(self.items, tuple):
            object.__setattr__(self, "items", tuple(self.items))
        if not self.items:
            raise StructuralError("Invoice has no line items", key=self.invoice)
        for item in self.items:
            if not isinstance(item, LineItem):
                raise StructuralError(f"Expected LineItem, got {type(item).__name__}", key=self.invoice)

    def is_cancellation(self, prefix: str = "C") -> bool:
        return self.invoice.startswith(prefix)

    @property
    def stock_codes(self) -> list[str]:
        """Product codes in line order, repeats included."""
        return [item.stock_code for item in self.items]

    def has_product(self, stock_code: str) -> bool:
        return any(item.stock_code == stock_code for item in self.items)


def _sort_key(value: Any) -> tuple[str, Any]:
    # Mixed-type endpoints still need a total order for canonicalization.
    return (type(value).__name__, value)


@dataclass(frozen=True, init=False)
class Pair(Generic[T]):
    """Unordered pair of keys.

    Endpoints are stored in canonical order, so ``Pair("B", "A") == Pair("A", "B")``
    and both hash identically.  Identical endpoints are allowed: the same
    product bought twice in one invoice yields ``Pair("A", "A")``.

    Examples
    --------
    >>> Pair("85123A", "22423") == Pair("22423", "85123A")
    True
    >>> Pair("22423", "85123A").first
    '22423'
    """

    first: T
    second: T

    def __init__(self, a: T, b: T) -> None:
        if _sort_key(b) < _sort_key(a):
            a, b = b, a
        object.__setattr__(self, "first", a)
        object.__setattr__(self, "second", b)

    def __iter__(self):
        yield self.first
        yield self.second

    def __contains__(self, value: object) -> bool:
        return value == self.first or value == self.second

    @property
    def is_self_pair(self) -> bool:
        return self.first == self.second
