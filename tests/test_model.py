from __future__ import annotations

from datetime import datetime

import pytest

from basketry import Invoice, LineItem, Pair, StructuralError


def test_pair_is_unordered() -> None:
    assert Pair("B", "A") == Pair("A", "B")
    assert hash(Pair("B", "A")) == hash(Pair("A", "B"))
    assert len({Pair("A", "B"), Pair("B", "A")}) == 1


def test_pair_canonical_order() -> None:
    p = Pair("85123A", "22423")
    assert (p.first, p.second) == ("22423", "85123A")
    assert tuple(p) == ("22423", "85123A")
    assert "85123A" in p
    assert "99999" not in p


def test_pair_self_pair_allowed() -> None:
    p = Pair("A", "A")
    assert p.is_self_pair
    assert not Pair("A", "B").is_self_pair


def test_line_item_amount() -> None:
    item = LineItem("85123A", "WHITE HANGING HEART T-LIGHT HOLDER", -6, 2.55)
    assert item.amount == pytest.approx(-15.3)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"quantity": "6"},
        {"quantity": 6.5},
        {"price": "2.55"},
        {"price": -1.0},
        {"price": float("nan")},
        {"stock_code": ""},
    ],
)
def test_line_item_rejects_bad_fields(kwargs: dict) -> None:
    fields = {"stock_code": "85123A", "description": None, "quantity": 6, "price": 2.55}
    fields.update(kwargs)
    with pytest.raises(StructuralError):
        LineItem(**fields)


def test_invoice_requires_items() -> None:
    with pytest.raises(StructuralError) as excinfo:
        Invoice("536365", "17850", "United Kingdom", datetime(2010, 12, 1), ())
    assert excinfo.value.key == "536365"


def test_invoice_requires_datetime() -> None:
    item = LineItem("85123A", None, 6, 2.55)
    with pytest.raises(StructuralError):
        Invoice("536365", "17850", None, "2010-12-01", (item,))  # type: ignore[arg-type]


def test_invoice_items_coerced_to_tuple() -> None:
    item = LineItem("85123A", None, 6, 2.55)
    inv = Invoice("536365", "17850", None, datetime(2010, 12, 1), [item])  # type: ignore[arg-type]
    assert inv.items == (item,)


def test_invoice_cancellation_prefix() -> None:
    item = LineItem("85123A", None, -1, 2.55)
    inv = Invoice("C536379", "14527", None, datetime(2010, 12, 1), (item,))
    assert inv.is_cancellation()
    assert inv.is_cancellation("C")
    assert not inv.is_cancellation("X")


def test_invoice_stock_codes_keep_repeats() -> None:
    items = (LineItem("A", None, 1, 1.0), LineItem("B", None, 1, 1.0), LineItem("A", None, 2, 1.0))
    inv = Invoice("1", None, None, datetime(2010, 1, 2), items)
    assert inv.stock_codes == ["A", "B", "A"]
    assert inv.has_product("B")
    assert not inv.has_product("C")


def test_structural_error_message_carries_context() -> None:
    err = StructuralError("Invoice has no line items", key="536365").for_report("top_products")
    assert err.report == "top_products"
    assert "top_products" in str(err)
    assert "536365" in str(err)
    assert isinstance(err, ValueError)
