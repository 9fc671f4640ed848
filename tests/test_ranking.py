from __future__ import annotations

import pandas as pd
import pytest

from basketry import StructuralError, rank_within


@pytest.fixture
def sales() -> list[dict]:
    return [
        {"country": "UK", "code": "A", "qty": 5},
        {"country": "FR", "code": "B", "qty": 3},
        {"country": "UK", "code": "C", "qty": 9},
        {"country": "UK", "code": "D", "qty": 5},
        {"country": "DE", "code": "E", "qty": 1},
        {"country": "FR", "code": "F", "qty": 7},
    ]


def test_ranks_within_partition(sales: list[dict]) -> None:
    ranked = rank_within(sales, "country", "qty")
    assert ranked[["country", "code", "rank"]].values.tolist() == [
        ["UK", "C", 1],
        ["UK", "A", 2],
        ["UK", "D", 3],
        ["FR", "F", 1],
        ["FR", "B", 2],
        ["DE", "E", 1],
    ]


def test_ties_get_distinct_ranks_in_first_seen_order(sales: list[dict]) -> None:
    ranked = rank_within(sales, "country", "qty")
    uk = ranked[ranked["country"] == "UK"].set_index("code")["rank"]
    assert uk["A"] == 2
    assert uk["D"] == 3


def test_ranks_are_contiguous(sales: list[dict]) -> None:
    ranked = rank_within(sales, "country", "qty")
    for _, group in ranked.groupby("country"):
        assert sorted(group["rank"]) == list(range(1, len(group) + 1))


def test_top_n(sales: list[dict]) -> None:
    ranked = rank_within(sales, "country", "qty", top_n=1)
    assert ranked["code"].tolist() == ["C", "F", "E"]
    assert ranked.groupby("country").size().max() <= 1


def test_custom_rank_column_and_pandas_input(sales: list[dict]) -> None:
    ranked = rank_within(pd.DataFrame(sales), "country", "qty", rank_col="product_rank")
    assert "product_rank" in ranked.columns
    assert list(ranked.index) == list(range(len(ranked)))


def test_polars_input(sales: list[dict]) -> None:
    pl = pytest.importorskip("polars")
    pytest.importorskip("pyarrow")
    ranked = rank_within(pl.DataFrame(sales), "country", "qty", top_n=2)
    assert isinstance(ranked, pd.DataFrame)
    assert len(ranked) == 5


def test_missing_column(sales: list[dict]) -> None:
    with pytest.raises(StructuralError):
        rank_within(sales, "region", "qty")


def test_empty_input() -> None:
    ranked = rank_within([], "country", "qty")
    assert ranked.empty
    assert "rank" in ranked.columns
