"""Per-partition ranking (``ROW_NUMBER() OVER (PARTITION BY ... ORDER BY ... DESC)``)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ._compat import to_pandas
from ._validation import check_limit, require_columns

if TYPE_CHECKING:
    import pandas as pd

    from ._compat import DataFrame


def rank_within(
    data: DataFrame,
    partition_col: str,
    metric_col: str,
    top_n: int | None = None,
    rank_col: str = "rank",
) -> pd.DataFrame:
    """Assign a 1-based rank to each row within its partition.

    Rows are ordered by *metric_col* descending inside each partition.  Ties
    get distinct consecutive ranks in first-seen order (a row number, not a
    competition rank), so every partition is ranked ``1..k`` with no gaps.
    Partitions are discovered from the data.

    Parameters
    ----------
    data : pd.DataFrame | pl.DataFrame | pa.Table | list[dict]
        Records carrying *partition_col* and *metric_col*.
    partition_col : str
        Column whose values define the partitions.
    metric_col : str
        Numeric column to rank by (descending).
    top_n : int | None, default=None
        Keep only rows with ``rank <= top_n``.
    rank_col : str, default="rank"
        Name of the rank column added to the output.

    Returns
    -------
    pd.DataFrame
        The input rows plus *rank_col*, grouped by partition (first-seen
        partition order) and ordered by rank.

    Examples
    --------
    >>> rows = [
    ...     {"country": "UK", "code": "A", "qty": 5},
    ...     {"country": "FR", "code": "B", "qty": 3},
    ...     {"country": "UK", "code": "C", "qty": 9},
    ... ]
    >>> rank_within(rows, "country", "qty")[["country", "code", "rank"]].values.tolist()
    [['UK', 'C', 1], ['UK', 'A', 2], ['FR', 'B', 1]]
    """
    import pandas as pd

    check_limit(top_n, "top_n")
    df = to_pandas(data)
    if df.empty and len(df.columns) == 0:
        return pd.DataFrame(columns=[partition_col, metric_col, rank_col])
    require_columns(df.columns, [partition_col, metric_col])

    df = df.reset_index(drop=True)
    # first-seen order of partitions and of rows, used as the tie-break
    part_order = pd.Series(pd.factorize(df[partition_col], use_na_sentinel=False)[0], index=df.index)
    ordered = (
        df.assign(_part=part_order, _metric=-df[metric_col], _seq=range(len(df)))
        .sort_values(["_part", "_metric", "_seq"], kind="stable")
    )
    ordered[rank_col] = ordered.groupby("_part", sort=False).cumcount() + 1

    if top_n is not None:
        ordered = ordered[ordered[rank_col] <= top_n]

    return ordered.drop(columns=["_part", "_metric", "_seq"]).reset_index(drop=True)
