from __future__ import annotations

import importlib
import importlib.util
import types
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    import pandas as pd
    import polars as pl
    import pyarrow as pa

    #: Union of all supported tabular input types.
    #:
    #: * ``pandas.DataFrame``
    #: * ``polars.DataFrame`` – converted via Arrow
    #: * ``pyarrow.Table`` – converted via Arrow
    #: * ``Sequence[Mapping]`` – a list of plain records
    DataFrame = Union[pd.DataFrame, pl.DataFrame, pa.Table, Sequence[Mapping[str, Any]]]  # noqa: UP007


def import_optional_dependency(name: str, extra: str = "") -> types.ModuleType:
    """Import *name*, raising an ImportError that names the package to install if it is missing."""
    if importlib.util.find_spec(name) is None:
        package_name = name.split(".")[0]
        msg = f"Missing optional dependency '{package_name}'. Use pip or conda to install {package_name}."
        if extra:
            msg += f" {extra}"
        raise ImportError(msg)
    return importlib.import_module(name)


def _module_of(data: Any) -> str:
    return getattr(type(data), "__module__", "") or ""


def is_polars(data: Any) -> bool:
    return type(data).__name__ == "DataFrame" and _module_of(data).startswith("polars")


def is_arrow(data: Any) -> bool:
    return type(data).__name__ == "Table" and _module_of(data).startswith("pyarrow")


def to_pandas(data: Any) -> pd.DataFrame:
    """Coerce Polars/PyArrow frames or a sequence of records to a Pandas DataFrame."""
    import pandas as pd

    if isinstance(data, pd.DataFrame):
        return data

    if is_polars(data):
        import_optional_dependency(
            "pyarrow", extra="Polars input is converted through Arrow: pip install basketry[polars]."
        )
        return data.to_pandas()

    if is_arrow(data):
        return data.to_pandas()

    if isinstance(data, Sequence) and not isinstance(data, (str, bytes)):
        if len(data) == 0:
            return pd.DataFrame()
        if all(isinstance(row, Mapping) for row in data):
            return pd.DataFrame.from_records(list(data))

    raise TypeError(f"Expected a Pandas/Polars DataFrame, PyArrow Table or list of records, got {type(data)}")
