"""Input validation utilities shared by the loader and the reports."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any


class StructuralError(ValueError):
    """A record or frame is missing a required field or carries an ill-typed value.

    Parameters
    ----------
    message:
        Human-readable description of the fault.
    report:
        Name of the report that was running when the fault surfaced, if any.
    key:
        The offending key (invoice id, column name, ...), if known.
    """

    def __init__(self, message: str, report: str | None = None, key: Any = None) -> None:
        self.message = message
        self.report = report
        self.key = key
        super().__init__(self._format())

    def _format(self) -> str:
        parts = []
        if self.report is not None:
            parts.append(f"[{self.report}]")
        parts.append(self.message)
        if self.key is not None:
            parts.append(f"(key={self.key!r})")
        return " ".join(parts)

    def for_report(self, report: str) -> StructuralError:
        """Return a copy of this error annotated with *report* (keeps an existing name)."""
        if self.report is not None:
            return self
        return StructuralError(self.message, report=report, key=self.key)


def require_columns(columns: Iterable[Any], required: Iterable[str]) -> None:
    """Raise :class:`StructuralError` if any of *required* is absent from *columns*."""
    available = list(columns)
    missing = [c for c in required if c not in available]
    if missing:
        raise StructuralError(
            f"Missing required column(s) {missing}. Available columns: {available}",
            key=missing[0],
        )


def check_limit(value: int | None, name: str = "limit") -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int or None, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {value}")
