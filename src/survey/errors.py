"""Error kinds raised across the income-gap pipeline."""

from __future__ import annotations

from typing import Any, Sequence, Tuple


class IncomeGapError(Exception):
    """Base class for every failure reported by the analysis stages."""


class InvalidRecordError(IncomeGapError, ValueError):
    """A raw record carries an unrecognised code or an unusable income."""

    def __init__(self, field: str, value: Any, reason: str) -> None:
        super().__init__(f"Invalid {field} value {value!r}: {reason}")
        self.field = field
        self.value = value
        self.reason = reason


class InsufficientSampleError(IncomeGapError):
    """Too few observations for a variance, interval, or residual estimate."""

    def __init__(self, message: str, required: int, observed: int) -> None:
        super().__init__(f"{message} (need at least {required}, got {observed})")
        self.required = required
        self.observed = observed


class InputCardinalityError(IncomeGapError):
    """A two-group comparison was requested on a variable without exactly two levels."""

    def __init__(self, field: str, levels: Sequence[str]) -> None:
        joined = ", ".join(levels) or "none"
        super().__init__(f"Field '{field}' must have exactly two observed levels, found {len(levels)}: {joined}")
        self.field = field
        self.levels: Tuple[str, ...] = tuple(levels)


class SingularDesignMatrixError(IncomeGapError):
    """The design matrix is not full column rank."""

    def __init__(self, columns: Sequence[str], rank: int, n_columns: int) -> None:
        self.columns: Tuple[str, ...] = tuple(columns)
        self.rank = rank
        self.n_columns = n_columns
        detail = ", ".join(self.columns) if self.columns else "unknown columns"
        super().__init__(
            f"Design matrix has rank {rank} < {n_columns} columns; aliased or empty columns: {detail}"
        )


__all__ = [
    "IncomeGapError",
    "InputCardinalityError",
    "InsufficientSampleError",
    "InvalidRecordError",
    "SingularDesignMatrixError",
]
