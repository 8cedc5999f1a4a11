"""Student-t confidence intervals for group means."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Sequence, Tuple, Union

import numpy as np
from scipy import stats

from ..survey.errors import InsufficientSampleError
from ..survey.records import CleanedRecord
from .grouping import build_group_plan, numeric_values

ValuesLike = Union[np.ndarray, Sequence[float]]


@dataclass(frozen=True)
class ConfidenceInterval:
    """Two-sided interval around a sample mean."""

    mean: float
    stddev: float
    n: int
    standard_error: float
    lower: float
    upper: float
    confidence_level: float

    @property
    def margin(self) -> float:
        return self.upper - self.mean

    def contains(self, value: float) -> bool:
        return self.lower <= value <= self.upper

    def to_dict(self) -> dict[str, Any]:
        return {
            "mean": self.mean,
            "stddev": self.stddev,
            "n": self.n,
            "standard_error": self.standard_error,
            "lower": self.lower,
            "upper": self.upper,
            "confidence_level": self.confidence_level,
        }


@dataclass(frozen=True)
class GroupIntervals:
    """Per-level intervals for one categorical field."""

    field: str
    intervals: Dict[Enum, ConfidenceInterval]
    skipped: Tuple[Enum, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "intervals": {level.value: interval.to_dict() for level, interval in self.intervals.items()},
            "skipped": [level.value for level in self.skipped],
        }


def validate_confidence_level(level: float) -> float:
    if not np.isfinite(level) or not 0.0 < level < 1.0:
        raise ValueError(f"confidence_level must fall within (0, 1), got {level}")
    return float(level)


def t_critical_value(confidence_level: float, dof: int) -> float:
    """Upper critical value of the two-sided Student-t interval."""
    return float(stats.t.ppf(1.0 - (1.0 - confidence_level) / 2.0, dof))


def estimate_interval(values: ValuesLike, confidence_level: float = 0.95) -> ConfidenceInterval:
    """Mean and two-sided t interval for a single sample.

    Raises:
        InsufficientSampleError: when fewer than two values are supplied.
    """
    level = validate_confidence_level(confidence_level)
    sample = np.asarray(values, dtype=np.float64)
    if sample.ndim != 1:
        raise ValueError(f"values must be 1-D, got shape {sample.shape}")
    n = int(sample.shape[0])
    if n < 2:
        raise InsufficientSampleError("Confidence interval requires a sample variance", required=2, observed=n)
    if not np.all(np.isfinite(sample)):
        raise ValueError("values contain non-finite entries.")

    mean = float(np.mean(sample))
    stddev = float(np.std(sample, ddof=1))
    standard_error = stddev / np.sqrt(n)
    margin = t_critical_value(level, n - 1) * standard_error
    return ConfidenceInterval(
        mean=mean,
        stddev=stddev,
        n=n,
        standard_error=float(standard_error),
        lower=mean - margin,
        upper=mean + margin,
        confidence_level=level,
    )


def estimate_group_intervals(
    records: Sequence[CleanedRecord],
    field: str,
    value_field: str = "income",
    confidence_level: float = 0.95,
    strict: bool = False,
) -> GroupIntervals:
    """Interval for every observed level of `field`.

    Levels with fewer than two members are skipped unless `strict` is set,
    in which case the first one raises `InsufficientSampleError`.
    """
    plan = build_group_plan(records, (field,))
    intervals: Dict[Enum, ConfidenceInterval] = {}
    skipped: list[Enum] = []
    for key in plan.keys:
        (level,) = key
        values = numeric_values(records, value_field, plan.indices[key])
        try:
            intervals[level] = estimate_interval(values, confidence_level)
        except InsufficientSampleError:
            if strict:
                raise
            skipped.append(level)
    return GroupIntervals(field=field, intervals=intervals, skipped=tuple(skipped))


__all__ = [
    "ConfidenceInterval",
    "GroupIntervals",
    "estimate_group_intervals",
    "estimate_interval",
    "t_critical_value",
    "validate_confidence_level",
]
