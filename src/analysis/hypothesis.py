"""Pooled-variance two-sample t-test."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple

import numpy as np
from scipy import stats

from ..survey.errors import InputCardinalityError, InsufficientSampleError
from ..survey.records import CleanedRecord
from .grouping import build_group_plan, numeric_values
from .intervals import ValuesLike, t_critical_value, validate_confidence_level


@dataclass(frozen=True)
class HypothesisTestResult:
    """Outcome of comparing the means of two independent groups."""

    statistic: float
    degrees_of_freedom: int
    mean_difference: float
    confidence_interval: Tuple[float, float]
    confidence_level: float
    p_value: float
    groups: Tuple[str, str]
    n1: int
    n2: int
    mean1: float
    mean2: float

    def is_significant(self, alpha: float = 0.05) -> bool:
        if not 0.0 < alpha < 1.0:
            raise ValueError(f"alpha must fall within (0, 1), got {alpha}")
        return bool(self.p_value < alpha)

    def to_dict(self, alpha: Optional[float] = None) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "groups": list(self.groups),
            "n1": self.n1,
            "n2": self.n2,
            "mean1": self.mean1,
            "mean2": self.mean2,
            "statistic": self.statistic,
            "degrees_of_freedom": self.degrees_of_freedom,
            "mean_difference": self.mean_difference,
            "confidence_interval": list(self.confidence_interval),
            "confidence_level": self.confidence_level,
            "p_value": self.p_value,
        }
        if alpha is not None:
            payload["alpha"] = alpha
            payload["significant"] = self.is_significant(alpha)
        return payload


def two_sample_t_test(
    sample1: ValuesLike,
    sample2: ValuesLike,
    confidence_level: float = 0.95,
    groups: Tuple[str, str] = ("group1", "group2"),
) -> HypothesisTestResult:
    """Student's t-test assuming equal population variances.

    The difference is taken as ``mean(sample1) - mean(sample2)``.
    """
    level = validate_confidence_level(confidence_level)
    x1 = _as_sample(sample1, groups[0])
    x2 = _as_sample(sample2, groups[1])
    n1, n2 = int(x1.shape[0]), int(x2.shape[0])

    mean1, mean2 = float(np.mean(x1)), float(np.mean(x2))
    var1, var2 = float(np.var(x1, ddof=1)), float(np.var(x2, ddof=1))
    dof = n1 + n2 - 2
    pooled_variance = ((n1 - 1) * var1 + (n2 - 1) * var2) / dof
    standard_error = float(np.sqrt(pooled_variance * (1.0 / n1 + 1.0 / n2)))
    difference = mean1 - mean2

    # Zero pooled variance gives +/-inf (or NaN for equal means) instead of a warning.
    with np.errstate(divide="ignore", invalid="ignore"):
        statistic = float(np.divide(difference, standard_error))
    p_value = float(2.0 * stats.t.sf(abs(statistic), dof)) if not np.isnan(statistic) else float("nan")
    margin = t_critical_value(level, dof) * standard_error

    return HypothesisTestResult(
        statistic=statistic,
        degrees_of_freedom=dof,
        mean_difference=difference,
        confidence_interval=(difference - margin, difference + margin),
        confidence_level=level,
        p_value=p_value,
        groups=(str(groups[0]), str(groups[1])),
        n1=n1,
        n2=n2,
        mean1=mean1,
        mean2=mean2,
    )


def compare_groups(
    records: Sequence[CleanedRecord],
    field: str,
    value_field: str = "income",
    confidence_level: float = 0.95,
    order: Optional[Sequence[str]] = None,
) -> HypothesisTestResult:
    """Run the pooled t-test between the two observed levels of `field`.

    Levels are taken in canonical order unless `order` lists their labels.
    """
    plan = build_group_plan(records, (field,))
    keys = plan.keys
    labels = [key[0].value for key in keys]
    if len(keys) != 2:
        raise InputCardinalityError(field, labels)

    if order is not None:
        if sorted(order) != sorted(labels):
            raise ValueError(f"order {list(order)} does not match observed levels {labels}")
        keys = sorted(keys, key=lambda key: list(order).index(key[0].value))

    first, second = keys
    return two_sample_t_test(
        numeric_values(records, value_field, plan.indices[first]),
        numeric_values(records, value_field, plan.indices[second]),
        confidence_level=confidence_level,
        groups=(first[0].value, second[0].value),
    )


def _as_sample(values: ValuesLike, label: str) -> np.ndarray:
    sample = np.asarray(values, dtype=np.float64)
    if sample.ndim != 1:
        raise ValueError(f"Sample '{label}' must be 1-D, got shape {sample.shape}")
    if sample.shape[0] < 2:
        raise InsufficientSampleError(
            f"Two-sample t-test requires a variance for group '{label}'",
            required=2,
            observed=int(sample.shape[0]),
        )
    if not np.all(np.isfinite(sample)):
        raise ValueError(f"Sample '{label}' contains non-finite entries.")
    return sample


__all__ = ["HypothesisTestResult", "compare_groups", "two_sample_t_test"]
