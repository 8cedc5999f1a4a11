"""Grouped descriptive statistics over cleaned survey records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..survey.records import CleanedRecord
from .grouping import GroupKey, build_group_plan, numeric_field, numeric_values

MAX_GROUPING_FIELDS = 2


@dataclass(frozen=True)
class AggregateResult:
    """Summary of one observed group. ``stddev`` is NaN for single-member groups."""

    key: GroupKey
    fields: Tuple[str, ...]
    count: int
    mean: float
    median: float
    stddev: float

    @property
    def labels(self) -> Tuple[str, ...]:
        return tuple(member.value for member in self.key)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = dict(zip(self.fields, self.labels))
        payload.update(count=self.count, mean=self.mean, median=self.median, stddev=_nan_to_none(self.stddev))
        return payload


def aggregate(
    records: Sequence[CleanedRecord],
    group_by: Sequence[str],
    value_field: str = "income",
) -> List[AggregateResult]:
    """Compute count/mean/median/stddev for every observed group.

    Groups are returned in canonical level order of their keys; combinations
    absent from the data are not synthesized.
    """
    fields = tuple(group_by)
    if not 1 <= len(fields) <= MAX_GROUPING_FIELDS:
        raise ValueError(f"Aggregation takes 1 to {MAX_GROUPING_FIELDS} grouping fields, got {len(fields)}.")
    if len(set(fields)) != len(fields):
        raise ValueError("Grouping fields must be distinct.")
    numeric_field(value_field)

    plan = build_group_plan(records, fields)
    results: List[AggregateResult] = []
    for key in plan.keys:
        values = numeric_values(records, value_field, plan.indices[key])
        results.append(_summarise(key, fields, values))
    return results


def aggregates_to_frame(
    results: Sequence[AggregateResult],
    group_by: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """Tabulate aggregate results, one row per group.

    `group_by` fixes the key columns when `results` is empty; otherwise they
    are taken from the results themselves.
    """
    fields = list(results[0].fields) if results else list(group_by or ())
    columns = fields + ["count", "mean", "median", "stddev"]
    if not results:
        return pd.DataFrame(columns=columns)
    rows = []
    for result in results:
        row: dict[str, Any] = dict(zip(result.fields, result.labels))
        row.update(count=result.count, mean=result.mean, median=result.median, stddev=result.stddev)
        rows.append(row)
    return pd.DataFrame(rows, columns=columns)


def _summarise(key: GroupKey, fields: Tuple[str, ...], values: np.ndarray) -> AggregateResult:
    count = int(values.shape[0])
    mean = float(np.mean(values))
    # Two-pass variance: centre first, then square.
    stddev = float(np.sqrt(np.sum((values - mean) ** 2) / (count - 1))) if count > 1 else float("nan")
    return AggregateResult(
        key=key,
        fields=fields,
        count=count,
        mean=mean,
        median=float(np.median(values)),
        stddev=stddev,
    )


def _nan_to_none(value: float) -> float | None:
    return None if np.isnan(value) else value


__all__ = ["AggregateResult", "aggregate", "aggregates_to_frame"]
