from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Sequence, Tuple, Type

import numpy as np

from ..survey.codes import CATEGORICAL_FIELDS, NUMERIC_FIELDS, canonical_rank
from ..survey.records import CleanedRecord

GroupKey = Tuple[Enum, ...]


@dataclass(frozen=True)
class GroupPlan:
    """Record indices for each observed combination of grouping values."""

    fields: Tuple[str, ...]
    indices: Dict[GroupKey, List[int]]

    @property
    def keys(self) -> List[GroupKey]:
        """Observed keys in canonical level order."""
        return sorted(self.indices, key=lambda key: tuple(canonical_rank(member) for member in key))


def categorical_field(field: str) -> Type[Enum]:
    """Return the enum backing a categorical record field."""
    enum_cls = CATEGORICAL_FIELDS.get(field)
    if enum_cls is None:
        known = ", ".join(CATEGORICAL_FIELDS)
        raise ValueError(f"'{field}' is not a categorical field (expected one of: {known})")
    return enum_cls


def numeric_field(field: str) -> str:
    if field not in NUMERIC_FIELDS:
        known = ", ".join(NUMERIC_FIELDS)
        raise ValueError(f"'{field}' is not a numeric field (expected one of: {known})")
    return field


def build_group_plan(records: Sequence[CleanedRecord], fields: Sequence[str]) -> GroupPlan:
    """Bucket record indices by the values of `fields`."""
    field_tuple = tuple(fields)
    for field in field_tuple:
        categorical_field(field)

    buckets: Dict[GroupKey, List[int]] = defaultdict(list)
    for idx, record in enumerate(records):
        key = tuple(record.value(field) for field in field_tuple)
        buckets[key].append(idx)
    return GroupPlan(fields=field_tuple, indices=dict(buckets))


def numeric_values(records: Sequence[CleanedRecord], field: str, indices: Sequence[int] | None = None) -> np.ndarray:
    """Gather a numeric field as a float64 array, optionally restricted to `indices`."""
    numeric_field(field)
    selected = records if indices is None else [records[idx] for idx in indices]
    return np.asarray([record.value(field) for record in selected], dtype=np.float64)


__all__ = [
    "GroupKey",
    "GroupPlan",
    "build_group_plan",
    "categorical_field",
    "numeric_field",
    "numeric_values",
]
