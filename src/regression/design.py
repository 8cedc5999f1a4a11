"""Dummy-coded design matrices for OLS with mixed predictors."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Hashable, List, Mapping, Sequence, Tuple, Union

import numpy as np

from ..survey.codes import CATEGORICAL_FIELDS, NUMERIC_FIELDS
from ..survey.records import CleanedRecord

INTERCEPT = "intercept"


@dataclass(frozen=True)
class NumericPredictor:
    """Predictor entering the model as a single column."""

    name: str


@dataclass(frozen=True)
class CategoricalPredictor:
    """Predictor expanded into treatment-coded indicator columns.

    `levels` fixes the canonical ordering; the first level present in the data
    becomes the reference and gets no column.
    """

    name: str
    levels: Tuple[Hashable, ...]

    def __post_init__(self) -> None:
        if not self.levels:
            raise ValueError(f"Categorical predictor '{self.name}' needs at least one level.")
        if len(set(self.levels)) != len(self.levels):
            raise ValueError(f"Categorical predictor '{self.name}' has duplicate levels.")


Predictor = Union[NumericPredictor, CategoricalPredictor]


@dataclass(frozen=True)
class DesignMatrix:
    """Model matrix with named columns; column 0 is the intercept."""

    matrix: np.ndarray
    columns: Tuple[str, ...]
    predictors: Tuple[Predictor, ...]
    reference_levels: Mapping[str, Hashable]

    @property
    def n_observations(self) -> int:
        return int(self.matrix.shape[0])

    @property
    def n_columns(self) -> int:
        return int(self.matrix.shape[1])

    def column(self, name: str) -> np.ndarray:
        return self.matrix[:, self.columns.index(name)]


def level_label(level: Hashable) -> str:
    return str(level.value) if isinstance(level, Enum) else str(level)


def predictor_for_field(name: str) -> Predictor:
    """Resolve a cleaned-record field name to its predictor description."""
    enum_cls = CATEGORICAL_FIELDS.get(name)
    if enum_cls is not None:
        return CategoricalPredictor(name=name, levels=tuple(enum_cls))
    if name in NUMERIC_FIELDS:
        return NumericPredictor(name=name)
    raise ValueError(f"Unknown predictor field '{name}'")


def records_to_columns(records: Sequence[CleanedRecord], fields: Sequence[str]) -> Dict[str, List[Any]]:
    """Column-major view of the requested record fields."""
    return {field: [record.value(field) for record in records] for field in fields}


def build_design_matrix(data: Mapping[str, Sequence[Any]], predictors: Sequence[Predictor]) -> DesignMatrix:
    """Assemble the intercept, numeric columns, and k-1 indicators per categorical."""
    if not predictors:
        raise ValueError("At least one predictor is required.")
    names = [predictor.name for predictor in predictors]
    if len(set(names)) != len(names):
        raise ValueError("Predictor names must be distinct.")

    n_rows = _common_length(data, names)
    columns: List[str] = [INTERCEPT]
    blocks: List[np.ndarray] = [np.ones((n_rows, 1), dtype=np.float64)]
    references: Dict[str, Hashable] = {}

    for predictor in predictors:
        values = data[predictor.name]
        if isinstance(predictor, NumericPredictor):
            blocks.append(ensure_numeric_column(values, name=predictor.name).reshape(-1, 1))
            columns.append(predictor.name)
            continue

        unknown = {value for value in values if value not in predictor.levels}
        if unknown:
            shown = ", ".join(sorted(level_label(value) for value in unknown))
            raise ValueError(f"Predictor '{predictor.name}' has values outside its declared levels: {shown}")
        present = set(values)
        observed = [level for level in predictor.levels if level in present]
        references[predictor.name] = observed[0]
        for level in observed[1:]:
            indicator = np.fromiter((value == level for value in values), dtype=np.float64, count=n_rows)
            blocks.append(indicator.reshape(-1, 1))
            columns.append(f"{predictor.name}{level_label(level)}")

    matrix = np.hstack(blocks)
    matrix.setflags(write=False)
    return DesignMatrix(
        matrix=matrix,
        columns=tuple(columns),
        predictors=tuple(predictors),
        reference_levels=references,
    )


def build_record_design(records: Sequence[CleanedRecord], fields: Sequence[str]) -> DesignMatrix:
    """Design matrix for cleaned records using canonical level orderings."""
    predictors = [predictor_for_field(field) for field in fields]
    return build_design_matrix(records_to_columns(records, fields), predictors)


def ensure_numeric_column(values: Sequence[Any], *, name: str) -> np.ndarray:
    """Coerce values into a finite float64 vector."""
    arr = np.asarray(values, dtype=np.float64)
    if arr.ndim != 1:
        raise ValueError(f"{name} must be 1-D, got shape {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise ValueError(f"{name} contains non-finite entries.")
    return arr


def _common_length(data: Mapping[str, Sequence[Any]], names: Sequence[str]) -> int:
    missing = [name for name in names if name not in data]
    if missing:
        raise ValueError(f"No data supplied for predictors: {', '.join(missing)}")
    lengths = {len(data[name]) for name in names}
    if len(lengths) != 1:
        raise ValueError(f"Predictor columns differ in length: {sorted(lengths)}")
    n_rows = lengths.pop()
    if n_rows == 0:
        raise ValueError("Design matrix cannot be built from zero observations.")
    return n_rows


__all__ = [
    "CategoricalPredictor",
    "DesignMatrix",
    "INTERCEPT",
    "NumericPredictor",
    "Predictor",
    "build_design_matrix",
    "build_record_design",
    "ensure_numeric_column",
    "level_label",
    "predictor_for_field",
    "records_to_columns",
]
