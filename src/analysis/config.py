"""Configuration for a full income-gap analysis run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

from ..survey.codes import CATEGORICAL_FIELDS, NUMERIC_FIELDS
from ..survey.records import RawFieldNames, TopcodeRule
from .aggregation import MAX_GROUPING_FIELDS
from .intervals import validate_confidence_level

DEFAULT_GROUPING: Tuple[str, ...] = ("gender",)
DEFAULT_PREDICTORS: Tuple[str, ...] = ("gender", "education", "marital_status")


@dataclass(frozen=True)
class AnalysisConfig:
    """Recognised options for the income-gap pipeline."""

    confidence_level: float = 0.95
    alpha: float = 0.05
    grouping_fields: Tuple[str, ...] = DEFAULT_GROUPING
    comparison_field: str = "gender"
    value_field: str = "income"
    regression_predictors: Tuple[str, ...] = DEFAULT_PREDICTORS
    log_response: bool = False
    topcode: Optional[TopcodeRule] = None
    raw_fields: RawFieldNames = field(default_factory=RawFieldNames)
    strict: bool = False

    def validate(self) -> None:
        validate_confidence_level(self.confidence_level)
        if not 0.0 < self.alpha < 1.0:
            raise ValueError(f"alpha must fall within (0, 1), got {self.alpha}")
        if not 1 <= len(self.grouping_fields) <= MAX_GROUPING_FIELDS:
            raise ValueError(
                f"grouping_fields takes 1 to {MAX_GROUPING_FIELDS} field names, got {len(self.grouping_fields)}."
            )
        if len(set(self.grouping_fields)) != len(self.grouping_fields):
            raise ValueError("grouping_fields must be distinct.")
        for name in (*self.grouping_fields, self.comparison_field):
            _require_categorical(name)
        if self.value_field not in NUMERIC_FIELDS:
            raise ValueError(f"value_field must be numeric, got '{self.value_field}'")
        if not self.regression_predictors:
            raise ValueError("regression_predictors must name at least one field.")
        for name in self.regression_predictors:
            if name not in CATEGORICAL_FIELDS and name not in NUMERIC_FIELDS:
                raise ValueError(f"Unknown regression predictor '{name}'")
            if name == self.value_field:
                raise ValueError(f"'{name}' cannot be both the response and a predictor.")
        if len(set(self.regression_predictors)) != len(self.regression_predictors):
            raise ValueError("regression_predictors must be distinct.")

    @classmethod
    def from_flags(
        cls,
        confidence_level: float,
        alpha: float,
        group_by: Sequence[str],
        compare: str,
        predictors: Sequence[str],
        log_income: bool,
        topcode_threshold: Optional[float],
        topcode_policy: Optional[str],
        raw_fields: Optional[RawFieldNames] = None,
        strict: bool = False,
    ) -> "AnalysisConfig":
        """Translate CLI flags into a validated configuration."""
        if topcode_threshold is not None and topcode_policy is None:
            raise ValueError("--topcode-threshold requires an explicit --topcode-policy (exclude or clip).")
        if topcode_policy is not None and topcode_threshold is None:
            raise ValueError("--topcode-policy has no effect without --topcode-threshold.")

        topcode = None
        if topcode_threshold is not None and topcode_policy is not None:
            topcode = TopcodeRule(threshold=topcode_threshold, policy=topcode_policy)  # type: ignore[arg-type]

        config = cls(
            confidence_level=confidence_level,
            alpha=alpha,
            grouping_fields=tuple(group_by or DEFAULT_GROUPING),
            comparison_field=compare,
            regression_predictors=tuple(predictors or DEFAULT_PREDICTORS),
            log_response=log_income,
            topcode=topcode,
            raw_fields=raw_fields or RawFieldNames(),
            strict=strict,
        )
        config.validate()
        return config


def _require_categorical(name: str) -> None:
    if name not in CATEGORICAL_FIELDS:
        known = ", ".join(CATEGORICAL_FIELDS)
        raise ValueError(f"'{name}' is not a categorical field (expected one of: {known})")


__all__ = ["AnalysisConfig", "DEFAULT_GROUPING", "DEFAULT_PREDICTORS"]
