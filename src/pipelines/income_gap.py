"""End-to-end orchestration: clean, summarise, test, and model income gaps."""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar

from ..analysis.aggregation import AggregateResult, aggregate
from ..analysis.config import AnalysisConfig
from ..analysis.hypothesis import HypothesisTestResult, compare_groups
from ..analysis.intervals import GroupIntervals, estimate_group_intervals
from ..regression.diagnostics import RegressionDiagnostics, compute_diagnostics
from ..regression.ols import RegressionFit, fit_regression
from ..survey.cleaning import clean_records
from ..survey.errors import IncomeGapError
from ..survey.records import CleaningResult, RawRecord

T = TypeVar("T")
LOG_TAG = "[income-gap]"


@dataclass(frozen=True)
class IncomeGapReport:
    """Everything the pipeline produced, plus the sections that failed."""

    config: AnalysisConfig
    cleaning: CleaningResult
    aggregates: List[AggregateResult] = field(default_factory=list)
    intervals: Optional[GroupIntervals] = None
    comparison: Optional[HypothesisTestResult] = None
    regression: Optional[RegressionFit] = None
    diagnostics: Optional[RegressionDiagnostics] = None
    errors: Dict[str, str] = field(default_factory=dict)

    def to_dict(self, include_diagnostics: bool = False) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "cleaning": self.cleaning.to_dict(),
            "aggregates": [result.to_dict() for result in self.aggregates],
            "intervals": self.intervals.to_dict() if self.intervals else None,
            "comparison": self.comparison.to_dict(alpha=self.config.alpha) if self.comparison else None,
            "regression": self.regression.model.to_dict() if self.regression else None,
            "errors": dict(self.errors),
        }
        if self.regression is not None:
            payload["regression"]["reference_levels"] = {
                name: getattr(level, "value", level) for name, level in self.regression.design.reference_levels.items()
            }
        if self.diagnostics is not None:
            flags = self.diagnostics.flag_outliers()
            payload["outliers"] = {
                "large_residuals": list(flags.large_residuals),
                "high_leverage": list(flags.high_leverage),
            }
            if include_diagnostics:
                payload["diagnostics"] = self.diagnostics.to_dict()
        return _finite_or_none(payload)


def run_income_gap_analysis(
    raw_records: Iterable[RawRecord],
    config: Optional[AnalysisConfig] = None,
) -> IncomeGapReport:
    """Run every analysis stage over one immutable cleaned dataset.

    A failure in one section is recorded under `errors` and the remaining
    sections still run, unless `config.strict` is set.
    """
    cfg = config or AnalysisConfig()
    cfg.validate()

    cleaning = clean_records(raw_records, fields=cfg.raw_fields, topcode=cfg.topcode)
    print(f"{LOG_TAG} Cleaned {cleaning.kept} records ({cleaning.rejected} rejected)", file=sys.stderr)
    for reason, count in cleaning.rejection_reasons.items():
        print(f"{LOG_TAG}   rejected {count}: {reason}", file=sys.stderr)
    if cleaning.clipped and cfg.topcode is not None:
        print(f"{LOG_TAG} Clipped {cleaning.clipped} incomes at {cfg.topcode.threshold:g}", file=sys.stderr)

    records = cleaning.records
    errors: Dict[str, str] = {}

    def guarded(section: str, compute: Callable[[], T]) -> Optional[T]:
        try:
            return compute()
        except (IncomeGapError, ValueError) as exc:
            if cfg.strict:
                raise
            errors[section] = f"{type(exc).__name__}: {exc}"
            print(f"{LOG_TAG} Skipped {section}: {exc}", file=sys.stderr)
            return None

    aggregates = guarded(
        "aggregates",
        lambda: aggregate(records, cfg.grouping_fields, cfg.value_field),
    )
    intervals = guarded(
        "intervals",
        lambda: estimate_group_intervals(
            records,
            cfg.comparison_field,
            cfg.value_field,
            confidence_level=cfg.confidence_level,
            strict=cfg.strict,
        ),
    )
    comparison = guarded(
        "comparison",
        lambda: compare_groups(
            records,
            cfg.comparison_field,
            cfg.value_field,
            confidence_level=cfg.confidence_level,
        ),
    )
    regression = guarded(
        "regression",
        lambda: fit_regression(
            records,
            response=cfg.value_field,
            predictors=cfg.regression_predictors,
            log_response=cfg.log_response,
        ),
    )
    diagnostics = None
    if regression is not None:
        fit = regression
        diagnostics = guarded("diagnostics", lambda: compute_diagnostics(fit.model, fit.design))
        print(
            f"{LOG_TAG} Fitted {fit.model.response} on {len(fit.model.columns)} terms "
            f"(R²={fit.model.r_squared:.3f}, n={fit.model.n_observations})",
            file=sys.stderr,
        )

    return IncomeGapReport(
        config=cfg,
        cleaning=cleaning,
        aggregates=aggregates or [],
        intervals=intervals,
        comparison=comparison,
        regression=regression,
        diagnostics=diagnostics,
        errors=errors,
    )


def _finite_or_none(value: Any) -> Any:
    """Replace NaN/inf floats so the payload is strict JSON."""
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {key: _finite_or_none(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_finite_or_none(item) for item in value]
    return value


__all__ = ["IncomeGapReport", "run_income_gap_analysis"]
