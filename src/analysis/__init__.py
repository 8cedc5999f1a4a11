"""Descriptive and inferential statistics over cleaned survey records."""

from .aggregation import AggregateResult, aggregate, aggregates_to_frame
from .config import AnalysisConfig
from .grouping import GroupKey
from .hypothesis import HypothesisTestResult, compare_groups, two_sample_t_test
from .intervals import ConfidenceInterval, GroupIntervals, estimate_group_intervals, estimate_interval

__all__ = [
    "AggregateResult",
    "AnalysisConfig",
    "ConfidenceInterval",
    "GroupIntervals",
    "GroupKey",
    "HypothesisTestResult",
    "aggregate",
    "aggregates_to_frame",
    "compare_groups",
    "estimate_group_intervals",
    "estimate_interval",
    "two_sample_t_test",
]
