"""Pipeline orchestration for the income-gap analysis."""

from .income_gap import IncomeGapReport, run_income_gap_analysis

__all__ = ["IncomeGapReport", "run_income_gap_analysis"]
