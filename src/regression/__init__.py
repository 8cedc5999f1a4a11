"""OLS regression with dummy-coded predictors and residual diagnostics."""

from .design import (
    CategoricalPredictor,
    DesignMatrix,
    NumericPredictor,
    Predictor,
    build_design_matrix,
    build_record_design,
    predictor_for_field,
)
from .diagnostics import OutlierFlags, RegressionDiagnostics, compute_diagnostics
from .ols import RegressionFit, RegressionModel, fit_ols, fit_regression

__all__ = [
    "CategoricalPredictor",
    "DesignMatrix",
    "NumericPredictor",
    "OutlierFlags",
    "Predictor",
    "RegressionDiagnostics",
    "RegressionFit",
    "RegressionModel",
    "build_design_matrix",
    "build_record_design",
    "compute_diagnostics",
    "fit_ols",
    "fit_regression",
    "predictor_for_field",
]
