"""Ordinary least squares via column-pivoted QR."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Sequence, Tuple

import numpy as np
from scipy import linalg, stats

from ..survey.errors import InsufficientSampleError, SingularDesignMatrixError
from ..survey.records import CleanedRecord
from .design import DesignMatrix, build_record_design, ensure_numeric_column


@dataclass(frozen=True)
class RegressionModel:
    """Coefficient table and fit statistics for one OLS fit."""

    response: str
    columns: Tuple[str, ...]
    coefficients: Mapping[str, float]
    standard_errors: Mapping[str, float]
    t_statistics: Mapping[str, float]
    p_values: Mapping[str, float]
    residual_std_error: float
    r_squared: float
    adjusted_r_squared: float
    f_statistic: float
    f_p_value: float
    df_model: int
    df_residual: int
    n_observations: int
    fitted_values: np.ndarray
    residuals: np.ndarray

    @property
    def n_parameters(self) -> int:
        return len(self.columns)

    def coefficient_vector(self) -> np.ndarray:
        return np.asarray([self.coefficients[name] for name in self.columns], dtype=np.float64)

    def to_dict(self) -> dict[str, Any]:
        return {
            "response": self.response,
            "coefficients": [
                {
                    "term": name,
                    "estimate": self.coefficients[name],
                    "std_error": self.standard_errors[name],
                    "t_statistic": self.t_statistics[name],
                    "p_value": self.p_values[name],
                }
                for name in self.columns
            ],
            "residual_std_error": self.residual_std_error,
            "r_squared": self.r_squared,
            "adjusted_r_squared": self.adjusted_r_squared,
            "f_statistic": self.f_statistic,
            "f_p_value": self.f_p_value,
            "df_model": self.df_model,
            "df_residual": self.df_residual,
            "n_observations": self.n_observations,
        }


@dataclass(frozen=True)
class RegressionFit:
    """A fitted model together with the design it was estimated on."""

    model: RegressionModel
    design: DesignMatrix


def fit_ols(
    design: DesignMatrix,
    response: Sequence[float] | np.ndarray,
    response_name: str = "response",
) -> RegressionModel:
    """Least-squares fit of `response` on `design`.

    Raises:
        SingularDesignMatrixError: when the design is not full column rank.
        InsufficientSampleError: when no residual degrees of freedom remain.
    """
    X = design.matrix
    y = ensure_numeric_column(response, name=response_name)
    n, p = X.shape
    if y.shape[0] != n:
        raise ValueError(f"{response_name} has {y.shape[0]} values but the design has {n} rows.")

    q, r, perm = linalg.qr(X, mode="economic", pivoting=True)
    rank = _numerical_rank(r, n, p)
    if rank < p:
        aliased = [design.columns[idx] for idx in perm[rank:]]
        raise SingularDesignMatrixError(aliased, rank=rank, n_columns=p)
    if n <= p:
        raise InsufficientSampleError(
            "OLS needs residual degrees of freedom",
            required=p + 1,
            observed=n,
        )

    beta = np.empty(p, dtype=np.float64)
    beta[perm] = linalg.solve_triangular(r, q.T @ y)

    r_inv = linalg.solve_triangular(r, np.eye(p))
    gram_inv = np.empty((p, p), dtype=np.float64)
    gram_inv[np.ix_(perm, perm)] = r_inv @ r_inv.T

    fitted = X @ beta
    residuals = y - fitted
    df_residual = n - p
    df_model = p - 1
    ssr = float(residuals @ residuals)
    sst = float(np.sum((y - y.mean()) ** 2))
    sigma2 = ssr / df_residual

    with np.errstate(divide="ignore", invalid="ignore"):
        std_errors = np.sqrt(sigma2 * np.diag(gram_inv))
        t_stats = beta / std_errors
        r_squared = 1.0 - ssr / sst if sst > 0 else float("nan")
        adjusted = 1.0 - (1.0 - r_squared) * (n - 1) / df_residual
        if df_model > 0:
            f_stat = float(np.divide((sst - ssr) / df_model, sigma2))
            f_p = float(stats.f.sf(f_stat, df_model, df_residual))
        else:
            f_stat, f_p = float("nan"), float("nan")
    p_vals = 2.0 * stats.t.sf(np.abs(t_stats), df_residual)

    fitted.setflags(write=False)
    residuals.setflags(write=False)
    columns = design.columns
    return RegressionModel(
        response=response_name,
        columns=columns,
        coefficients=_named(columns, beta),
        standard_errors=_named(columns, std_errors),
        t_statistics=_named(columns, t_stats),
        p_values=_named(columns, p_vals),
        residual_std_error=float(np.sqrt(sigma2)),
        r_squared=float(r_squared),
        adjusted_r_squared=float(adjusted),
        f_statistic=f_stat,
        f_p_value=f_p,
        df_model=df_model,
        df_residual=df_residual,
        n_observations=n,
        fitted_values=fitted,
        residuals=residuals,
    )


def fit_regression(
    records: Sequence[CleanedRecord],
    response: str = "income",
    predictors: Sequence[str] = ("gender", "education", "marital_status"),
    log_response: bool = False,
) -> RegressionFit:
    """Fit OLS of a record field on categorical/numeric record fields."""
    if response in predictors:
        raise ValueError(f"'{response}' cannot be both the response and a predictor.")
    design = build_record_design(records, predictors)
    y = np.asarray([record.value(response) for record in records], dtype=np.float64)
    name = response
    if log_response:
        y = np.log(y)
        name = f"log({response})"
    return RegressionFit(model=fit_ols(design, y, response_name=name), design=design)


def _numerical_rank(r: np.ndarray, n: int, p: int) -> int:
    diag = np.abs(np.diag(r))
    if diag.size == 0 or diag[0] == 0.0:
        return 0
    tol = diag[0] * max(n, p) * np.finfo(np.float64).eps
    return int(np.sum(diag > tol))


def _named(columns: Sequence[str], values: np.ndarray) -> Dict[str, float]:
    return {name: float(value) for name, value in zip(columns, values)}


__all__ = ["RegressionFit", "RegressionModel", "fit_ols", "fit_regression"]
