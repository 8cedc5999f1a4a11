"""Residual and leverage diagnostics for fitted OLS models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Tuple

import numpy as np

from .design import DesignMatrix
from .ols import RegressionModel


@dataclass(frozen=True)
class OutlierFlags:
    """Row indices flagged by residual size or leverage."""

    large_residuals: Tuple[int, ...]
    high_leverage: Tuple[int, ...]
    residual_threshold: float
    leverage_threshold: float


@dataclass(frozen=True)
class RegressionDiagnostics:
    """Per-observation diagnostics, indexed like the fitted records."""

    fitted_values: np.ndarray
    residuals: np.ndarray
    leverage: np.ndarray
    standardized_residuals: np.ndarray
    n_parameters: int

    @property
    def n_observations(self) -> int:
        return int(self.residuals.shape[0])

    def flag_outliers(self, threshold: float = 2.0) -> OutlierFlags:
        """Flag |standardized residual| > `threshold` and leverage > 2p/n."""
        if threshold <= 0:
            raise ValueError("threshold must be positive.")
        leverage_cutoff = 2.0 * self.n_parameters / self.n_observations
        with np.errstate(invalid="ignore"):
            large = np.flatnonzero(np.abs(self.standardized_residuals) > threshold)
        high = np.flatnonzero(self.leverage > leverage_cutoff)
        return OutlierFlags(
            large_residuals=tuple(int(idx) for idx in large),
            high_leverage=tuple(int(idx) for idx in high),
            residual_threshold=float(threshold),
            leverage_threshold=float(leverage_cutoff),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "fitted_values": self.fitted_values.tolist(),
            "residuals": self.residuals.tolist(),
            "leverage": self.leverage.tolist(),
            "standardized_residuals": [None if np.isnan(v) else float(v) for v in self.standardized_residuals],
        }


def compute_diagnostics(model: RegressionModel, design: DesignMatrix) -> RegressionDiagnostics:
    """Leverage and internally standardized residuals for `model`.

    Leverage is the diagonal of the hat matrix, taken as the squared row norms
    of Q from a thin QR of the design.
    """
    if tuple(design.columns) != tuple(model.columns):
        raise ValueError("Design columns do not match the fitted model.")
    if design.n_observations != model.n_observations:
        raise ValueError(
            f"Design has {design.n_observations} rows but the model was fit on {model.n_observations}."
        )

    q, _ = np.linalg.qr(design.matrix, mode="reduced")
    leverage = np.sum(q * q, axis=1)
    residuals = np.asarray(model.residuals, dtype=np.float64)
    scale = model.residual_std_error * np.sqrt(np.clip(1.0 - leverage, 0.0, None))
    with np.errstate(divide="ignore", invalid="ignore"):
        standardized = residuals / scale

    return RegressionDiagnostics(
        fitted_values=np.asarray(model.fitted_values, dtype=np.float64),
        residuals=residuals,
        leverage=leverage,
        standardized_residuals=standardized,
        n_parameters=model.n_parameters,
    )


__all__ = ["OutlierFlags", "RegressionDiagnostics", "compute_diagnostics"]
