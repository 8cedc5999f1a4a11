"""Tests for design-matrix construction, OLS fitting, and diagnostics."""

from __future__ import annotations

from itertools import product
from pathlib import Path
import sys
from typing import List

import numpy as np
import pytest
from scipy import stats

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.regression.design import (
    CategoricalPredictor,
    NumericPredictor,
    build_design_matrix,
    build_record_design,
)
from src.regression.diagnostics import compute_diagnostics
from src.regression.ols import fit_ols, fit_regression
from src.survey.codes import Education, Gender, MaritalStatus
from src.survey.errors import InsufficientSampleError, SingularDesignMatrixError
from src.survey.records import CleanedRecord


# ---------------------------------------------------------------------------
# Helpers


def _synthetic(n: int = 60, noise: float = 0.0, seed: int = 0):
    rng = np.random.default_rng(seed)
    x1 = rng.uniform(0.0, 10.0, size=n)
    cat = ["B" if idx % 3 == 0 else "A" for idx in range(n)]
    y = 3.0 + 2.0 * x1 - 5.0 * np.asarray([c == "B" for c in cat], dtype=float)
    y = y + rng.normal(0.0, noise, size=n) if noise else y
    data = {"x1": x1.tolist(), "cat": cat}
    predictors = [NumericPredictor("x1"), CategoricalPredictor("cat", ("A", "B"))]
    return build_design_matrix(data, predictors), y


def _survey_records(repeats: int = 4, seed: int = 42) -> List[CleanedRecord]:
    rng = np.random.default_rng(seed)
    records = []
    for _ in range(repeats):
        for gender, education, marital in product(Gender, Education, MaritalStatus):
            base = 30000.0 + 8000.0 * list(Education).index(education)
            gap = -6000.0 if gender is Gender.FEMALE else 0.0
            records.append(
                CleanedRecord(
                    income=float(base + gap + rng.normal(0.0, 2500.0)),
                    gender=gender,
                    education=education,
                    marital_status=marital,
                )
            )
    return records


# ---------------------------------------------------------------------------
# Design matrix


def test_design_matrix_columns_and_reference() -> None:
    design, _ = _synthetic(n=6)
    assert design.columns == ("intercept", "x1", "catB")
    assert design.reference_levels == {"cat": "A"}
    assert np.all(design.column("intercept") == 1.0)
    assert design.column("catB").tolist() == [1.0, 0.0, 0.0, 1.0, 0.0, 0.0]


def test_reference_follows_canonical_levels_not_data_order() -> None:
    data = {"cat": ["C", "B", "A", "B"]}
    design = build_design_matrix(data, [CategoricalPredictor("cat", ("A", "B", "C"))])
    assert design.columns == ("intercept", "catB", "catC")
    assert design.reference_levels["cat"] == "A"


def test_unobserved_levels_get_no_column() -> None:
    data = {"cat": ["C", "B", "C"]}
    design = build_design_matrix(data, [CategoricalPredictor("cat", ("A", "B", "C"))])
    assert design.columns == ("intercept", "catC")
    assert design.reference_levels["cat"] == "B"


def test_values_outside_declared_levels_are_rejected() -> None:
    with pytest.raises(ValueError):
        build_design_matrix({"cat": ["A", "Z"]}, [CategoricalPredictor("cat", ("A", "B"))])


def test_design_matrix_rejects_mismatched_lengths() -> None:
    with pytest.raises(ValueError):
        build_design_matrix(
            {"x1": [1.0, 2.0], "cat": ["A"]},
            [NumericPredictor("x1"), CategoricalPredictor("cat", ("A", "B"))],
        )


def test_record_design_uses_enum_labels() -> None:
    design = build_record_design(_survey_records(repeats=1), ["gender", "education"])
    assert design.columns == (
        "intercept",
        "genderFemale",
        "educationHighSchool",
        "educationAssociates",
        "educationBachelors",
        "educationGraduate",
    )
    assert design.reference_levels == {"gender": Gender.MALE, "education": Education.NO_DEGREE}


# ---------------------------------------------------------------------------
# OLS fit


def test_noise_free_fit_recovers_coefficients() -> None:
    design, y = _synthetic()
    model = fit_ols(design, y, response_name="y")
    assert model.coefficients["intercept"] == pytest.approx(3.0, abs=1e-9)
    assert model.coefficients["x1"] == pytest.approx(2.0, abs=1e-9)
    assert model.coefficients["catB"] == pytest.approx(-5.0, abs=1e-9)
    assert model.r_squared == pytest.approx(1.0)
    assert np.allclose(model.residuals, 0.0, atol=1e-9)


def test_fit_matches_normal_equations() -> None:
    design, y = _synthetic(n=80, noise=1.5, seed=9)
    model = fit_ols(design, y)
    X = design.matrix
    n, p = X.shape

    beta, *_ = np.linalg.lstsq(X, y, rcond=None)
    assert np.allclose(model.coefficient_vector(), beta)

    residuals = y - X @ beta
    sigma2 = residuals @ residuals / (n - p)
    std_errors = np.sqrt(sigma2 * np.diag(np.linalg.inv(X.T @ X)))
    for name, expected in zip(design.columns, std_errors):
        assert model.standard_errors[name] == pytest.approx(expected)
        t = model.coefficients[name] / expected
        assert model.t_statistics[name] == pytest.approx(t)
        assert model.p_values[name] == pytest.approx(2 * stats.t.sf(abs(t), n - p))

    sst = np.sum((y - y.mean()) ** 2)
    ssr = residuals @ residuals
    r2 = 1 - ssr / sst
    assert model.r_squared == pytest.approx(r2)
    assert model.adjusted_r_squared == pytest.approx(1 - (1 - r2) * (n - 1) / (n - p))
    assert model.residual_std_error == pytest.approx(np.sqrt(sigma2))
    f_stat = ((sst - ssr) / (p - 1)) / (ssr / (n - p))
    assert model.f_statistic == pytest.approx(f_stat)
    assert model.f_p_value == pytest.approx(stats.f.sf(f_stat, p - 1, n - p))
    assert (model.df_model, model.df_residual, model.n_observations) == (p - 1, n - p, n)


def test_collinear_numeric_predictors_are_singular() -> None:
    x1 = [1.0, 2.0, 3.0, 4.0, 5.0, 6.0]
    data = {"x1": x1, "x2": [2.0 * v for v in x1]}
    design = build_design_matrix(data, [NumericPredictor("x1"), NumericPredictor("x2")])
    with pytest.raises(SingularDesignMatrixError) as excinfo:
        fit_ols(design, [1.0, 3.0, 2.0, 5.0, 4.0, 6.0])
    assert excinfo.value.rank == 2
    assert len(excinfo.value.columns) == 1
    assert excinfo.value.columns[0] in {"x1", "x2"}


def test_aliased_categoricals_are_singular() -> None:
    levels = ("A", "B")
    pattern = ["A", "B", "B", "A", "B", "A", "A"]
    data = {"first": pattern, "second": list(pattern)}
    design = build_design_matrix(
        data,
        [CategoricalPredictor("first", levels), CategoricalPredictor("second", levels)],
    )
    with pytest.raises(SingularDesignMatrixError) as excinfo:
        fit_ols(design, np.arange(7, dtype=float))
    assert set(excinfo.value.columns) <= {"firstB", "secondB"}


def test_more_columns_than_rows_is_singular() -> None:
    data = {"cat": ["A", "B", "C"]}
    design = build_design_matrix(data, [CategoricalPredictor("cat", ("A", "B", "C"))])
    sub = type(design)(
        matrix=design.matrix[:2],
        columns=design.columns,
        predictors=design.predictors,
        reference_levels=design.reference_levels,
    )
    with pytest.raises(SingularDesignMatrixError):
        fit_ols(sub, [1.0, 2.0])


def test_exactly_determined_fit_has_no_residual_dof() -> None:
    design = build_design_matrix({"x1": [1.0, 2.0]}, [NumericPredictor("x1")])
    with pytest.raises(InsufficientSampleError):
        fit_ols(design, [3.0, 5.0])


def test_response_length_must_match_design() -> None:
    design, y = _synthetic(n=10)
    with pytest.raises(ValueError):
        fit_ols(design, y[:-1])


def test_fit_regression_on_survey_records_recovers_gap() -> None:
    records = _survey_records()
    fit = fit_regression(records, predictors=("gender", "education", "marital_status"))
    model = fit.model

    assert model.response == "income"
    assert model.columns == fit.design.columns
    assert model.n_observations == len(records)
    assert model.coefficients["genderFemale"] == pytest.approx(-6000.0, abs=1500.0)
    assert model.coefficients["educationGraduate"] == pytest.approx(32000.0, abs=2500.0)
    assert model.p_values["genderFemale"] < 0.001
    assert model.f_p_value < 0.001
    assert 0.0 < model.r_squared <= 1.0


def test_fit_regression_log_response() -> None:
    records = _survey_records(repeats=2)
    fit = fit_regression(records, predictors=("gender",), log_response=True)
    assert fit.model.response == "log(income)"
    male = np.mean([np.log(r.income) for r in records if r.gender is Gender.MALE])
    female = np.mean([np.log(r.income) for r in records if r.gender is Gender.FEMALE])
    assert fit.model.coefficients["intercept"] == pytest.approx(male)
    assert fit.model.coefficients["genderFemale"] == pytest.approx(female - male)


def test_fit_regression_rejects_response_as_predictor() -> None:
    with pytest.raises(ValueError):
        fit_regression(_survey_records(repeats=1), predictors=("income",))


# ---------------------------------------------------------------------------
# Diagnostics


def test_leverage_sums_to_parameter_count() -> None:
    design, y = _synthetic(n=50, noise=1.0, seed=4)
    model = fit_ols(design, y)
    diagnostics = compute_diagnostics(model, design)

    assert diagnostics.leverage.sum() == pytest.approx(design.n_columns)
    assert np.all((diagnostics.leverage > 0) & (diagnostics.leverage < 1))
    X = design.matrix
    hat = X @ np.linalg.inv(X.T @ X) @ X.T
    assert np.allclose(diagnostics.leverage, np.diag(hat))


def test_residuals_are_orthogonal_to_design_columns() -> None:
    fit = fit_regression(_survey_records(repeats=2))
    diagnostics = compute_diagnostics(fit.model, fit.design)
    projections = fit.design.matrix.T @ diagnostics.residuals
    assert np.allclose(projections, 0.0, atol=1e-6 * np.abs(diagnostics.residuals).sum())


def test_standardized_residuals_formula() -> None:
    design, y = _synthetic(n=30, noise=2.0, seed=8)
    model = fit_ols(design, y)
    diagnostics = compute_diagnostics(model, design)
    expected = diagnostics.residuals / (model.residual_std_error * np.sqrt(1 - diagnostics.leverage))
    assert np.allclose(diagnostics.standardized_residuals, expected)
    assert np.allclose(diagnostics.fitted_values + diagnostics.residuals, y)


def test_flag_outliers_finds_planted_point() -> None:
    design, y = _synthetic(n=40, noise=0.5, seed=12)
    y = y.copy()
    y[7] += 25.0
    diagnostics = compute_diagnostics(fit_ols(design, y), design)
    flags = diagnostics.flag_outliers(threshold=3.0)
    assert 7 in flags.large_residuals
    assert flags.leverage_threshold == pytest.approx(2 * 3 / 40)


def test_diagnostics_reject_mismatched_design() -> None:
    design, y = _synthetic(n=20, noise=1.0)
    model = fit_ols(design, y)
    other = build_design_matrix({"x1": list(range(20))}, [NumericPredictor("x1")])
    with pytest.raises(ValueError):
        compute_diagnostics(model, other)
