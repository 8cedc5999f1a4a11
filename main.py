import json
import sys
from pathlib import Path
from typing import List, Optional

import typer

from src.analysis import AnalysisConfig
from src.analysis.config import DEFAULT_GROUPING, DEFAULT_PREDICTORS
from src.pipelines import run_income_gap_analysis
from src.survey import IncomeGapError, RawFieldNames, load_raw_records
from src.survey.codes import CODE_TABLES

app = typer.Typer()


@app.command("summarize")
def summarize(
    csv_path: Path = typer.Argument(
        ...,
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        help="CSV file with one survey respondent per row.",
    ),
    group_by: List[str] = typer.Option(
        list(DEFAULT_GROUPING),
        "--group-by",
        help="Categorical field(s) to aggregate by (repeat up to twice).",
        show_default=True,
    ),
    compare: str = typer.Option("gender", "--compare", help="Two-level field for the t-test and group intervals."),
    predictor: List[str] = typer.Option(
        list(DEFAULT_PREDICTORS),
        "--predictor",
        help="Regression predictor field (repeatable).",
        show_default=True,
    ),
    confidence_level: float = typer.Option(0.95, "--confidence-level", help="Confidence level in (0, 1)."),
    alpha: float = typer.Option(0.05, "--alpha", help="Significance level for the t-test."),
    log_income: bool = typer.Option(False, "--log-income", help="Regress log(income) instead of income."),
    topcode_threshold: Optional[float] = typer.Option(
        None,
        "--topcode-threshold",
        help="Incomes above this value are handled by --topcode-policy.",
    ),
    topcode_policy: Optional[str] = typer.Option(
        None,
        "--topcode-policy",
        help="How to treat topcoded incomes: exclude or clip.",
    ),
    income_column: str = typer.Option("income", "--income-column", help="Raw column holding total income."),
    gender_column: str = typer.Option("gender", "--gender-column", help="Raw column holding the gender code."),
    education_column: str = typer.Option(
        "education",
        "--education-column",
        help="Raw column holding the education code.",
    ),
    marital_column: str = typer.Option(
        "marital_status",
        "--marital-column",
        help="Raw column holding the marital status code.",
    ),
    strict: bool = typer.Option(False, "--strict", help="Abort on the first failed computation."),
    diagnostics: bool = typer.Option(False, "--diagnostics", help="Include per-row regression diagnostics."),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        dir_okay=False,
        writable=True,
        help="Write the JSON report here instead of stdout.",
    ),
) -> None:
    """
    Clean a survey extract and report income gaps across subgroups as JSON.
    """
    raw_fields = RawFieldNames(
        income=income_column,
        gender=gender_column,
        education=education_column,
        marital_status=marital_column,
    )
    try:
        config = AnalysisConfig.from_flags(
            confidence_level=confidence_level,
            alpha=alpha,
            group_by=group_by,
            compare=compare,
            predictors=predictor,
            log_income=log_income,
            topcode_threshold=topcode_threshold,
            topcode_policy=topcode_policy,
            raw_fields=raw_fields,
            strict=strict,
        )
        raw_records = list(load_raw_records(csv_path, raw_fields))
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    print(f"[income-gap] Loaded {len(raw_records)} rows from {csv_path}", file=sys.stderr)
    try:
        report = run_income_gap_analysis(raw_records, config)
    except (IncomeGapError, ValueError) as exc:
        print(f"[income-gap] Analysis failed: {exc}", file=sys.stderr)
        raise typer.Exit(code=1) from exc

    payload = json.dumps(report.to_dict(include_diagnostics=diagnostics), indent=2)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(payload + "\n", encoding="utf-8")
        print(f"[income-gap] Report written to {output}", file=sys.stderr)
    else:
        print(payload)


@app.command("codes")
def codes() -> None:
    """
    Print the raw code tables used when recoding survey fields.
    """
    for field, table in CODE_TABLES.items():
        print(f"{field}:")
        for code, member in table.items():
            print(f"  {code} -> {member.value}")


if __name__ == "__main__":
    app()
