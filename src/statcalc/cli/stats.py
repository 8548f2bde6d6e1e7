"""CLI commands for the statistics calculators."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import typer

from statcalc.data.variable import VariableDef

logger = logging.getLogger(__name__)

stats_app = typer.Typer(
    name="stats",
    help="Weighted statistics over CSV and Parquet tables.",
    add_completion=False,
)


def _prepare(
    data: Path,
    names: List[str],
    variables: Optional[Path],
    weight_col: Optional[str],
) -> Tuple[object, Dict[str, VariableDef], Optional[list]]:
    """Load the table, resolve variable definitions and extract weights."""
    from statcalc.data.loaders import column_values, infer_variable, load_table, load_variable_defs

    columns = list(dict.fromkeys(names + ([weight_col] if weight_col else [])))
    df = load_table(data, columns=columns)
    defs = load_variable_defs(variables) if variables else {}
    resolved = {}
    for name in names:
        if name not in df.columns:
            raise ValueError(f"Column '{name}' not found in data. Available: {list(df.columns)}")
        resolved[name] = defs.get(name) or infer_variable(name, df[name])
    weights = column_values(df, weight_col) if weight_col else None
    return df, resolved, weights


def _emit_json(payload) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


def _fail(e: Exception) -> None:
    typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


@stats_app.command("descriptives")
def descriptives_cmd(
    data: Path = typer.Option(..., "--data", help="Path to data file (.csv, .parquet) or parquet directory."),
    var: List[str] = typer.Option(..., "--var", help="Variable to describe (repeatable)"),
    variables: Optional[Path] = typer.Option(None, "--variables", help="JSON file of variable definitions"),
    weight_col: Optional[str] = typer.Option(None, "--weight-col", help="Column of case weights"),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON"),
):
    """
    Descriptive statistics for one or more variables.

    Examples:
        statcalc stats descriptives --data survey.csv --var age --var income
        statcalc stats descriptives --data survey.parquet --var age --weight-col wt --json
    """
    from statcalc.data.loaders import column_values
    from statcalc.stats.descriptive import DescriptiveCalculator
    from statcalc.stats.reports import build_statistics_table

    try:
        df, defs, weights = _prepare(data, var, variables, weight_col)
        results = [
            DescriptiveCalculator(defs[name], column_values(df, name, defs[name]), weights).statistics()
            for name in var
        ]
    except (ValueError, FileNotFoundError, ImportError) as e:
        _fail(e)

    if as_json:
        _emit_json([r.to_dict() for r in results])
        return
    typer.echo(build_statistics_table(results, defs).to_string())


@stats_app.command("frequencies")
def frequencies_cmd(
    data: Path = typer.Option(..., "--data", help="Path to data file (.csv, .parquet) or parquet directory."),
    var: List[str] = typer.Option(..., "--var", help="Variable to tabulate (repeatable)"),
    variables: Optional[Path] = typer.Option(None, "--variables", help="JSON file of variable definitions"),
    weight_col: Optional[str] = typer.Option(None, "--weight-col", help="Column of case weights"),
    percentile: Optional[List[float]] = typer.Option(None, "--percentile", help="Extra percentile (repeatable)"),
    quartiles: bool = typer.Option(False, "--quartiles", help="Add the quartiles"),
    cut_points: Optional[int] = typer.Option(None, "--cut-points", help="Number of equal groups"),
    method: str = typer.Option("waverage", "--method", help="Percentile definition"),
    no_table: bool = typer.Option(False, "--no-table", help="Skip the frequency table"),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON"),
):
    """
    Frequency tables and statistics for one or more variables.

    Examples:
        statcalc stats frequencies --data survey.csv --var grade
        statcalc stats frequencies --data survey.csv --var age --quartiles --method haverage
    """
    from statcalc.data.loaders import column_values
    from statcalc.stats.config import FrequencyOptions, PercentileMethod
    from statcalc.stats.frequency import FrequencyCalculator
    from statcalc.stats.reports import build_frequency_table, build_statistics_table

    try:
        options = FrequencyOptions(
            display_frequency=not no_table,
            percentiles=tuple(percentile or ()),
            quartiles=quartiles,
            cut_points=cut_points,
            percentile_method=PercentileMethod.from_wire(method),
        )
        df, defs, weights = _prepare(data, var, variables, weight_col)
        results = [
            FrequencyCalculator(defs[name], column_values(df, name, defs[name]), weights, options).statistics()
            for name in var
        ]
    except (ValueError, FileNotFoundError, ImportError) as e:
        _fail(e)

    if as_json:
        _emit_json([r.to_dict() for r in results])
        return
    typer.echo(build_statistics_table(results, defs).to_string())
    for result in results:
        if result.frequency_table is not None:
            typer.echo(f"\n{result.variable}")
            typer.echo(build_frequency_table(result).to_string(index=False))


@stats_app.command("crosstabs")
def crosstabs_cmd(
    data: Path = typer.Option(..., "--data", help="Path to data file (.csv, .parquet) or parquet directory."),
    row: str = typer.Option(..., "--row", help="Row variable"),
    col: str = typer.Option(..., "--col", help="Column variable"),
    variables: Optional[Path] = typer.Option(None, "--variables", help="JSON file of variable definitions"),
    weight_col: Optional[str] = typer.Option(None, "--weight-col", help="Column of case weights"),
    cells: Optional[List[str]] = typer.Option(
        None, "--cells", help="Cell view: expected, row, column, total, residuals, standardized, adjusted"
    ),
    noninteger: str = typer.Option("noAdjustment", "--noninteger-weights", help="Fractional weight handling"),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON"),
):
    """
    Contingency table of two variables with chi-square tests and measures.

    Examples:
        statcalc stats crosstabs --data survey.csv --row sex --col smoker --cells expected --cells row
    """
    from statcalc.data.loaders import column_values
    from statcalc.stats.config import CellOptions, CrosstabsOptions, NonintegerWeights
    from statcalc.stats.crosstabs import CrosstabsCalculator
    from statcalc.stats.reports import build_chi_square_table, build_crosstab_table, build_measures_table

    try:
        cell_options = CellOptions.from_wire({name: True for name in (cells or [])})
        options = CrosstabsOptions(cells=cell_options, noninteger_weights=NonintegerWeights.from_wire(noninteger))
        df, defs, weights = _prepare(data, [row, col], variables, weight_col)
        row_values = column_values(df, row, defs[row])
        col_values = column_values(df, col, defs[col])
        records = [{row: r, col: c} for r, c in zip(row_values, col_values)]
        result = CrosstabsCalculator(defs[row], defs[col], records, weights, options).compute()
    except (ValueError, FileNotFoundError, ImportError) as e:
        _fail(e)

    if as_json:
        _emit_json(result.to_dict())
        return
    typer.echo(build_crosstab_table(result, cell_options).to_string())
    typer.echo("")
    typer.echo(build_chi_square_table(result).to_string(index=False))
    typer.echo("")
    typer.echo(build_measures_table(result).to_string(index=False))


@stats_app.command("examine")
def examine_cmd(
    data: Path = typer.Option(..., "--data", help="Path to data file (.csv, .parquet) or parquet directory."),
    var: List[str] = typer.Option(..., "--var", help="Variable to explore (repeatable)"),
    variables: Optional[Path] = typer.Option(None, "--variables", help="JSON file of variable definitions"),
    weight_col: Optional[str] = typer.Option(None, "--weight-col", help="Column of case weights"),
    method: str = typer.Option("haverage", "--method", help="Percentile definition"),
    confidence: float = typer.Option(95.0, "--confidence", help="Confidence level of the mean interval (%)"),
    outliers: bool = typer.Option(False, "--outliers", help="Report extreme values"),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON"),
):
    """
    Exploratory statistics: trimmed mean, M-estimators, hinges, extremes.

    Examples:
        statcalc stats examine --data survey.csv --var income --outliers
    """
    from statcalc.data.loaders import column_values
    from statcalc.stats.config import ExamineOptions, PercentileMethod
    from statcalc.stats.examine import ExamineCalculator
    from statcalc.stats.reports import build_examine_tables

    try:
        options = ExamineOptions(
            percentile_method=PercentileMethod.from_wire(method),
            confidence_level=confidence / 100.0 if confidence > 1 else confidence,
            show_outliers=outliers,
        )
        df, defs, weights = _prepare(data, var, variables, weight_col)
        case_numbers = list(range(1, len(df) + 1))
        results = [
            ExamineCalculator(
                defs[name], column_values(df, name, defs[name]), weights, options, case_numbers=case_numbers
            ).compute()
            for name in var
        ]
    except (ValueError, FileNotFoundError, ImportError) as e:
        _fail(e)

    if as_json:
        _emit_json([r.to_dict() for r in results])
        return
    for result in results:
        typer.secho(f"\n{result.variable}", bold=True)
        for name, table in build_examine_tables(result).items():
            typer.echo(f"\n[{name}]")
            typer.echo(table.to_string())


@stats_app.command("request")
def request_cmd(
    analysis: str = typer.Argument(..., help="descriptives, frequencies, crosstabs or examine"),
    request_file: Path = typer.Argument(..., help="JSON request file"),
):
    """
    Run a JSON request through the API and print the response envelope.

    Examples:
        statcalc stats request frequencies request.json
    """
    from statcalc.stats.api import handle_request

    if not request_file.exists():
        _fail(FileNotFoundError(f"Request file not found: {request_file}"))
    try:
        with open(request_file, "r") as f:
            payload = json.load(f)
    except json.JSONDecodeError as e:
        _fail(ValueError(f"Invalid JSON in {request_file}: {e}"))

    response = handle_request(analysis, payload)
    _emit_json(response)
    if not response.get("success"):
        raise typer.Exit(code=1)
