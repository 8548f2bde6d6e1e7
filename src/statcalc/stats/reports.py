"""Build tabular (pandas) reports from calculator results."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import pandas as pd

from statcalc.data.variable import VariableDef
from statcalc.stats.config import CellOptions
from statcalc.stats.dates import DEFAULT_CODEC, DateCodec
from statcalc.stats.results import CrosstabsResult, ExamineResult, StatisticsResult

# Statistics that are dates for a date variable (dispersion stays in seconds)
DATE_LOCATION_STATS = {"mean", "median", "minimum", "maximum", "trimmed_mean", "ci_lower", "ci_upper"}

CELL_VIEW_LABELS = {
    "observed": "Count",
    "expected": "Expected Count",
    "row": "% within row",
    "column": "% within column",
    "total": "% of Total",
    "residuals": "Residual",
    "standardized": "Standardized Residual",
    "adjusted": "Adjusted Residual",
}

_CELL_VIEW_KEYS = {
    "expected": "expected",
    "row": "row_percent",
    "column": "column_percent",
    "total": "total_percent",
    "residuals": "residual",
    "standardized": "standardized_residual",
    "adjusted": "adjusted_residual",
}


def _render(name: str, value, variable: Optional[VariableDef], codec: DateCodec):
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    if variable is not None and variable.is_date and value is not None:
        if name in DATE_LOCATION_STATS or name.startswith("percentile_"):
            return codec.from_ordinal(value)
    return value


def build_statistics_table(
    results: Sequence[StatisticsResult],
    variables: Optional[Dict[str, VariableDef]] = None,
    codec: DateCodec = DEFAULT_CODEC,
) -> pd.DataFrame:
    """Build the statistics panel of one or more variables.

    Returns:
        DataFrame indexed by statistic with one column per variable
    """
    variables = variables or {}
    columns = {}
    for result in results:
        var = variables.get(result.variable)
        columns[result.variable] = {
            name: _render(name, value, var, codec) for name, value in result.stats.items()
        }
    df = pd.DataFrame(columns)
    df.index.name = "statistic"
    return df


def build_frequency_table(result: StatisticsResult) -> pd.DataFrame:
    """Build a frequency table with valid rows, a missing row and a total row.

    Returns:
        DataFrame with columns: value, label, frequency, percent, valid_percent,
        cumulative_percent
    """
    columns = ["value", "label", "frequency", "percent", "valid_percent", "cumulative_percent"]
    rows = [row.to_dict() for row in (result.frequency_table or [])]
    summary = result.summary
    total = summary.get("total") or 0.0
    if summary.get("missing"):
        rows.append(
            {
                "value": "Missing",
                "label": "Missing",
                "frequency": summary["missing"],
                "percent": 100.0 * summary["missing"] / total if total else None,
                "valid_percent": None,
                "cumulative_percent": None,
            }
        )
    rows.append(
        {
            "value": "Total",
            "label": "Total",
            "frequency": total,
            "percent": 100.0 if total else None,
            "valid_percent": None,
            "cumulative_percent": None,
        }
    )
    return pd.DataFrame(rows, columns=columns)


def build_crosstab_table(result: CrosstabsResult, cells: Optional[CellOptions] = None) -> pd.DataFrame:
    """Build the contingency table with the selected cell views.

    Returns:
        DataFrame indexed by (row label, view) with one column per column
        category plus ``Total``
    """
    cells = cells or CellOptions()
    views = cells.selected() or ("observed",)
    col_labels = list(result.col_labels) + ["Total"]
    row_totals = result.row_totals
    col_totals = result.col_totals

    records = []
    index = []
    for i, row_label in enumerate(result.row_labels):
        for view in views:
            if view == "observed":
                values = list(result.observed[i]) + [row_totals[i]]
            else:
                grid = result.cells[_CELL_VIEW_KEYS[view]]
                values = list(grid[i]) + [_row_total_view(view, row_totals[i], result.total)]
            records.append(values)
            index.append((row_label, CELL_VIEW_LABELS[view]))

    records.append(list(col_totals) + [result.total])
    index.append(("Total", CELL_VIEW_LABELS["observed"]))

    return pd.DataFrame(
        records,
        index=pd.MultiIndex.from_tuples(index, names=[result.row, "cell"]),
        columns=pd.Index(col_labels, name=result.col),
    )


def _row_total_view(view: str, row_total: float, total: float):
    if view == "expected":
        return row_total
    if view == "row":
        return 100.0
    if view in ("column", "total"):
        return 100.0 * row_total / total if total else None
    return None


def build_chi_square_table(result: CrosstabsResult) -> pd.DataFrame:
    """Build the chi-square tests table.

    Returns:
        DataFrame with columns: test, value, df, p_value
    """
    rows = []
    for name, test in (("Pearson Chi-Square", result.chi_square), ("Likelihood Ratio", result.likelihood_ratio)):
        if test is None:
            rows.append({"test": name, "value": None, "df": None, "p_value": None})
        else:
            rows.append({"test": name, **test})
    rows.append({"test": "N of Valid Cases", "value": result.total, "df": None, "p_value": None})
    return pd.DataFrame(rows, columns=["test", "value", "df", "p_value"])


def build_measures_table(result: CrosstabsResult) -> pd.DataFrame:
    """Association measures as a two-column table."""
    return pd.DataFrame(
        [{"measure": name, "value": value} for name, value in result.measures.items()],
        columns=["measure", "value"],
    )


def build_examine_tables(result: ExamineResult) -> Dict[str, pd.DataFrame]:
    """Build the descriptives, percentiles, M-estimator and extreme-value tables.

    Returns:
        Mapping of table name to DataFrame
    """
    tables: Dict[str, pd.DataFrame] = {
        "descriptives": pd.DataFrame(
            [{"statistic": k, "value": _render(k, v, None, DEFAULT_CODEC)} for k, v in result.descriptives.items()],
            columns=["statistic", "value"],
        ),
    }
    if result.percentiles:
        tables["percentiles"] = pd.DataFrame([result.percentiles], index=[result.variable])
    if result.hinges:
        tables["hinges"] = pd.DataFrame([result.hinges], index=[result.variable])
    if result.m_estimators:
        tables["m_estimators"] = pd.DataFrame([result.m_estimators], index=[result.variable])
    if result.extreme_values is not None:
        rows: List[dict] = []
        for end, cases in (("highest", result.extreme_values.highest), ("lowest", result.extreme_values.lowest)):
            for rank, case in enumerate(cases, start=1):
                rows.append({"end": end, "rank": rank, **case.to_dict()})
        tables["extreme_values"] = pd.DataFrame(rows, columns=["end", "rank", "case_number", "value", "type"])
    return tables
