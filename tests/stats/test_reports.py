"""Tests for tabular report builders."""

import pytest

from statcalc.data.variable import VariableDef, VariableType
from statcalc.stats.config import CellOptions, ExamineOptions
from statcalc.stats.crosstabs import CrosstabsCalculator
from statcalc.stats.descriptive import DescriptiveCalculator
from statcalc.stats.examine import ExamineCalculator
from statcalc.stats.frequency import FrequencyCalculator
from statcalc.stats.reports import (
    build_chi_square_table,
    build_crosstab_table,
    build_examine_tables,
    build_frequency_table,
    build_measures_table,
    build_statistics_table,
)


def test_statistics_table_one_column_per_variable():
    a = DescriptiveCalculator({"name": "a"}, [1, 2, 3]).statistics()
    b = DescriptiveCalculator({"name": "b"}, [4, 5, 6]).statistics()
    df = build_statistics_table([a, b])
    assert list(df.columns) == ["a", "b"]
    assert df.loc["mean", "b"] == pytest.approx(5.0)


def test_statistics_table_renders_dates():
    var = VariableDef(name="d", type=VariableType.DATE)
    result = DescriptiveCalculator(var, ["01-01-2000", "03-01-2000"]).statistics()
    df = build_statistics_table([result], {"d": var})
    assert df.loc["mean", "d"] == "02-01-2000"
    assert df.loc["range", "d"] == pytest.approx(2 * 86400)


def test_frequency_table_has_missing_and_total_rows(string_variable):
    result = FrequencyCalculator(string_variable, ["A", "", "MISSING", "B", None]).statistics()
    df = build_frequency_table(result)
    assert list(df["value"]) == ["A", "B", "Missing", "Total"]
    assert df.iloc[2]["frequency"] == 3.0
    assert df.iloc[3]["frequency"] == 5.0
    assert df.iloc[3]["percent"] == 100.0


def test_crosstab_table_views(two_by_two_records):
    result = CrosstabsCalculator({"name": "a"}, {"name": "b"}, two_by_two_records).compute()
    df = build_crosstab_table(result, CellOptions(expected=True, row=True))
    assert df.shape == (7, 3)
    assert df.loc[("1", "Count")].tolist() == [3.0, 1.0, 4.0]
    assert df.loc[("1", "Expected Count")].tolist() == [2.0, 2.0, 4.0]
    assert df.loc[("1", "% within row")].tolist() == [75.0, 25.0, 100.0]
    assert df.loc[("Total", "Count")].tolist() == [4.0, 4.0, 8.0]


def test_chi_square_and_measures_tables(two_by_two_records):
    result = CrosstabsCalculator({"name": "a"}, {"name": "b"}, two_by_two_records).compute()
    chi = build_chi_square_table(result)
    assert list(chi["test"]) == ["Pearson Chi-Square", "Likelihood Ratio", "N of Valid Cases"]
    assert chi.iloc[0]["value"] == pytest.approx(2.0)
    measures = build_measures_table(result)
    assert "phi" in set(measures["measure"])


def test_examine_tables(scale_variable):
    options = ExamineOptions(show_outliers=True)
    result = ExamineCalculator(scale_variable, [1, 2, 3, 4, 50], options=options).compute()
    tables = build_examine_tables(result)
    assert set(tables) == {"descriptives", "percentiles", "hinges", "m_estimators", "extreme_values"}
    assert len(tables["extreme_values"]) == 10
    assert tables["extreme_values"].iloc[0]["type"] == "extreme"
