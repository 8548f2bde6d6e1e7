"""Tests for the frequency calculator."""

import math

import numpy as np
import pytest

from statcalc.stats.config import FrequencyOptions, PercentileMethod
from statcalc.stats.frequency import FrequencyCalculator


def test_string_summary_with_user_missing(string_variable):
    """Blank, None and the user-missing code all count as missing."""
    calc = FrequencyCalculator(string_variable, ["A", "", "MISSING", "B", None])
    result = calc.statistics()
    assert result.summary == {"valid": 2.0, "missing": 3.0, "total": 5.0}


def test_table_percentages(string_variable):
    calc = FrequencyCalculator(string_variable, ["A", "", "MISSING", "B", None])
    rows = calc.frequency_table()
    assert [r.value for r in rows] == ["A", "B"]
    assert rows[0].frequency == 1.0
    assert rows[0].percent == pytest.approx(20.0)
    assert rows[0].valid_percent == pytest.approx(50.0)
    assert rows[0].cumulative_percent == pytest.approx(50.0)
    assert rows[-1].cumulative_percent == pytest.approx(100.0)


def test_weighted_table(scale_variable):
    calc = FrequencyCalculator(scale_variable, [1, 2, 2, None], weights=[0.5, 1, 1, 2])
    rows = calc.frequency_table()
    assert [r.value for r in rows] == [1, 2]
    assert rows[1].frequency == pytest.approx(2.0)
    assert rows[1].valid_percent == pytest.approx(80.0)
    assert rows[1].percent == pytest.approx(200 / 4.5)


def test_cumulative_never_exceeds_100(scale_variable):
    data = [0.1 * i for i in range(30)]
    rows = FrequencyCalculator(scale_variable, data, weights=[1 / 3] * 30).frequency_table()
    assert all(r.cumulative_percent <= 100.0 for r in rows)
    assert rows[-1].cumulative_percent == pytest.approx(100.0)


def test_numeric_rows_sorted_numerically(scale_variable):
    rows = FrequencyCalculator(scale_variable, [10, 9, "2", 100]).frequency_table()
    assert [r.value for r in rows] == [2, 9, 10, 100]


def test_nominal_numeric_grouped_as_text():
    """Nominal numeric variables group by text but keep numeric display."""
    var = {"name": "code", "measure": "nominal"}
    rows = FrequencyCalculator(var, [2, 10, 2.0, "1"]).frequency_table()
    assert [r.value for r in rows] == [1, 2, 10]
    assert rows[1].frequency == 2.0


def test_non_finite_numbers_are_missing():
    """Infinities count as missing, never as a category."""
    var = {"name": "x", "measure": "nominal"}
    calc = FrequencyCalculator(var, [1, 2, math.inf, -np.inf, float("nan")])
    result = calc.statistics()
    assert result.summary == {"valid": 2.0, "missing": 3.0, "total": 5.0}
    assert [r.value for r in calc.frequency_table()] == [1, 2]


def test_nominal_numeric_decimal_forms_group_together():
    """Comma and dot spellings of one number form a single row."""
    var = {"name": "x", "measure": "nominal"}
    calc = FrequencyCalculator(var, [1.5, "1,5", "1.50", 2])
    rows = calc.frequency_table()
    assert [r.value for r in rows] == [1.5, 2]
    assert rows[0].frequency == 3.0
    assert calc.mode() == [1.5]


def test_value_labels_in_rows():
    var = {
        "name": "sex",
        "measure": "nominal",
        "valueLabels": [{"value": 1, "label": "Male"}, {"value": 2, "label": "Female"}],
    }
    rows = FrequencyCalculator(var, [1, 2, 2, 3]).frequency_table()
    assert [r.label for r in rows] == ["Male", "Female", "3"]


def test_date_rows_render_as_dates():
    var = {"name": "visit", "type": "DATE"}
    rows = FrequencyCalculator(var, ["02-01-2000", "01-01-2000", "02-01-2000"]).frequency_table()
    assert [r.value for r in rows] == ["01-01-2000", "02-01-2000"]
    assert rows[1].frequency == 2.0


def test_mode_ties():
    var = {"name": "g", "type": "STRING"}
    calc = FrequencyCalculator(var, ["b", "a", "c", "a", "b"])
    assert calc.mode() == ["a", "b"]


def test_requested_percentiles(scale_variable):
    options = FrequencyOptions(percentiles=(10,), quartiles=True, percentile_method=PercentileMethod.HAVERAGE)
    stats = FrequencyCalculator(scale_variable, [1, 2, 3, 4, 5], options=options).statistics().stats
    assert stats["percentile_25"] == pytest.approx(1.5)
    assert stats["percentile_50"] == pytest.approx(3.0)
    assert stats["percentile_75"] == pytest.approx(4.5)
    assert "percentile_10" in stats
    assert list(stats)[:3] == ["n", "valid", "missing"]


def test_cut_points(scale_variable):
    options = FrequencyOptions(cut_points=4)
    assert options.requested_percentiles() == (25.0, 50.0, 75.0)
    stats = FrequencyCalculator(scale_variable, [1, 2, 3, 4], options=options).statistics().stats
    assert stats["percentile_50"] == pytest.approx(2.0)


def test_get_percentile_string_is_none(string_variable):
    assert FrequencyCalculator(string_variable, ["A"]).get_percentile(50) is None


def test_display_frequency_off(scale_variable):
    options = FrequencyOptions(display_frequency=False)
    result = FrequencyCalculator(scale_variable, [1, 2], options=options).statistics()
    assert result.frequency_table is None
    assert "frequency_table" not in result.to_dict()


def test_extreme_values_tagged(scale_variable):
    data = [1, 2, 3, 4, 5, 6, 7, 8, 9, 100]
    extremes = FrequencyCalculator(scale_variable, data).get_extreme_values(count=2)
    assert extremes.highest[0].value == 100
    assert extremes.highest[0].kind == "extreme"
    assert extremes.highest[0].case_number == 10
    assert [c.value for c in extremes.lowest] == [1, 2]


def test_empty_input(scale_variable):
    result = FrequencyCalculator(scale_variable, [None, ""]).statistics()
    assert result.frequency_table == []
    assert result.stats["mode"] is None
    assert result.summary["valid"] == 0.0


def test_statistics_idempotent(string_variable):
    calc = FrequencyCalculator(string_variable, ["A", "B", "A"])
    assert calc.statistics().to_dict() == calc.statistics().to_dict()
