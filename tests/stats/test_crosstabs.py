"""Tests for the crosstabs calculator and table statistics."""

import numpy as np
import pytest

from statcalc.stats.config import CrosstabsOptions, NonintegerWeights
from statcalc.stats.crosstabs import (
    CrosstabsCalculator,
    adjust_weight,
    association_measures,
    cell_views,
    concordance,
    likelihood_ratio,
    pearson_chi_square,
)

ROW = {"name": "a"}
COL = {"name": "b"}


def test_two_by_two_chi_square(two_by_two_records):
    result = CrosstabsCalculator(ROW, COL, two_by_two_records).compute()
    assert result.observed.tolist() == [[3.0, 1.0], [1.0, 3.0]]
    assert result.total == pytest.approx(8.0)
    assert result.row_totals.tolist() == [4.0, 4.0]
    assert result.col_totals.tolist() == [4.0, 4.0]
    assert result.chi_square["value"] == pytest.approx(2.0)
    assert result.chi_square["df"] == 1
    assert 0.0 < result.chi_square["p_value"] < 1.0


def test_two_by_two_measures(two_by_two_records):
    measures = CrosstabsCalculator(ROW, COL, two_by_two_records).compute().measures
    assert measures["phi"] == pytest.approx(0.5)
    assert measures["cramers_v"] == pytest.approx(0.5)
    assert measures["gamma"] == pytest.approx(0.8)
    assert measures["pearson_r"] == pytest.approx(0.5)
    assert measures["kappa"] == pytest.approx(0.5)


def test_round_cell_rounds_each_case():
    """Each case weight is rounded before it enters its cell."""
    records = [{"a": 1, "b": 1}, {"a": 1, "b": 1}, {"a": 2, "b": 2}]
    weights = [0.6, 0.6, 0.6]
    options = CrosstabsOptions(noninteger_weights=NonintegerWeights.ROUND_CELL)
    result = CrosstabsCalculator(ROW, COL, records, weights, options).compute()
    assert result.observed.tolist() == [[2.0, 0.0], [0.0, 1.0]]
    assert result.total == 3.0


def test_no_adjustment_keeps_fractions():
    records = [{"a": 1, "b": 1}, {"a": 1, "b": 1}, {"a": 2, "b": 2}]
    result = CrosstabsCalculator(ROW, COL, records, [0.6, 0.6, 0.6]).compute()
    assert result.total == pytest.approx(1.8)


def test_truncate_case_drops_light_cases():
    """Per-case truncation turns weights below one into exclusions."""
    records = [{"a": 1, "b": 1}, {"a": 2, "b": 2}, {"a": 2, "b": 1}]
    options = CrosstabsOptions(noninteger_weights=NonintegerWeights.TRUNCATE_CASE)
    result = CrosstabsCalculator(ROW, COL, records, [1.7, 0.4, 2.2], options).compute()
    assert result.total == pytest.approx(3.0)
    assert result.summary["total"] == pytest.approx(3.0)


def test_adjust_weight():
    assert adjust_weight(1.5, NonintegerWeights.ROUND_CELL) == 2.0
    assert adjust_weight(1.5, NonintegerWeights.TRUNCATE_CELL) == 1.0
    assert adjust_weight(1.5, NonintegerWeights.NO_ADJUSTMENT) == 1.5


def test_missing_on_either_side_excludes_case():
    records = [
        {"a": 1, "b": 1},
        {"a": None, "b": 2},
        {"a": 2, "b": ""},
        {"a": 9, "b": 1},
        {"a": 2, "b": 2},
    ]
    row = {"name": "a", "missing": {"values": [9]}}
    result = CrosstabsCalculator(row, COL, records).compute()
    assert result.summary == {"rows": 2, "cols": 2, "valid": 2.0, "missing": 3.0, "total": 5.0}
    assert result.row_categories == [1, 2]


def test_infinite_values_are_missing():
    """An infinity is excluded and does not turn the side into text."""
    records = [{"a": 1, "b": 1}, {"a": 2, "b": 2}, {"a": float("inf"), "b": 1}]
    result = CrosstabsCalculator(ROW, COL, records).compute()
    assert result.row_categories == [1, 2]
    assert result.summary["valid"] == 2.0
    assert result.summary["missing"] == 1.0


def test_text_side_groups_decimal_forms():
    records = [{"a": 1.5, "b": 1}, {"a": "1,5", "b": 1}, {"a": "x", "b": 2}]
    result = CrosstabsCalculator(ROW, COL, records).compute()
    assert result.row_categories == ["1.5", "x"]
    assert result.observed.tolist() == [[2.0, 0.0], [0.0, 1.0]]


def test_string_categories_natural_order():
    records = [{"a": "b", "b": "x"}, {"a": "a", "b": "10"}, {"a": "a", "b": "9"}]
    row = {"name": "a", "type": "STRING"}
    col = {"name": "b", "type": "STRING"}
    result = CrosstabsCalculator(row, col, records).compute()
    assert result.row_categories == ["a", "b"]
    assert result.col_categories == ["9", "10", "x"]


def test_date_categories_render_as_dates():
    records = [{"a": "02-01-2000", "b": 1}, {"a": "01-01-2000", "b": 1}]
    result = CrosstabsCalculator(ROW, COL, records).compute()
    assert result.row_categories == ["01-01-2000", "02-01-2000"]


def test_value_labels():
    row = {"name": "a", "valueLabels": {"1": "Yes", "2": "No"}}
    records = [{"a": 1, "b": 1}, {"a": 2, "b": 1}]
    result = CrosstabsCalculator(row, COL, records).compute()
    assert result.row_labels == ["Yes", "No"]


def test_single_row_has_no_chi_square():
    records = [{"a": 1, "b": 1}, {"a": 1, "b": 2}]
    result = CrosstabsCalculator(ROW, COL, records).compute()
    assert result.chi_square is None
    assert result.likelihood_ratio is None
    assert all(value is None for value in result.measures.values())


def test_empty_table():
    result = CrosstabsCalculator(ROW, COL, [{"a": None, "b": None}]).compute()
    assert result.observed.shape == (0, 0)
    assert result.total == 0.0
    assert result.to_dict()["observed"] == []


def test_records_must_be_objects():
    with pytest.raises(ValueError, match="must be objects"):
        CrosstabsCalculator(ROW, COL, [[1, 2]]).compute()


def test_cell_views_percentages():
    views = cell_views(np.array([[3.0, 1.0], [1.0, 3.0]]))
    assert views["expected"].tolist() == [[2.0, 2.0], [2.0, 2.0]]
    assert views["row_percent"][0].tolist() == [75.0, 25.0]
    assert views["column_percent"][:, 0].tolist() == [75.0, 25.0]
    assert views["total_percent"][0, 0] == pytest.approx(37.5)
    assert views["residual"][0, 0] == pytest.approx(1.0)
    assert views["standardized_residual"][0, 0] == pytest.approx(1 / np.sqrt(2))
    assert views["adjusted_residual"][0, 0] == pytest.approx(np.sqrt(2))


def test_likelihood_ratio_independent_table_is_zero():
    assert likelihood_ratio(np.array([[2.0, 2.0], [2.0, 2.0]]))["value"] == pytest.approx(0.0)
    assert pearson_chi_square(np.array([[2.0, 2.0], [2.0, 2.0]]))["p_value"] == pytest.approx(1.0)


def test_concordance_perfect_agreement():
    P, Q = concordance(np.array([[2.0, 0.0], [0.0, 2.0]]))
    assert P == 4.0
    assert Q == 0.0
    measures = association_measures(np.array([[2.0, 0.0], [0.0, 2.0]]), square=True)
    assert measures["gamma"] == pytest.approx(1.0)
    assert measures["kendall_tau_b"] == pytest.approx(1.0)
    assert measures["kappa"] == pytest.approx(1.0)


def test_compute_idempotent(two_by_two_records):
    calc = CrosstabsCalculator(ROW, COL, two_by_two_records)
    assert calc.compute().to_dict() == calc.compute().to_dict()
