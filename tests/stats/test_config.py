"""Tests for calculator option parsing."""

import pytest

from statcalc.stats.config import (
    CellOptions,
    CrosstabsOptions,
    DescriptiveOptions,
    ExamineOptions,
    FrequencyOptions,
    NonintegerWeights,
    PercentileMethod,
)


def test_frequency_defaults():
    options = FrequencyOptions.from_wire(None)
    assert options.display_frequency is True
    assert options.percentile_method == PercentileMethod.WAVERAGE
    assert options.requested_percentiles() == ()


def test_frequency_from_wire():
    options = FrequencyOptions.from_wire(
        {"displayFrequency": False, "percentiles": [90, 10], "quartiles": True, "percentileMethod": "haverage"}
    )
    assert options.display_frequency is False
    assert options.requested_percentiles() == (10.0, 25.0, 50.0, 75.0, 90.0)
    assert options.percentile_method == PercentileMethod.HAVERAGE


def test_frequency_validation():
    with pytest.raises(ValueError, match="Percentiles must be in"):
        FrequencyOptions(percentiles=(120,))
    with pytest.raises(ValueError, match="cut_points"):
        FrequencyOptions(cut_points=1)


def test_unknown_keys_ignored():
    assert DescriptiveOptions.from_wire({"somethingElse": 1}) == DescriptiveOptions()


def test_cells_flat_and_nested():
    flat = CellOptions.from_wire({"expected": True, "row": True})
    nested = CellOptions.from_wire(
        {"counts": {"expected": True}, "percentages": {"row": True}, "residuals": {"adjustedStandardized": True}}
    )
    assert flat.selected() == ("observed", "expected", "row")
    assert nested.selected() == ("observed", "expected", "row", "adjusted")


def test_noninteger_weights_location():
    """The mode may sit at the top level or inside ``cells``."""
    top = CrosstabsOptions.from_wire({"nonintegerWeights": "roundCell"})
    inside = CrosstabsOptions.from_wire({"cells": {"nonintegerWeights": "truncateCase"}})
    assert top.noninteger_weights == NonintegerWeights.ROUND_CELL
    assert inside.noninteger_weights == NonintegerWeights.TRUNCATE_CASE
    assert CrosstabsOptions.from_wire({}).noninteger_weights == NonintegerWeights.NO_ADJUSTMENT


def test_noninteger_weights_flags():
    assert NonintegerWeights.ROUND_CELL.per_cell
    assert NonintegerWeights.ROUND_CELL.rounds
    assert NonintegerWeights.TRUNCATE_CASE.per_case
    assert not NonintegerWeights.TRUNCATE_CASE.rounds
    with pytest.raises(ValueError, match="nonintegerWeights"):
        NonintegerWeights.from_wire("roundTable")


def test_examine_confidence_percent_or_fraction():
    assert ExamineOptions.from_wire({"confidenceInterval": 90}).confidence_level == pytest.approx(0.9)
    assert ExamineOptions.from_wire({"confidenceInterval": 0.99}).confidence_level == pytest.approx(0.99)
    assert ExamineOptions.from_wire({"percentileMethod": "tukey_hinges"}).percentile_method == (
        PercentileMethod.TUKEY_HINGES
    )
