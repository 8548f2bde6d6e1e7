"""Tests for value-label lookup."""

from statcalc.data.variable import VariableDef
from statcalc.stats.labels import map_value_label


def test_exact_key():
    var = VariableDef(name="sex", value_labels={1: "Male", 2: "Female"})
    assert map_value_label(var, 1) == "Male"


def test_numeric_equality_across_types():
    """A label keyed "1" matches 1.0 and vice versa."""
    var = VariableDef(name="sex", value_labels={"1": "Male", 2.0: "Female"})
    assert map_value_label(var, 1.0) == "Male"
    assert map_value_label(var, 2) == "Female"
    assert map_value_label(var, "2") == "Female"


def test_unlabelled_value_falls_back_to_text():
    var = VariableDef(name="sex", value_labels={1: "Male"})
    assert map_value_label(var, 3.0) == "3"
    assert map_value_label(var, "x") == "x"
    assert map_value_label(var, None) == ""


def test_unhashable_value():
    var = VariableDef(name="v", value_labels={"a": "A"})
    assert map_value_label(var, ["a"]) == "['a']"
