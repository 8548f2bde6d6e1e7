"""Tests for missing-value classification."""

import numpy as np
import pytest

from statcalc.data.variable import NO_MISSING, DiscreteMissing, RangeMissing
from statcalc.stats.missing import canonical_text, is_missing, is_system_missing, matches_code


def test_system_missing_values():
    """None, NaN, infinities and blank strings are system-missing."""
    assert is_system_missing(None)
    assert is_system_missing(float("nan"))
    assert is_system_missing(np.nan)
    assert is_system_missing("")
    assert is_system_missing("   ")
    assert is_system_missing(float("inf"))
    assert is_system_missing(-np.inf)
    assert not is_system_missing(0)
    assert not is_system_missing(True)
    assert not is_system_missing("0")


def test_canonical_text():
    assert canonical_text(3.0) == "3"
    assert canonical_text(3.5) == "3.5"
    assert canonical_text(" x ") == "x"


def test_no_spec_only_system_missing():
    assert not is_missing(99)
    assert not is_missing(99, NO_MISSING)
    assert is_missing(None, NO_MISSING)


def test_discrete_codes_match_text_and_numbers():
    """Codes match by canonical text, and numerically for numeric variables."""
    spec = DiscreteMissing((99, "NA"))
    assert is_missing(99, spec)
    assert is_missing("99", spec)
    assert is_missing(99.0, spec)
    assert is_missing("NA", spec)
    assert not is_missing(98, spec)


def test_discrete_codes_string_variable():
    """String variables compare codes as text only."""
    spec = DiscreteMissing(("MISSING",))
    assert is_missing("MISSING", spec, numeric_type=False)
    assert is_missing(" MISSING ", spec, numeric_type=False)
    assert not is_missing("missing", spec, numeric_type=False)
    assert not is_missing("99.0", DiscreteMissing(("99",)), numeric_type=False)


def test_range_with_extra_code():
    spec = RangeMissing(90, 99, extra=-1)
    assert is_missing(95, spec)
    assert is_missing(90, spec)
    assert is_missing(99, spec)
    assert is_missing(-1, spec)
    assert not is_missing(89.9, spec)
    assert not is_missing(100, spec)


def test_range_ignored_for_strings():
    """Range codes never apply to string variables."""
    assert not is_missing("95", RangeMissing(90, 99), numeric_type=False)


def test_matches_code_comma_decimal():
    assert matches_code("3,0", 3, numeric_type=True)


def test_unsupported_spec_raises():
    with pytest.raises(ValueError, match="Unsupported missing specification"):
        is_missing(1, {"values": [1]})
