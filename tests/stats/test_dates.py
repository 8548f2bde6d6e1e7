"""Tests for the date codec."""

from datetime import date

import pytest

from statcalc.stats.dates import (
    DEFAULT_CODEC,
    SECONDS_PER_DAY,
    SPSS_EPOCH,
    DateCodec,
    date_string_to_ordinal,
    ordinal_to_date_string,
)


def test_epoch_is_day_zero():
    """The Gregorian start date encodes to zero seconds."""
    assert date_string_to_ordinal("14-10-1582") == 0.0
    assert date_string_to_ordinal("15-10-1582") == float(SECONDS_PER_DAY)


def test_ordinal_counts_seconds_since_epoch():
    expected = (date(2000, 1, 1) - SPSS_EPOCH).days * SECONDS_PER_DAY
    assert date_string_to_ordinal("01-01-2000") == float(expected)


def test_round_trip():
    """Decoding and encoding returns the original string."""
    for text in ["01-01-2000", "29-02-2024", "31-12-1999", "15-06-1750"]:
        assert ordinal_to_date_string(date_string_to_ordinal(text)) == text


def test_ordinals_sort_like_dates():
    assert date_string_to_ordinal("02-01-2000") > date_string_to_ordinal("31-12-1999")


def test_invalid_dates_are_none():
    """Malformed or impossible dates do not decode."""
    assert date_string_to_ordinal("31-02-2020") is None
    assert date_string_to_ordinal("2020-01-01") is None
    assert date_string_to_ordinal("not a date") is None
    assert date_string_to_ordinal(None) is None


def test_from_ordinal_out_of_range():
    """Non-finite, absurd or pre-1000 ordinals render as None."""
    assert ordinal_to_date_string(float("nan")) is None
    assert ordinal_to_date_string(1e20) is None
    assert ordinal_to_date_string(-600 * 365 * SECONDS_PER_DAY) is None
    assert ordinal_to_date_string(None) is None


def test_from_ordinal_ignores_time_of_day():
    """Seconds within a day render as that day."""
    base = date_string_to_ordinal("10-05-2010")
    assert ordinal_to_date_string(base + 3600) == "10-05-2010"


def test_is_date_string():
    assert DEFAULT_CODEC.is_date_string("01-01-2000")
    assert not DEFAULT_CODEC.is_date_string("1-1-2000")
    assert not DEFAULT_CODEC.is_date_string(20000101)


def test_alternate_format():
    """Codecs with another supported format decode their own strings."""
    codec = DateCodec("%Y-%m-%d")
    assert codec.to_ordinal("2000-01-01") == date_string_to_ordinal("01-01-2000")
    assert codec.from_ordinal(codec.to_ordinal("2000-01-01")) == "2000-01-01"


def test_unsupported_format_rejected():
    with pytest.raises(ValueError, match="Unsupported date format"):
        DateCodec("%d %B %Y")
