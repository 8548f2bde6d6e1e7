"""Pytest configuration and fixtures."""

import pytest
import numpy as np
import pandas as pd
from pathlib import Path


@pytest.fixture
def scale_variable():
    """Numeric scale variable definition (wire form)."""
    return {"name": "score", "type": "NUMERIC", "measure": "scale"}


@pytest.fixture
def string_variable():
    """String variable with a discrete user-missing code."""
    return {"name": "grade", "type": "STRING", "missing": {"values": ["MISSING"]}}


@pytest.fixture
def two_by_two_records():
    """Case records giving the table [[3, 1], [1, 3]]."""
    cells = [(1, 1)] * 3 + [(1, 2)] + [(2, 1)] + [(2, 2)] * 3
    return [{"a": r, "b": c} for r, c in cells]


@pytest.fixture
def survey_frame():
    """Small survey table with a weight column and blanks."""
    np.random.seed(42)
    return pd.DataFrame(
        {
            "age": [21, 35, 42, 28, np.nan, 63, 35, 50],
            "sex": ["F", "M", "F", "F", "M", None, "M", "F"],
            "smoker": ["yes", "no", "no", "yes", "no", "no", "yes", "no"],
            "wt": [1.0, 2.0, 1.0, 1.0, 1.0, 1.0, 0.5, 1.5],
        }
    )


@pytest.fixture
def survey_csv(tmp_path, survey_frame) -> Path:
    """The survey table written to CSV."""
    path = tmp_path / "survey.csv"
    survey_frame.to_csv(path, index=False)
    return path
