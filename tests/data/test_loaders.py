"""Tests for table and variable-definition loading."""

import json
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from statcalc.data.loaders import (
    column_values,
    infer_format,
    infer_variable,
    load_table,
    load_variable_defs,
)
from statcalc.data.spec import DataFormat
from statcalc.data.variable import DiscreteMissing, MeasurementLevel, VariableType


def test_infer_format(tmp_path):
    assert infer_format(Path("data.csv")) == DataFormat.CSV
    assert infer_format(Path("data.parquet")) == DataFormat.PARQUET
    assert infer_format(tmp_path) == DataFormat.PARQUET_DATASET
    with pytest.raises(ValueError, match="Cannot infer table format"):
        infer_format(Path("data.xlsx"))


def test_load_csv(survey_csv):
    df = load_table(survey_csv)
    assert list(df.columns) == ["age", "sex", "smoker", "wt"]
    assert len(df) == 8


def test_load_csv_columns(survey_csv):
    df = load_table(survey_csv, columns=["age", "wt"])
    assert list(df.columns) == ["age", "wt"]


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_table(tmp_path / "nope.csv")


def test_load_parquet(tmp_path, survey_frame):
    pytest.importorskip("pyarrow")
    path = tmp_path / "survey.parquet"
    survey_frame.to_parquet(path, index=False)
    df = load_table(path)
    assert len(df) == 8
    assert df["age"].isna().sum() == 1


def test_column_values_plain_python(survey_frame):
    values = column_values(survey_frame, "age")
    assert values[4] is None
    assert values[0] == 21.0
    assert column_values(survey_frame, "sex")[5] is None
    with pytest.raises(ValueError, match="not found"):
        column_values(survey_frame, "income")


def test_column_values_datetimes_as_strings():
    df = pd.DataFrame({"d": pd.to_datetime(["2000-01-02", None])})
    assert column_values(df, "d") == ["02-01-2000", None]


def test_infer_variable_from_dtype(survey_frame):
    assert infer_variable("age", survey_frame["age"]).measure == MeasurementLevel.SCALE
    sex = infer_variable("sex", survey_frame["sex"])
    assert sex.type == VariableType.STRING
    assert sex.measure == MeasurementLevel.NOMINAL
    dates = pd.Series(pd.to_datetime(["2000-01-01"]))
    assert infer_variable("d", dates).type == VariableType.DATE
    flags = pd.Series(np.array([True, False]))
    assert infer_variable("f", flags).measure == MeasurementLevel.NOMINAL


def test_load_variable_defs_list(tmp_path):
    path = tmp_path / "vars.json"
    path.write_text(json.dumps([{"name": "age", "measure": "scale", "missing": {"values": [99]}}]))
    defs = load_variable_defs(path)
    assert set(defs) == {"age"}
    assert defs["age"].missing == DiscreteMissing((99,))


def test_load_variable_defs_mapping(tmp_path):
    path = tmp_path / "vars.json"
    path.write_text(json.dumps({"sex": {"type": "STRING"}, "age": {}}))
    defs = load_variable_defs(path)
    assert defs["sex"].type == VariableType.STRING
    assert defs["age"].name == "age"


def test_load_variable_defs_rejects_scalars(tmp_path):
    path = tmp_path / "vars.json"
    path.write_text("3")
    with pytest.raises(ValueError, match="list or an object"):
        load_variable_defs(path)
