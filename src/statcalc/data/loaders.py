"""Table and variable-dictionary loading for statcalc.

Tables come from CSV, Parquet, or a directory of Parquet files. Variable
definitions come from a JSON document, or are inferred from column dtypes
when no dictionary is supplied.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from statcalc.data.spec import DataFormat
from statcalc.data.variable import MeasurementLevel, VariableDef, VariableType

logger = logging.getLogger(__name__)

# Flag to track PyArrow availability
_PYARROW_AVAILABLE: Optional[bool] = None


def validate_parquet_available() -> None:
    """
    Check if PyArrow is available for Parquet operations.

    Raises
    ------
    ImportError
        If PyArrow is not installed, with an installation hint
    """
    global _PYARROW_AVAILABLE

    if _PYARROW_AVAILABLE is None:
        try:
            import pyarrow  # noqa: F401

            _PYARROW_AVAILABLE = True
        except ImportError:
            _PYARROW_AVAILABLE = False

    if not _PYARROW_AVAILABLE:
        raise ImportError(
            "PyArrow is required for Parquet support but is not installed.\n"
            "Install with: pip install statcalc[parquet] or pip install pyarrow"
        )


def infer_format(path: Path) -> DataFormat:
    """Infer the table format of ``path`` (see ``DataFormat.from_path``)."""
    return DataFormat.from_path(path)


def load_table(
    path: Path,
    columns: Optional[List[str]] = None,
) -> pd.DataFrame:
    """
    Load a table from file (CSV, Parquet, or Parquet dataset directory).

    Parameters
    ----------
    path : Path
        Path to data file or directory
    columns : List[str], optional
        Subset of columns to load

    Returns
    -------
    pd.DataFrame
        Loaded data

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist

    Examples
    --------
    >>> df = load_table(Path("survey.csv"))
    >>> df = load_table(Path("survey.parquet"), columns=["age", "sex"])
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")
    fmt = infer_format(path)

    logger.info(f"Loading table from {path} (format: {fmt.value})")

    if fmt == DataFormat.CSV:
        return _load_csv(path, columns=columns)
    elif fmt == DataFormat.PARQUET:
        validate_parquet_available()
        return _load_parquet(path, columns=columns)
    elif fmt == DataFormat.PARQUET_DATASET:
        validate_parquet_available()
        return _load_parquet_dataset(path, columns=columns)
    else:
        raise ValueError(f"Unsupported format: {fmt}")


def _load_csv(path: Path, columns: Optional[List[str]] = None) -> pd.DataFrame:
    """Load CSV file; blank fields stay as NaN (system-missing)."""
    kwargs = {}
    if columns is not None:
        kwargs["usecols"] = columns
    return pd.read_csv(path, **kwargs)


def _load_parquet(path: Path, columns: Optional[List[str]] = None) -> pd.DataFrame:
    """Load single Parquet file."""
    import pyarrow.parquet as pq

    table = pq.read_table(path, columns=columns)
    return table.to_pandas()


def _load_parquet_dataset(path: Path, columns: Optional[List[str]] = None) -> pd.DataFrame:
    """Load every parquet file under a directory as one table."""
    import pyarrow.dataset as ds

    files = [
        f
        for f in path.glob("**/*.parquet")
        if not f.name.startswith(".") and not f.name.startswith("_")
    ]
    if not files:
        raise ValueError(f"No parquet files found in {path}")

    logger.info(f"Found {len(files)} parquet files in dataset directory")
    dataset = ds.dataset(path, format="parquet")
    kwargs = {}
    if columns is not None:
        kwargs["columns"] = columns
    return dataset.to_table(**kwargs).to_pandas()


def load_variable_defs(path: Path) -> Dict[str, VariableDef]:
    """
    Load variable definitions from a JSON file.

    The document is either a list of wire variable objects or a mapping of
    name -> wire object (the name key is filled in when absent).

    Parameters
    ----------
    path : Path
        JSON file

    Returns
    -------
    Dict[str, VariableDef]
        Definitions keyed by variable name
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Variable definition file not found: {path}")

    with open(path, "r") as f:
        payload = json.load(f)

    if isinstance(payload, dict):
        items = [{"name": name, **(spec or {})} for name, spec in payload.items()]
    elif isinstance(payload, list):
        items = payload
    else:
        raise ValueError(f"Variable definitions must be a list or an object, got {type(payload).__name__}")

    defs = {}
    for item in items:
        var = VariableDef.from_wire(item)
        defs[var.name] = var
    logger.info(f"Loaded {len(defs)} variable definitions from {path}")
    return defs


def infer_variable(name: str, series: pd.Series) -> VariableDef:
    """
    Infer a variable definition from a column's dtype.

    Numeric columns are scale, datetime columns are dates, and anything
    else is a nominal string.
    """
    if pd.api.types.is_bool_dtype(series):
        return VariableDef(name=name, measure=MeasurementLevel.NOMINAL, type=VariableType.NUMERIC)
    if pd.api.types.is_numeric_dtype(series):
        return VariableDef(name=name, measure=MeasurementLevel.SCALE, type=VariableType.NUMERIC)
    if pd.api.types.is_datetime64_any_dtype(series):
        return VariableDef(name=name, measure=MeasurementLevel.SCALE, type=VariableType.DATE)
    return VariableDef(name=name, measure=MeasurementLevel.NOMINAL, type=VariableType.STRING)


def column_values(df: pd.DataFrame, name: str, variable: Optional[VariableDef] = None) -> list:
    """
    Extract a column as plain Python values.

    NaN/NaT become None; datetime values of a date variable are rendered
    with the default date format so the engine decodes them to ordinals.
    """
    if name not in df.columns:
        raise ValueError(f"Column '{name}' not found in data. Available: {list(df.columns)}")
    series = df[name]
    if pd.api.types.is_datetime64_any_dtype(series):
        from statcalc.stats.dates import DEFAULT_CODEC

        return [None if pd.isna(v) else v.strftime(DEFAULT_CODEC.fmt) for v in series]
    return [None if pd.isna(v) else (v.item() if hasattr(v, "item") else v) for v in series.tolist()]
