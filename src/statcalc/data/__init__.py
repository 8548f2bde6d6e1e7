"""Variable definitions and table loading."""

from statcalc.data.loaders import (
    column_values,
    infer_format,
    infer_variable,
    load_table,
    load_variable_defs,
    validate_parquet_available,
)
from statcalc.data.spec import DataFormat
from statcalc.data.variable import (
    NO_MISSING,
    DiscreteMissing,
    MeasurementLevel,
    NoMissing,
    RangeMissing,
    VariableDef,
    VariableType,
    missing_spec_from_wire,
)

__all__ = [
    "column_values",
    "infer_format",
    "infer_variable",
    "load_table",
    "load_variable_defs",
    "validate_parquet_available",
    "DataFormat",
    "NO_MISSING",
    "DiscreteMissing",
    "MeasurementLevel",
    "NoMissing",
    "RangeMissing",
    "VariableDef",
    "VariableType",
    "missing_spec_from_wire",
]
