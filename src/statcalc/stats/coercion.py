"""Numeric coercion and rounding helpers."""

from __future__ import annotations

import math
import numbers
from typing import Any, Optional

import numpy as np

from statcalc.data.variable import VariableType


def parse_number(value: Any) -> Optional[float]:
    """Parse a raw value into a finite float.

    Args:
        value: Number or numeric string. Either ``.`` or ``,`` may be the
            decimal separator; when both appear, the right-most one is the
            decimal separator and the other is a thousands separator.

    Returns:
        Finite float, or None if the value is not numeric
    """
    if value is None or isinstance(value, (bool, np.bool_)):
        return None
    if isinstance(value, numbers.Real):
        result = float(value)
        return result if math.isfinite(result) else None
    if not isinstance(value, str):
        return None

    text = value.strip().replace(" ", "")
    if not text:
        return None

    if "," in text and "." in text:
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif "," in text:
        # A lone comma is a decimal separator unless it groups thousands twice
        if text.count(",") > 1:
            text = text.replace(",", "")
        else:
            text = text.replace(",", ".")

    try:
        result = float(text)
    except ValueError:
        return None
    return result if math.isfinite(result) else None


def is_numeric(value: Any) -> bool:
    """True for finite numbers and strings parseable as finite numbers."""
    return parse_number(value) is not None


def to_numeric(value: Any, core_type: VariableType = VariableType.NUMERIC, codec=None) -> Optional[float]:
    """Coerce a raw observation into the numeric domain of a variable.

    Args:
        value: Raw observation
        core_type: Core type of the variable
        codec: DateCodec used to decode ``dd-mm-yyyy`` strings

    Returns:
        Float (dates as ordinals), or None if the value cannot be coerced

    Notes:
        Date-shaped strings are decoded whatever the declared type, so a
        date column mislabelled as numeric still orders correctly. Strings
        that look like dates but are not valid calendar dates yield None.
        Date variables accept only date strings or numeric ordinals.
    """
    if value is None:
        return None
    if isinstance(value, str):
        if codec is None:
            from statcalc.stats.dates import DEFAULT_CODEC as codec
        if codec.is_date_string(value):
            return codec.to_ordinal(value)
        if core_type == VariableType.DATE:
            return None
    return parse_number(value)


def round_half_up(x: float) -> float:
    """Round half away from zero (2.5 -> 3, -2.5 -> -3)."""
    if x is None or not math.isfinite(x):
        return x
    return math.copysign(math.floor(abs(x) + 0.5), x)


def truncate(x: float) -> float:
    """Drop the fractional part toward zero."""
    return float(math.trunc(x))


def clean_number(x: Any) -> Any:
    """Convert numpy scalars to Python values and non-finite floats to None."""
    if isinstance(x, np.generic):
        x = x.item()
    if isinstance(x, float) and not math.isfinite(x):
        return None
    return x
