"""Missing-value classification."""

from __future__ import annotations

import math
import numbers
from typing import Any

import numpy as np
import pandas as pd

from statcalc.data.variable import DiscreteMissing, MissingSpec, NoMissing, RangeMissing
from statcalc.stats.coercion import parse_number


def is_system_missing(value: Any) -> bool:
    """True for None, NaN/NaT, infinities and empty or blank strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, numbers.Real) and not isinstance(value, (bool, np.bool_)):
        return not math.isfinite(value)
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        # array-likes are never a single observation
        return False


def canonical_text(value: Any) -> str:
    """String form used for code comparison (``3.0`` -> ``"3"``)."""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def matches_code(value: Any, code: Any, numeric_type: bool) -> bool:
    """True if ``value`` equals the user-missing ``code``."""
    if canonical_text(value) == canonical_text(code):
        return True
    if numeric_type:
        x = parse_number(value)
        c = parse_number(code)
        return x is not None and c is not None and x == c
    return False


def is_missing(value: Any, spec: MissingSpec = None, numeric_type: bool = True) -> bool:
    """Classify a raw observation as missing.

    Args:
        value: Raw observation
        spec: User-missing specification (None means no codes)
        numeric_type: Whether the variable is numeric or date; range codes
            and numeric equality only apply to numeric types

    Returns:
        True if the value is system-missing or matches a user-missing code
    """
    if is_system_missing(value):
        return True
    if spec is None or isinstance(spec, NoMissing):
        return False

    if isinstance(spec, DiscreteMissing):
        return any(matches_code(value, code, numeric_type) for code in spec.values)

    if isinstance(spec, RangeMissing):
        if spec.extra is not None and matches_code(value, spec.extra, numeric_type):
            return True
        if not numeric_type:
            return False
        x = parse_number(value)
        return x is not None and spec.low <= x <= spec.high

    raise ValueError(f"Unsupported missing specification: {spec!r}")
