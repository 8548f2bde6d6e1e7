"""Valid-case selection shared by the calculators."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence

import numpy as np

from statcalc.data.variable import MeasurementLevel, VariableDef, VariableType
from statcalc.stats.coercion import parse_number, to_numeric
from statcalc.stats.dates import DEFAULT_CODEC, DateCodec
from statcalc.stats.missing import canonical_text, is_missing

logger = logging.getLogger(__name__)

MissingClassifier = Callable[[Any, Any, bool], bool]


def normalize_weights(weights: Optional[Sequence[Any]], n_cases: int) -> np.ndarray:
    """Convert raw weights into floats, with 0 marking an excluded case.

    Args:
        weights: Raw weights (None means all ones)
        n_cases: Number of observations

    Returns:
        Float array of length ``n_cases``; invalid, non-finite and
        non-positive weights become 0

    Raises:
        ValueError: If the weight vector length differs from the data length
    """
    if weights is None:
        return np.ones(n_cases, dtype=float)
    if len(weights) != n_cases:
        raise ValueError(
            f"Weight vector length ({len(weights)}) does not match data length ({n_cases})"
        )
    out = np.zeros(n_cases, dtype=float)
    for i, w in enumerate(weights):
        value = parse_number(w)
        if value is not None and value > 0:
            out[i] = value
    return out


@dataclass
class CaseSelection:
    """Valid cases of one variable.

    Attributes:
        values: Valid values (floats in the numeric domain, trimmed strings otherwise)
        weights: Weights of the valid cases
        indices: Positions of the valid cases in the input
        total_weight: Weight of every case with a usable weight, missing included
        numeric: Whether ``values`` are in the numeric domain
    """

    values: List[Any]
    weights: np.ndarray
    indices: List[int]
    total_weight: float
    numeric: bool

    @property
    def valid_weight(self) -> float:
        return float(self.weights.sum()) if len(self.weights) else 0.0

    @property
    def missing_weight(self) -> float:
        return max(self.total_weight - self.valid_weight, 0.0)

    @property
    def is_empty(self) -> bool:
        return self.valid_weight <= 0

    def as_array(self) -> np.ndarray:
        return np.asarray(self.values, dtype=float)

    def summary(self) -> dict:
        return {
            "valid": self.valid_weight,
            "missing": self.missing_weight,
            "total": self.total_weight,
        }


def uses_numeric_domain(variable: VariableDef) -> bool:
    """Dates and scale or ordinal numeric variables are analysed as numbers."""
    if variable.is_date:
        return True
    return not variable.is_string and variable.effective_measure in (
        MeasurementLevel.SCALE,
        MeasurementLevel.ORDINAL,
    )


def collect_cases(
    variable: VariableDef,
    data: Sequence[Any],
    weights: Optional[Sequence[Any]] = None,
    numeric: Optional[bool] = None,
    classifier: MissingClassifier = is_missing,
    codec: DateCodec = DEFAULT_CODEC,
) -> CaseSelection:
    """Select the valid cases of a variable.

    Args:
        variable: Variable definition
        data: Raw observations
        weights: Optional case weights
        numeric: Collect in the numeric domain; defaults to
            ``uses_numeric_domain(variable)``
        classifier: Missing-value classifier ``(value, spec, numeric_type) -> bool``
        codec: Date codec for date strings

    Returns:
        CaseSelection over cases with a usable weight and a non-missing value

    Notes:
        A numeric value is checked against the user-missing codes both in its
        raw form and after coercion, so ``"3,0"`` matches a code of ``3`` and
        a date matches a code given as a date string.
    """
    if data is None:
        raise ValueError("data is required")
    if numeric is None:
        numeric = uses_numeric_domain(variable)
    numeric_type = variable.core_type != VariableType.STRING

    w = normalize_weights(weights, len(data))

    values: List[Any] = []
    kept_weights: List[float] = []
    indices: List[int] = []
    total = 0.0

    for i, raw in enumerate(data):
        weight = w[i]
        if weight <= 0:
            continue
        total += weight

        if classifier(raw, variable.missing, numeric_type):
            continue

        if numeric:
            x = to_numeric(raw, variable.core_type, codec)
            if x is None or classifier(x, variable.missing, True):
                continue
            value: Any = x
        else:
            value = text_key(raw, numeric_type)

        values.append(value)
        kept_weights.append(weight)
        indices.append(i)

    logger.debug(
        f"{variable.name}: {len(values)} valid cases of {len(data)} (weighted valid {sum(kept_weights):g})"
    )
    return CaseSelection(
        values=values,
        weights=np.asarray(kept_weights, dtype=float),
        indices=indices,
        total_weight=total,
        numeric=numeric,
    )


def text_key(value: Any, numeric_type: bool) -> str:
    """Grouping key in the text domain; numeric variables key parseable values by number."""
    if numeric_type:
        number = parse_number(value)
        if number is not None:
            return canonical_text(number)
    return canonical_text(value)


def display_value(value: Any, variable: VariableDef, codec: DateCodec = DEFAULT_CODEC) -> Any:
    """Render a numeric-domain value for output (dates as strings, whole floats as int)."""
    if value is None:
        return None
    if variable.is_date and isinstance(value, (int, float, np.floating)):
        return codec.from_ordinal(value)
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def group_weights(values: Sequence[Any], weights: Sequence[float], numeric: bool) -> List[tuple]:
    """Sum weights per distinct value, ascending by natural order.

    Numeric values group by float value, others by their string form;
    text sorts numbers first (numerically), then the remaining strings.
    """
    totals: dict = {}
    for value, weight in zip(values, weights):
        key = float(value) if numeric else str(value)
        totals[key] = totals.get(key, 0.0) + float(weight)
    if numeric:
        return sorted(totals.items(), key=lambda item: item[0])
    return sorted(totals.items(), key=lambda item: natural_key(item[0]))


def natural_key(text: str) -> tuple:
    number = parse_number(text)
    if number is not None:
        return (0, number, text)
    return (1, 0.0, text)


def weighted_modes(values: Sequence[Any], weights: Sequence[float], numeric: bool) -> List[Any]:
    """All values sharing the maximal summed weight, ascending."""
    groups = group_weights(values, weights, numeric)
    if not groups:
        return []
    top = max(weight for _, weight in groups)
    return [value for value, weight in groups if abs(weight - top) <= 1e-9 * max(1.0, top)]


def display_category(value: Any, numeric: bool, variable: VariableDef, codec: DateCodec = DEFAULT_CODEC) -> Any:
    """Render a grouped value; numeric variables keep numbers even when grouped as text."""
    if numeric:
        return display_value(value, variable, codec)
    number = None if variable.is_string else parse_number(value)
    if number is None:
        return value
    return display_value(number, variable, codec)
