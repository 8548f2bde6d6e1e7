"""Variable definitions and user-missing specifications."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Union

logger = logging.getLogger(__name__)

# SPSS display formats that carry calendar or clock values
SPSS_DATE_TYPES = frozenset(
    {"DATE", "ADATE", "EDATE", "SDATE", "JDATE", "QYR", "MOYR", "WKYR", "DATETIME", "TIME", "DTIME"}
)


class MeasurementLevel(str, Enum):
    """Measurement level of a variable."""

    NOMINAL = "nominal"
    ORDINAL = "ordinal"
    SCALE = "scale"
    UNKNOWN = "unknown"

    @classmethod
    def from_wire(cls, value: Any) -> MeasurementLevel:
        """Parse a wire value (case-insensitive); ``None`` maps to UNKNOWN."""
        if value is None or value == "":
            return cls.UNKNOWN
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown measurement level: {value!r}. "
                f"Expected one of {[m.value for m in cls]}"
            )


class VariableType(str, Enum):
    """Core storage type of a variable."""

    NUMERIC = "numeric"
    STRING = "string"
    DATE = "date"

    @classmethod
    def from_wire(cls, value: Any) -> VariableType:
        """
        Map a wire type onto a core type.

        ``STRING`` maps to string, the SPSS date formats (and ``date``) map to
        date, and every other format (NUMERIC, COMMA, DOLLAR, ...) is numeric.
        """
        if value is None or value == "":
            return cls.NUMERIC
        if isinstance(value, cls):
            return value
        text = str(value).strip().upper()
        if text == "STRING":
            return cls.STRING
        if text == "DATE" or text in SPSS_DATE_TYPES:
            return cls.DATE
        return cls.NUMERIC


@dataclass(frozen=True)
class NoMissing:
    """No user-missing codes."""


@dataclass(frozen=True)
class DiscreteMissing:
    """A list of discrete user-missing codes."""

    values: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class RangeMissing:
    """An inclusive range of user-missing values, plus one optional discrete code."""

    low: float
    high: float
    extra: Optional[Any] = None

    def __post_init__(self):
        if self.low > self.high:
            raise ValueError(f"Missing range low ({self.low}) exceeds high ({self.high})")


MissingSpec = Union[NoMissing, DiscreteMissing, RangeMissing]

NO_MISSING = NoMissing()


def missing_spec_from_wire(payload: Any, variable_type: VariableType = VariableType.NUMERIC) -> MissingSpec:
    """
    Parse a wire missing-value definition.

    Parameters
    ----------
    payload : dict or None
        ``{"discrete": [...]}``, ``{"values": [...]}``, ``{"range": {"min", "max"}}``
        (optionally together with a single discrete code) or ``None``.
    variable_type : VariableType
        Date variables have date-string codes and bounds decoded to ordinals.

    Returns
    -------
    MissingSpec
        The tagged missing specification.

    Raises
    ------
    ValueError
        If the payload is malformed.
    """
    if payload is None:
        return NO_MISSING
    if isinstance(payload, (NoMissing, DiscreteMissing, RangeMissing)):
        return payload
    if not isinstance(payload, Mapping):
        raise ValueError(f"Missing-value definition must be an object, got {type(payload).__name__}")

    discrete = payload.get("discrete")
    if discrete is None:
        discrete = payload.get("values")
    if discrete is None:
        discrete = []
    if not isinstance(discrete, (list, tuple)):
        discrete = [discrete]

    decode = _code_decoder(variable_type)
    discrete = [decode(v) for v in discrete]

    range_spec = payload.get("range")
    if range_spec:
        from statcalc.stats.coercion import parse_number

        low = range_spec.get("min")
        high = range_spec.get("max")
        low = decode(low)
        high = decode(high)
        low_num = parse_number(low)
        high_num = parse_number(high)
        if low_num is None or high_num is None:
            raise ValueError(f"Missing range bounds must be numeric, got {range_spec!r}")
        if len(discrete) > 1:
            raise ValueError("A missing range allows at most one additional discrete code")
        return RangeMissing(low_num, high_num, discrete[0] if discrete else None)

    if discrete:
        return DiscreteMissing(tuple(discrete))
    return NO_MISSING


def _code_decoder(variable_type: VariableType):
    if variable_type != VariableType.DATE:
        return lambda v: v

    from statcalc.stats.dates import DEFAULT_CODEC

    def decode(value):
        if isinstance(value, str) and DEFAULT_CODEC.is_date_string(value):
            ordinal = DEFAULT_CODEC.to_ordinal(value)
            return value if ordinal is None else ordinal
        return value

    return decode


@dataclass(frozen=True)
class VariableDef:
    """
    Definition of one variable in a dataset.

    Parameters
    ----------
    name : str
        Variable name; identity of the definition
    label : str, optional
        Descriptive label
    measure : MeasurementLevel
        Declared measurement level (``unknown`` is resolved by ``effective_measure``)
    type : VariableType
        Core storage type
    decimals : int
        Display decimals
    missing : MissingSpec
        User-missing specification
    value_labels : Mapping
        Value -> label mapping

    Examples
    --------
    >>> var = VariableDef.from_wire({"name": "age", "type": "NUMERIC", "measure": "scale"})
    >>> var.effective_measure
    <MeasurementLevel.SCALE: 'scale'>
    """

    name: str
    label: Optional[str] = None
    measure: MeasurementLevel = MeasurementLevel.UNKNOWN
    type: VariableType = VariableType.NUMERIC
    decimals: int = 2
    missing: MissingSpec = NO_MISSING
    value_labels: Mapping[Any, str] = field(default_factory=dict)

    def __post_init__(self):
        if not self.name:
            raise ValueError("Variable name is required")
        if self.decimals < 0:
            raise ValueError(f"decimals must be >= 0, got {self.decimals}")

    def __hash__(self) -> int:
        return hash(self.name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VariableDef):
            return NotImplemented
        return self.name == other.name

    @property
    def core_type(self) -> VariableType:
        return self.type

    @property
    def is_string(self) -> bool:
        return self.type == VariableType.STRING

    @property
    def is_date(self) -> bool:
        return self.type == VariableType.DATE

    @property
    def effective_measure(self) -> MeasurementLevel:
        """Measurement level with ``unknown`` resolved (nominal for strings, scale otherwise)."""
        if self.measure != MeasurementLevel.UNKNOWN:
            return self.measure
        if self.is_string:
            return MeasurementLevel.NOMINAL
        return MeasurementLevel.SCALE

    @classmethod
    def from_wire(cls, payload: Mapping[str, Any]) -> VariableDef:
        """
        Build a definition from a camelCase wire object.

        Raises
        ------
        ValueError
            If ``name`` is missing or a field is malformed.
        """
        if isinstance(payload, VariableDef):
            return payload
        if not isinstance(payload, Mapping):
            raise ValueError(f"Variable definition must be an object, got {type(payload).__name__}")
        name = payload.get("name")
        if not name:
            raise ValueError("Variable definition is missing required field 'name'")

        measure = payload.get("measure", payload.get("measurementLevel"))
        var_type = VariableType.from_wire(payload.get("type"))
        missing_payload = payload.get("missing", payload.get("missingSpec"))
        decimals = payload.get("decimals")

        return cls(
            name=str(name),
            label=payload.get("label") or None,
            measure=MeasurementLevel.from_wire(measure),
            type=var_type,
            decimals=int(decimals) if decimals is not None else 2,
            missing=missing_spec_from_wire(missing_payload, var_type),
            value_labels=_labels_from_wire(payload.get("valueLabels", payload.get("values"))),
        )


def _labels_from_wire(payload: Any) -> Dict[Any, str]:
    if not payload:
        return {}
    if isinstance(payload, Mapping):
        return {k: str(v) for k, v in payload.items()}
    labels: Dict[Any, str] = {}
    for item in payload:
        if not isinstance(item, Mapping) or "value" not in item:
            logger.debug(f"Skipping malformed value label entry: {item!r}")
            continue
        labels[item["value"]] = str(item.get("label", ""))
    return labels
