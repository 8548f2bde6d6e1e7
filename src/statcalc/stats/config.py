"""Configuration dataclasses for the calculators."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


class PercentileMethod(str, Enum):
    """Percentile definitions.

    WAVERAGE: weighted average at ``W*p`` (SPSS definition 1)
    HAVERAGE: weighted average at ``(W+1)*p``
    ROUND: observation closest to ``W*p``
    EMPIRICAL: empirical distribution function
    AEMPIRICAL: empirical distribution function with averaging
    TUKEY_HINGES: Tukey hinges for the quartiles (other percentiles use WAVERAGE)
    """

    WAVERAGE = "waverage"
    HAVERAGE = "haverage"
    ROUND = "round"
    EMPIRICAL = "empirical"
    AEMPIRICAL = "aempirical"
    TUKEY_HINGES = "tukey_hinges"

    @classmethod
    def from_wire(cls, value: Any) -> PercentileMethod:
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("-", "").replace("_", "")
        aliases = {"tukeyhinges": cls.TUKEY_HINGES, "tukey": cls.TUKEY_HINGES, "hinges": cls.TUKEY_HINGES}
        if key in aliases:
            return aliases[key]
        try:
            return cls(key)
        except ValueError:
            raise ValueError(
                f"Unknown percentile method: {value!r}. Expected one of {[m.value for m in cls]}"
            )


class NonintegerWeights(str, Enum):
    """Adjustment of fractional case weights in contingency tables.

    NO_ADJUSTMENT: raw weight sums
    ROUND_CELL / TRUNCATE_CELL: each case weight is rounded (truncated) before
        it is added to its cell
    ROUND_CASE / TRUNCATE_CASE: the case weight itself is adjusted on input, so
        totals and the missing summary use adjusted weights

    Table-level rounding of accumulated cell counts is not offered.
    """

    NO_ADJUSTMENT = "noAdjustment"
    ROUND_CELL = "roundCell"
    TRUNCATE_CELL = "truncateCell"
    ROUND_CASE = "roundCase"
    TRUNCATE_CASE = "truncateCase"

    @classmethod
    def from_wire(cls, value: Any) -> NonintegerWeights:
        if isinstance(value, cls):
            return value
        text = str(value).strip().replace("_", "").lower()
        for member in cls:
            if member.value.lower() == text:
                return member
        raise ValueError(
            f"Unknown nonintegerWeights value: {value!r}. Expected one of {[m.value for m in cls]}"
        )

    @property
    def per_case(self) -> bool:
        return self in (NonintegerWeights.ROUND_CASE, NonintegerWeights.TRUNCATE_CASE)

    @property
    def per_cell(self) -> bool:
        return self in (NonintegerWeights.ROUND_CELL, NonintegerWeights.TRUNCATE_CELL)

    @property
    def rounds(self) -> bool:
        return self in (NonintegerWeights.ROUND_CELL, NonintegerWeights.ROUND_CASE)


def _log_unknown_keys(payload: Mapping[str, Any], known: Iterable[str], owner: str) -> None:
    unknown = sorted(set(payload) - set(known))
    if unknown:
        logger.debug(f"Ignoring unknown {owner} option keys: {unknown}")


def _percent_list(values: Any) -> Tuple[float, ...]:
    if values is None:
        return ()
    if not isinstance(values, (list, tuple)):
        values = [values]
    return tuple(float(v) for v in values)


@dataclass(frozen=True)
class DescriptiveOptions:
    """Options for DescriptiveCalculator.

    Attributes:
        save_standardized: Also return z-scores aligned to the input
    """

    save_standardized: bool = False

    @classmethod
    def from_wire(cls, payload: Optional[Mapping[str, Any]]) -> DescriptiveOptions:
        payload = payload or {}
        _log_unknown_keys(payload, ["saveStandardized"], "descriptives")
        return cls(save_standardized=bool(payload.get("saveStandardized", False)))


@dataclass(frozen=True)
class FrequencyOptions:
    """Options for FrequencyCalculator.

    Attributes:
        display_frequency: Include the frequency table in the result
        percentiles: Extra percentiles (0-100) for the statistics panel
        quartiles: Add the 25th, 50th and 75th percentiles
        cut_points: Number of equal groups; adds the boundaries between them
        percentile_method: Percentile definition (default: waverage)
    """

    display_frequency: bool = True
    percentiles: Tuple[float, ...] = ()
    quartiles: bool = False
    cut_points: Optional[int] = None
    percentile_method: PercentileMethod = PercentileMethod.WAVERAGE

    def __post_init__(self):
        """Validate configuration."""
        object.__setattr__(self, "percentiles", _percent_list(self.percentiles))
        for p in self.percentiles:
            if p < 0 or p > 100:
                raise ValueError(f"Percentiles must be in [0, 100], got {p}")
        if self.cut_points is not None and self.cut_points < 2:
            raise ValueError(f"cut_points must be >= 2, got {self.cut_points}")

    def requested_percentiles(self) -> Tuple[float, ...]:
        """All percentiles implied by the options, sorted and de-duplicated."""
        wanted = set(self.percentiles)
        if self.quartiles:
            wanted.update((25.0, 50.0, 75.0))
        if self.cut_points:
            wanted.update(100.0 * k / self.cut_points for k in range(1, self.cut_points))
        return tuple(sorted(wanted))

    @classmethod
    def from_wire(cls, payload: Optional[Mapping[str, Any]]) -> FrequencyOptions:
        payload = payload or {}
        _log_unknown_keys(
            payload,
            ["displayFrequency", "percentiles", "quartiles", "cutPoints", "percentileMethod"],
            "frequencies",
        )
        cut_points = payload.get("cutPoints")
        if isinstance(cut_points, bool):
            cut_points = 4 if cut_points else None
        return cls(
            display_frequency=bool(payload.get("displayFrequency", True)),
            percentiles=_percent_list(payload.get("percentiles")),
            quartiles=bool(payload.get("quartiles", False)),
            cut_points=int(cut_points) if cut_points else None,
            percentile_method=PercentileMethod.from_wire(payload.get("percentileMethod", "waverage")),
        )


@dataclass(frozen=True)
class CellOptions:
    """Cell views shown in a rendered contingency table.

    Attributes:
        observed: Observed counts
        expected: Expected counts
        row: Row percentages
        column: Column percentages
        total: Total percentages
        residuals: Unstandardized residuals
        standardized: Standardized residuals
        adjusted: Adjusted standardized residuals
    """

    observed: bool = True
    expected: bool = False
    row: bool = False
    column: bool = False
    total: bool = False
    residuals: bool = False
    standardized: bool = False
    adjusted: bool = False

    def selected(self) -> Tuple[str, ...]:
        """Names of the selected views, in display order."""
        return tuple(name for name in _CELL_VIEWS if getattr(self, name))

    @classmethod
    def from_wire(cls, payload: Optional[Mapping[str, Any]]) -> CellOptions:
        """Accept flat keys or the nested ``counts``/``percentages``/``residuals`` groups."""
        payload = payload or {}
        flat: Dict[str, Any] = {}
        counts = payload.get("counts") or {}
        percentages = payload.get("percentages") or {}
        residuals = payload.get("residuals")

        flat["observed"] = payload.get("observed", counts.get("observed", True))
        flat["expected"] = payload.get("expected", counts.get("expected", False))
        flat["row"] = payload.get("row", percentages.get("row", False))
        flat["column"] = payload.get("column", percentages.get("column", False))
        flat["total"] = payload.get("total", percentages.get("total", False))
        if isinstance(residuals, Mapping):
            flat["residuals"] = residuals.get("unstandardized", False)
            flat["standardized"] = residuals.get("standardized", False)
            flat["adjusted"] = residuals.get("adjustedStandardized", False)
        else:
            flat["residuals"] = bool(residuals)
            flat["standardized"] = payload.get("standardized", False)
            flat["adjusted"] = payload.get("adjusted", False)

        _log_unknown_keys(
            payload,
            list(_CELL_VIEWS) + ["counts", "percentages", "nonintegerWeights"],
            "crosstabs cells",
        )
        return cls(**{k: bool(v) for k, v in flat.items()})


_CELL_VIEWS = ("observed", "expected", "row", "column", "total", "residuals", "standardized", "adjusted")


@dataclass(frozen=True)
class CrosstabsOptions:
    """Options for CrosstabsCalculator.

    Attributes:
        cells: Cell views for rendered reports
        noninteger_weights: Fractional weight adjustment (default: noAdjustment)
    """

    cells: CellOptions = field(default_factory=CellOptions)
    noninteger_weights: NonintegerWeights = NonintegerWeights.NO_ADJUSTMENT

    def __post_init__(self):
        """Validate configuration."""
        if not isinstance(self.noninteger_weights, NonintegerWeights):
            object.__setattr__(
                self, "noninteger_weights", NonintegerWeights.from_wire(self.noninteger_weights)
            )

    @classmethod
    def from_wire(cls, payload: Optional[Mapping[str, Any]]) -> CrosstabsOptions:
        payload = payload or {}
        _log_unknown_keys(payload, ["cells", "nonintegerWeights"], "crosstabs")
        cells = payload.get("cells") or {}
        mode = payload.get("nonintegerWeights", cells.get("nonintegerWeights", "noAdjustment"))
        return cls(
            cells=CellOptions.from_wire(cells),
            noninteger_weights=NonintegerWeights.from_wire(mode),
        )


@dataclass(frozen=True)
class ExamineOptions:
    """Options for ExamineCalculator.

    Attributes:
        percentile_method: Percentile definition (default: haverage)
        confidence_level: Confidence level of the mean interval, in (0, 1)
        trim_percent: Percent trimmed from each tail for the trimmed mean
        show_outliers: Report extreme values
        extreme_count: Number of highest and lowest cases reported
        max_iterations: Iteration cap for the M-estimators
    """

    percentile_method: PercentileMethod = PercentileMethod.HAVERAGE
    confidence_level: float = 0.95
    trim_percent: float = 5.0
    show_outliers: bool = False
    extreme_count: int = 5
    max_iterations: int = 30

    def __post_init__(self):
        """Validate configuration."""
        if self.confidence_level <= 0 or self.confidence_level >= 1:
            raise ValueError(f"confidence_level must be in (0, 1), got {self.confidence_level}")
        if self.trim_percent < 0 or self.trim_percent >= 50:
            raise ValueError(f"trim_percent must be in [0, 50), got {self.trim_percent}")
        if self.extreme_count < 1:
            raise ValueError(f"extreme_count must be >= 1, got {self.extreme_count}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")

    @classmethod
    def from_wire(cls, payload: Optional[Mapping[str, Any]]) -> ExamineOptions:
        payload = payload or {}
        _log_unknown_keys(
            payload,
            ["percentileMethod", "confidenceInterval", "trimPercent", "showOutliers", "extremeCount"],
            "examine",
        )
        level = float(payload.get("confidenceInterval", 0.95))
        # Accept 95 as well as 0.95
        if level > 1:
            level /= 100.0
        return cls(
            percentile_method=PercentileMethod.from_wire(payload.get("percentileMethod", "haverage")),
            confidence_level=level,
            trim_percent=float(payload.get("trimPercent", 5.0)),
            show_outliers=bool(payload.get("showOutliers", False)),
            extreme_count=int(payload.get("extremeCount", 5)),
        )
