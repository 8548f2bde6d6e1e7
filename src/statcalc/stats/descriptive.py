"""Weighted descriptive statistics with bias-corrected shape moments."""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import numpy as np

from statcalc.data.variable import MeasurementLevel, VariableDef
from statcalc.stats.cases import (
    CaseSelection,
    collect_cases,
    display_category,
    uses_numeric_domain,
    weighted_modes,
)
from statcalc.stats.config import DescriptiveOptions, PercentileMethod
from statcalc.stats.dates import DEFAULT_CODEC, DateCodec
from statcalc.stats.labels import map_value_label
from statcalc.stats.missing import is_missing
from statcalc.stats.percentiles import WeightedDistribution
from statcalc.stats.results import StatisticsResult

logger = logging.getLogger(__name__)

# Variance at or below this fraction of the squared mean is treated as zero
# for the shape statistics
VARIANCE_EPS = 1e-24

SCALE_STATS = [
    "n", "valid", "missing", "mean", "sum", "std_dev", "variance", "se_mean",
    "minimum", "maximum", "range", "skewness", "se_skewness", "kurtosis",
    "se_kurtosis", "median", "percentile_25", "percentile_75", "iqr",
]
ORDINAL_STATS = ["n", "valid", "missing", "mode", "median", "percentile_25", "percentile_75", "iqr"]
NOMINAL_STATS = ["n", "valid", "missing", "mode"]


def resolve_variable(variable: Union[VariableDef, Mapping[str, Any]]) -> VariableDef:
    if isinstance(variable, VariableDef):
        return variable
    return VariableDef.from_wire(variable)


class DescriptiveCalculator:
    """Descriptive statistics of one variable.

    Statistics are computed lazily and memoized per instance. Every statistic
    returns None when its minimum-N precondition is not met.

    Args:
        variable: Variable definition (or wire object)
        data: Raw observations
        weights: Optional case weights
        options: DescriptiveOptions
        classifier: Missing-value classifier
        label_mapper: Value-label lookup
        codec: Date codec

    Example:
        >>> calc = DescriptiveCalculator({"name": "x"}, [1, 2, 3, 4, 5])
        >>> calc.mean(), calc.variance()
        (3.0, 2.5)
    """

    def __init__(
        self,
        variable: Union[VariableDef, Mapping[str, Any]],
        data: Sequence[Any],
        weights: Optional[Sequence[Any]] = None,
        options: Optional[DescriptiveOptions] = None,
        *,
        classifier=is_missing,
        label_mapper=map_value_label,
        codec: DateCodec = DEFAULT_CODEC,
    ):
        self.variable = resolve_variable(variable)
        self.data = data
        self.weights = weights
        self.options = options or DescriptiveOptions()
        self.classifier = classifier
        self.label_mapper = label_mapper
        self.codec = codec
        self._memo: Dict[str, Any] = {}

    # ------------------------------------------------------------------
    # Case selection and moments

    @property
    def is_numeric(self) -> bool:
        return uses_numeric_domain(self.variable)

    def cases(self) -> CaseSelection:
        if "cases" not in self._memo:
            self._memo["cases"] = collect_cases(
                self.variable,
                self.data,
                self.weights,
                numeric=self.is_numeric,
                classifier=self.classifier,
                codec=self.codec,
            )
        return self._memo["cases"]

    def moments(self) -> Dict[str, float]:
        """Weighted sums and central moments of the valid cases."""
        if "moments" in self._memo:
            return self._memo["moments"]

        cases = self.cases()
        result: Dict[str, float] = {"W": cases.valid_weight}
        if cases.numeric and not cases.is_empty:
            x = cases.as_array()
            w = cases.weights
            W = float(w.sum())
            mean = float(np.dot(w, x) / W)
            d = x - mean
            result.update(
                sum=float(np.dot(w, x)),
                mean=mean,
                M2=float(np.dot(w, d ** 2)),
                M3=float(np.dot(w, d ** 3)),
                M4=float(np.dot(w, d ** 4)),
                min=float(x.min()),
                max=float(x.max()),
            )
        self._memo["moments"] = result
        return result

    def distribution(self) -> WeightedDistribution:
        if "distribution" not in self._memo:
            cases = self.cases()
            if cases.numeric:
                dist = WeightedDistribution.from_cases(cases.as_array(), cases.weights)
            else:
                dist = WeightedDistribution.from_cases([], [])
            self._memo["distribution"] = dist
        return self._memo["distribution"]

    # ------------------------------------------------------------------
    # Individual statistics

    def valid_n(self) -> float:
        return self.cases().valid_weight

    def mean(self) -> Optional[float]:
        return self.moments().get("mean")

    def sum(self) -> Optional[float]:
        return self.moments().get("sum")

    def minimum(self) -> Optional[float]:
        return self.moments().get("min")

    def maximum(self) -> Optional[float]:
        return self.moments().get("max")

    def range(self) -> Optional[float]:
        lo, hi = self.minimum(), self.maximum()
        if lo is None or hi is None:
            return None
        return hi - lo

    def variance(self) -> Optional[float]:
        m = self.moments()
        W = m["W"]
        if "M2" not in m or W <= 1:
            return None
        return m["M2"] / (W - 1)

    def std_dev(self) -> Optional[float]:
        var = self.variance()
        return math.sqrt(var) if var is not None else None

    def se_mean(self) -> Optional[float]:
        sd = self.std_dev()
        W = self.valid_n()
        if sd is None or W <= 0:
            return None
        return sd / math.sqrt(W)

    def _has_spread(self, var: Optional[float]) -> bool:
        if var is None:
            return False
        mean = self.moments().get("mean") or 0.0
        return var > VARIANCE_EPS * max(mean ** 2, var)

    def skewness(self) -> Optional[float]:
        m = self.moments()
        W = m["W"]
        var = self.variance()
        if W <= 2 or not self._has_spread(var):
            return None
        sd = math.sqrt(var)
        return W * m["M3"] / ((W - 1) * (W - 2) * sd ** 3)

    def se_skewness(self) -> Optional[float]:
        W = self.valid_n()
        if W <= 2 or "mean" not in self.moments():
            return None
        return math.sqrt(6 * W * (W - 1) / ((W - 2) * (W + 1) * (W + 3)))

    def kurtosis(self) -> Optional[float]:
        m = self.moments()
        W = m["W"]
        var = self.variance()
        if W <= 3 or not self._has_spread(var):
            return None
        sd = math.sqrt(var)
        numerator = W * (W + 1) * m["M4"] - 3 * m["M2"] ** 2 * (W - 1)
        return numerator / ((W - 1) * (W - 2) * (W - 3) * sd ** 4)

    def se_kurtosis(self) -> Optional[float]:
        W = self.valid_n()
        se_skew = self.se_skewness()
        if W <= 3 or se_skew is None:
            return None
        return math.sqrt(4 * (W ** 2 - 1) * se_skew ** 2 / ((W - 3) * (W + 5)))

    def percentile(self, p: float, method: PercentileMethod = PercentileMethod.HAVERAGE) -> Optional[float]:
        return self.distribution().percentile(p, method)

    def median(self) -> Optional[float]:
        return self.percentile(50)

    def iqr(self) -> Optional[float]:
        q1, q3 = self.percentile(25), self.percentile(75)
        if q1 is None or q3 is None:
            return None
        return q3 - q1

    def mode(self) -> Optional[List[Any]]:
        """All values with the maximal weighted frequency, ascending."""
        cases = self.cases()
        if cases.is_empty:
            return None
        modes = weighted_modes(cases.values, cases.weights, cases.numeric)
        return [display_category(v, cases.numeric, self.variable, self.codec) for v in modes]

    def standardized(self) -> Optional[List[Optional[float]]]:
        """z-scores aligned to the input; None for excluded cases."""
        mean, sd = self.mean(), self.std_dev()
        if mean is None or sd is None or sd <= 0:
            logger.debug(f"{self.variable.name}: standardized values undefined (sd={sd})")
            return None
        cases = self.cases()
        z: List[Optional[float]] = [None] * len(self.data)
        for idx, value in zip(cases.indices, cases.values):
            z[idx] = (value - mean) / sd
        return z

    # ------------------------------------------------------------------
    # Panels

    def panel_names(self) -> List[str]:
        """Statistics reported for the variable's measurement level."""
        if not self.is_numeric:
            return list(NOMINAL_STATS)
        measure = self.variable.effective_measure
        if measure == MeasurementLevel.SCALE:
            return list(SCALE_STATS)
        if measure == MeasurementLevel.ORDINAL:
            return list(ORDINAL_STATS)
        return list(NOMINAL_STATS)

    def compute(self, name: str) -> Any:
        cases = self.cases()
        getters = {
            "n": self.valid_n,
            "valid": self.valid_n,
            "missing": lambda: cases.missing_weight,
            "mean": self.mean,
            "sum": self.sum,
            "std_dev": self.std_dev,
            "variance": self.variance,
            "se_mean": self.se_mean,
            "minimum": self.minimum,
            "maximum": self.maximum,
            "range": self.range,
            "skewness": self.skewness,
            "se_skewness": self.se_skewness,
            "kurtosis": self.kurtosis,
            "se_kurtosis": self.se_kurtosis,
            "median": self.median,
            "percentile_25": lambda: self.percentile(25),
            "percentile_75": lambda: self.percentile(75),
            "iqr": self.iqr,
            "mode": self.mode,
        }
        if name not in getters:
            raise ValueError(f"Unknown statistic: {name}")
        return getters[name]()

    def statistics(self) -> StatisticsResult:
        """Statistics panel for the variable's measurement level."""
        if "statistics" in self._memo:
            return self._memo["statistics"]

        cases = self.cases()
        stats = {name: self.compute(name) for name in self.panel_names()}
        result = StatisticsResult(
            variable=self.variable.name,
            stats=stats,
            summary=cases.summary(),
            standardized=self.standardized() if self.options.save_standardized else None,
        )
        logger.debug(f"Descriptives for {self.variable.name}: W={cases.valid_weight:g}")
        self._memo["statistics"] = result
        return result
