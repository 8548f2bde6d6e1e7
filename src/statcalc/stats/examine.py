"""Exploratory statistics layered on the descriptive and frequency calculators."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from scipy import stats as sp_stats

from statcalc.data.variable import MeasurementLevel, VariableDef, VariableType
from statcalc.stats.config import ExamineOptions
from statcalc.stats.dates import DEFAULT_CODEC, DateCodec
from statcalc.stats.descriptive import DescriptiveCalculator, resolve_variable
from statcalc.stats.frequency import FrequencyCalculator
from statcalc.stats.labels import map_value_label
from statcalc.stats.missing import is_missing
from statcalc.stats.results import ExamineResult, percentile_key
from statcalc.stats.robust import PSI_FUNCTIONS, extreme_values, m_estimators, trimmed_mean

logger = logging.getLogger(__name__)

EXAMINE_PERCENTILES = (5, 10, 25, 50, 75, 90, 95)


def mean_confidence_interval(
    mean: Optional[float], se_mean: Optional[float], n: float, level: float = 0.95
) -> Dict[str, Optional[float]]:
    """Student-t interval for the mean.

    Args:
        mean: Sample mean
        se_mean: Standard error of the mean
        n: Weighted valid N (degrees of freedom are n - 1)
        level: Confidence level in (0, 1)

    Returns:
        ``{lower, upper}``; both None when n <= 1
    """
    if mean is None or se_mean is None or n <= 1:
        return {"lower": None, "upper": None}
    t_crit = float(sp_stats.t.ppf((1.0 + level) / 2.0, n - 1))
    half = t_crit * se_mean
    return {"lower": mean - half, "upper": mean + half}


class ExamineCalculator:
    """Exploratory statistics of one variable.

    Numeric (non-date) scale and ordinal variables get the full treatment:
    descriptives with a confidence interval and trimmed mean, percentiles,
    Tukey hinges, M-estimators and optionally extreme values. Every other
    variable gets the frequency summary and mode only.
    """

    def __init__(
        self,
        variable: Union[VariableDef, Mapping[str, Any]],
        data: Sequence[Any],
        weights: Optional[Sequence[Any]] = None,
        options: Optional[ExamineOptions] = None,
        *,
        classifier=is_missing,
        label_mapper=map_value_label,
        codec: DateCodec = DEFAULT_CODEC,
        case_numbers: Optional[Sequence[int]] = None,
    ):
        self.variable = resolve_variable(variable)
        self.data = data
        self.weights = weights
        self.options = options or ExamineOptions()
        self.case_numbers = case_numbers
        self.frequency = FrequencyCalculator(
            self.variable,
            data,
            weights,
            classifier=classifier,
            label_mapper=label_mapper,
            codec=codec,
            case_numbers=case_numbers,
        )
        self.descriptive = DescriptiveCalculator(
            self.variable,
            data,
            weights,
            classifier=classifier,
            label_mapper=label_mapper,
            codec=codec,
        )
        self._memo: Dict[str, Any] = {}

    @property
    def is_examinable(self) -> bool:
        return self.variable.core_type == VariableType.NUMERIC and self.variable.effective_measure in (
            MeasurementLevel.SCALE,
            MeasurementLevel.ORDINAL,
        )

    def hinges(self) -> Dict[str, Optional[float]]:
        lower, median, upper = self.descriptive.distribution().hinges()
        return {"lower": lower, "median": median, "upper": upper}

    def percentiles(self) -> Dict[str, Optional[float]]:
        dist = self.descriptive.distribution()
        method = self.options.percentile_method
        return {percentile_key(p): dist.percentile(p, method) for p in EXAMINE_PERCENTILES}

    def descriptives(self) -> Dict[str, Any]:
        """Descriptive panel with confidence interval, trimmed mean and hinge IQR."""
        desc = self.descriptive
        cases = desc.cases()
        hinges = self.hinges()
        ci = mean_confidence_interval(
            desc.mean(), desc.se_mean(), desc.valid_n(), self.options.confidence_level
        )
        iqr = None
        if hinges["lower"] is not None and hinges["upper"] is not None:
            iqr = hinges["upper"] - hinges["lower"]

        trimmed = None
        if not cases.is_empty:
            trimmed = trimmed_mean(cases.as_array(), cases.weights, self.options.trim_percent)

        return {
            "n": desc.valid_n(),
            "valid": cases.valid_weight,
            "missing": cases.missing_weight,
            "mean": desc.mean(),
            "se_mean": desc.se_mean(),
            "confidence_level": self.options.confidence_level,
            "ci_lower": ci["lower"],
            "ci_upper": ci["upper"],
            "trimmed_mean": trimmed,
            "median": desc.percentile(50, self.options.percentile_method),
            "variance": desc.variance(),
            "std_dev": desc.std_dev(),
            "minimum": desc.minimum(),
            "maximum": desc.maximum(),
            "range": desc.range(),
            "iqr": iqr,
            "skewness": desc.skewness(),
            "se_skewness": desc.se_skewness(),
            "kurtosis": desc.kurtosis(),
            "se_kurtosis": desc.se_kurtosis(),
        }

    def compute(self) -> ExamineResult:
        """Full exploratory result for the variable."""
        if "result" in self._memo:
            return self._memo["result"]

        summary = self.frequency.cases().summary()
        if not self.is_examinable:
            freq_cases = self.frequency.cases()
            result = ExamineResult(
                variable=self.variable.name,
                summary=summary,
                descriptives={
                    "n": freq_cases.valid_weight,
                    "valid": freq_cases.valid_weight,
                    "missing": freq_cases.missing_weight,
                    "mode": self.frequency.mode(),
                },
                frequency_table=self.frequency.frequency_table(),
            )
            self._memo["result"] = result
            return result

        cases = self.descriptive.cases()
        hinges = self.hinges()
        estimates: Dict[str, Optional[float]] = {name: None for name in PSI_FUNCTIONS}
        if not cases.is_empty:
            estimates = m_estimators(cases.as_array(), cases.weights, self.options.max_iterations)

        extremes = None
        if self.options.show_outliers and not cases.is_empty:
            extremes = extreme_values(
                cases,
                hinges["lower"],
                hinges["upper"],
                self.options.extreme_count,
                self.case_numbers,
            )

        result = ExamineResult(
            variable=self.variable.name,
            summary=summary,
            descriptives=self.descriptives(),
            percentiles=self.percentiles(),
            hinges=hinges,
            m_estimators=estimates,
            extreme_values=extremes,
        )
        logger.debug(f"Examine {self.variable.name}: W={cases.valid_weight:g}, estimates={estimates}")
        self._memo["result"] = result
        return result
