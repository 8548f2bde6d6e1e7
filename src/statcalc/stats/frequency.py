"""Weighted frequency tables."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from statcalc.data.variable import MeasurementLevel, VariableDef
from statcalc.stats.cases import (
    CaseSelection,
    collect_cases,
    display_category,
    display_value,
    group_weights,
    uses_numeric_domain,
    weighted_modes,
)
from statcalc.stats.config import FrequencyOptions, PercentileMethod
from statcalc.stats.dates import DEFAULT_CODEC, DateCodec
from statcalc.stats.descriptive import NOMINAL_STATS, DescriptiveCalculator, resolve_variable
from statcalc.stats.labels import map_value_label
from statcalc.stats.missing import is_missing
from statcalc.stats.percentiles import WeightedDistribution
from statcalc.stats.results import ExtremeValues, FrequencyRow, StatisticsResult, percentile_key
from statcalc.stats.robust import extreme_values

logger = logging.getLogger(__name__)


class FrequencyCalculator:
    """Frequency table and statistics panel of one variable.

    Numeric and date variables group by numeric value (dates by ordinal),
    string variables by trimmed text. Rows are in ascending order.
    """

    def __init__(
        self,
        variable: Union[VariableDef, Mapping[str, Any]],
        data: Sequence[Any],
        weights: Optional[Sequence[Any]] = None,
        options: Optional[FrequencyOptions] = None,
        *,
        classifier=is_missing,
        label_mapper=map_value_label,
        codec: DateCodec = DEFAULT_CODEC,
        case_numbers: Optional[Sequence[int]] = None,
    ):
        self.variable = resolve_variable(variable)
        self.data = data
        self.weights = weights
        self.options = options or FrequencyOptions()
        self.classifier = classifier
        self.label_mapper = label_mapper
        self.codec = codec
        self.case_numbers = case_numbers
        self._memo: Dict[str, Any] = {}

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

    def distribution(self) -> WeightedDistribution:
        if "distribution" not in self._memo:
            cases = self.cases()
            values = cases.as_array() if cases.numeric else []
            weights = cases.weights if cases.numeric else []
            self._memo["distribution"] = WeightedDistribution.from_cases(values, weights)
        return self._memo["distribution"]

    def frequency_table(self) -> List[FrequencyRow]:
        """Rows with frequency, percent of total, valid percent and cumulative percent."""
        if "table" in self._memo:
            return self._memo["table"]

        cases = self.cases()
        W = cases.valid_weight
        T = cases.total_weight
        rows: List[FrequencyRow] = []
        cumulative = 0.0
        for value, freq in group_weights(cases.values, cases.weights, cases.numeric):
            shown = display_category(value, cases.numeric, self.variable, self.codec)
            valid_pct = 100.0 * freq / W if W > 0 else None
            cumulative += valid_pct or 0.0
            rows.append(
                FrequencyRow(
                    value=shown,
                    label=self.label_mapper(self.variable, shown),
                    frequency=freq,
                    percent=100.0 * freq / T if T > 0 else None,
                    valid_percent=valid_pct,
                    cumulative_percent=min(cumulative, 100.0),
                )
            )
        self._memo["table"] = rows
        return rows

    def mode(self) -> Optional[List[Any]]:
        cases = self.cases()
        if cases.is_empty:
            return None
        modes = weighted_modes(cases.values, cases.weights, cases.numeric)
        return [display_category(v, cases.numeric, self.variable, self.codec) for v in modes]

    def get_percentile(self, p: float, method: Optional[PercentileMethod] = None) -> Optional[float]:
        """Percentile ``p`` (0-100); None for string variables or no valid cases."""
        if not self.is_numeric:
            return None
        method = method or self.options.percentile_method
        return self.distribution().percentile(p, method)

    def get_extreme_values(self, count: int = 5) -> Optional[ExtremeValues]:
        """Highest and lowest cases tagged against 1.5/3 IQR fences on the quartiles."""
        if not self.is_numeric or self.cases().is_empty:
            return None
        q1 = self.get_percentile(25, PercentileMethod.WAVERAGE)
        q3 = self.get_percentile(75, PercentileMethod.WAVERAGE)
        return extreme_values(
            self.cases(),
            q1,
            q3,
            count,
            self.case_numbers,
            render=lambda v: display_value(v, self.variable, self.codec),
        )

    def _stats_panel(self) -> Dict[str, Any]:
        cases = self.cases()
        measure = self.variable.effective_measure
        if self.is_numeric and measure in (MeasurementLevel.SCALE, MeasurementLevel.ORDINAL):
            descriptive = DescriptiveCalculator(
                self.variable,
                self.data,
                self.weights,
                classifier=self.classifier,
                label_mapper=self.label_mapper,
                codec=self.codec,
            )
            stats = dict(descriptive.statistics().stats)
        else:
            stats = {
                "n": cases.valid_weight,
                "valid": cases.valid_weight,
                "missing": cases.missing_weight,
            }
        stats["mode"] = self.mode()

        if self.is_numeric:
            for p in self.options.requested_percentiles():
                stats[percentile_key(p)] = self.get_percentile(p)
        return {k: stats[k] for k in _ordered(stats)}

    def statistics(self) -> StatisticsResult:
        """Statistics panel plus (optionally) the frequency table."""
        if "statistics" in self._memo:
            return self._memo["statistics"]
        cases = self.cases()
        result = StatisticsResult(
            variable=self.variable.name,
            stats=self._stats_panel(),
            summary=cases.summary(),
            frequency_table=self.frequency_table() if self.options.display_frequency else None,
        )
        logger.debug(
            f"Frequencies for {self.variable.name}: {len(self.frequency_table())} distinct values"
        )
        self._memo["statistics"] = result
        return result


def _ordered(stats: Dict[str, Any]) -> List[str]:
    head = [k for k in NOMINAL_STATS if k in stats]
    return head + [k for k in stats if k not in head]
