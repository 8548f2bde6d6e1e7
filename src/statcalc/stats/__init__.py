"""Weighted statistics calculators.

This module provides the computation engine behind the ``statcalc`` API:

- Descriptives (moments with bias-corrected skewness and kurtosis)
- Frequencies (weighted tables, modes, percentile definitions)
- Crosstabs (contingency tables, chi-square, association measures)
- Examine (trimmed mean, M-estimators, Tukey hinges, extreme values)

Public API:
-----------
from statcalc.stats import run_frequencies

response = run_frequencies({
    "variable": {"name": "grade", "type": "STRING"},
    "data": ["A", "B", "A", None],
})
"""

from statcalc.stats.api import (
    handle_request,
    run_crosstabs,
    run_descriptives,
    run_examine,
    run_frequencies,
)
from statcalc.stats.config import (
    CellOptions,
    CrosstabsOptions,
    DescriptiveOptions,
    ExamineOptions,
    FrequencyOptions,
    NonintegerWeights,
    PercentileMethod,
)

__all__ = [
    "handle_request",
    "run_crosstabs",
    "run_descriptives",
    "run_examine",
    "run_frequencies",
    "CellOptions",
    "CrosstabsOptions",
    "DescriptiveOptions",
    "ExamineOptions",
    "FrequencyOptions",
    "NonintegerWeights",
    "PercentileMethod",
]
