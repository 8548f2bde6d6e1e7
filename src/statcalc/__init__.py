"""
statcalc: Weighted statistics engine for survey-style variables.

This package provides:
- Descriptive statistics with bias-corrected skewness and kurtosis
- Frequency tables with weighted percentages and percentile methods
- Two-way contingency tables with chi-square and association measures
- Exploratory (examine) statistics: trimmed mean, M-estimators, hinges
- A request/response API and a Typer CLI over CSV/Parquet tables
"""

__version__ = "0.1.0"

from statcalc.data.variable import VariableDef, MeasurementLevel, VariableType
from statcalc.stats.descriptive import DescriptiveCalculator
from statcalc.stats.frequency import FrequencyCalculator
from statcalc.stats.crosstabs import CrosstabsCalculator
from statcalc.stats.examine import ExamineCalculator

__all__ = [
    "__version__",
    "VariableDef",
    "MeasurementLevel",
    "VariableType",
    "DescriptiveCalculator",
    "FrequencyCalculator",
    "CrosstabsCalculator",
    "ExamineCalculator",
]
