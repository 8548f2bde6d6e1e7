"""Result containers returned by the calculators."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np

from statcalc.stats.coercion import clean_number


def to_plain(obj: Any) -> Any:
    """Recursively convert numpy containers/scalars to plain Python, NaN to None."""
    if isinstance(obj, dict):
        return {str(k) if not isinstance(k, str) else k: to_plain(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_plain(v) for v in obj]
    if isinstance(obj, np.ndarray):
        return [to_plain(v) for v in obj.tolist()]
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return clean_number(obj)


def percentile_key(p: float) -> str:
    """Stats key of a percentile (``25.0`` -> ``percentile_25``)."""
    p = float(p)
    text = str(int(p)) if p.is_integer() else f"{p:g}".replace(".", "_")
    return f"percentile_{text}"


@dataclass
class FrequencyRow:
    """One row of a frequency table."""

    value: Any
    label: str
    frequency: float
    percent: float
    valid_percent: float
    cumulative_percent: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "value": clean_number(self.value),
            "label": self.label,
            "frequency": clean_number(self.frequency),
            "percent": clean_number(self.percent),
            "valid_percent": clean_number(self.valid_percent),
            "cumulative_percent": clean_number(self.cumulative_percent),
        }


@dataclass
class StatisticsResult:
    """Statistics of one variable.

    Attributes:
        variable: Variable name
        stats: Metric name -> value (None when undefined for this N)
        summary: ``{valid, missing, total}`` weighted counts
        frequency_table: Rows of the frequency table, if requested
        standardized: z-scores aligned to the input, if requested
    """

    variable: str
    stats: Dict[str, Any]
    summary: Dict[str, float]
    frequency_table: Optional[List[FrequencyRow]] = None
    standardized: Optional[List[Optional[float]]] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "variable": self.variable,
            "stats": to_plain(self.stats),
            "summary": to_plain(self.summary),
        }
        if self.frequency_table is not None:
            out["frequency_table"] = [row.to_dict() for row in self.frequency_table]
        if self.standardized is not None:
            out["standardized"] = to_plain(self.standardized)
        return out


@dataclass
class ExtremeCase:
    """A highest or lowest case."""

    case_number: int
    value: Any
    kind: str

    def to_dict(self) -> Dict[str, Any]:
        return {"case_number": self.case_number, "value": clean_number(self.value), "type": self.kind}


@dataclass
class ExtremeValues:
    """Highest and lowest cases with Tukey fences."""

    highest: List[ExtremeCase]
    lowest: List[ExtremeCase]
    fences: Dict[str, Optional[float]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "highest": [c.to_dict() for c in self.highest],
            "lowest": [c.to_dict() for c in self.lowest],
            "fences": to_plain(self.fences),
        }


@dataclass
class ExamineResult:
    """Exploratory statistics of one variable."""

    variable: str
    summary: Dict[str, float]
    descriptives: Dict[str, Any]
    percentiles: Dict[str, Optional[float]] = field(default_factory=dict)
    hinges: Dict[str, Optional[float]] = field(default_factory=dict)
    m_estimators: Dict[str, Optional[float]] = field(default_factory=dict)
    extreme_values: Optional[ExtremeValues] = None
    frequency_table: Optional[List[FrequencyRow]] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "variable": self.variable,
            "summary": to_plain(self.summary),
            "descriptives": to_plain(self.descriptives),
            "percentiles": to_plain(self.percentiles),
            "hinges": to_plain(self.hinges),
            "m_estimators": to_plain(self.m_estimators),
        }
        if self.extreme_values is not None:
            out["extreme_values"] = self.extreme_values.to_dict()
        if self.frequency_table is not None:
            out["frequency_table"] = [row.to_dict() for row in self.frequency_table]
        return out


@dataclass
class CrosstabsResult:
    """Two-way contingency table with derived views and statistics."""

    row: str
    col: str
    row_categories: List[Any]
    col_categories: List[Any]
    row_labels: List[str]
    col_labels: List[str]
    observed: np.ndarray
    summary: Dict[str, float]
    cells: Dict[str, np.ndarray] = field(default_factory=dict)
    chi_square: Optional[Dict[str, Any]] = None
    likelihood_ratio: Optional[Dict[str, Any]] = None
    measures: Dict[str, Optional[float]] = field(default_factory=dict)

    @property
    def row_totals(self) -> np.ndarray:
        return self.observed.sum(axis=1)

    @property
    def col_totals(self) -> np.ndarray:
        return self.observed.sum(axis=0)

    @property
    def total(self) -> float:
        return float(self.observed.sum())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "row": self.row,
            "col": self.col,
            "row_categories": to_plain(self.row_categories),
            "col_categories": to_plain(self.col_categories),
            "row_labels": list(self.row_labels),
            "col_labels": list(self.col_labels),
            "observed": to_plain(self.observed),
            "row_totals": to_plain(self.row_totals),
            "col_totals": to_plain(self.col_totals),
            "total": clean_number(self.total),
            "cells": to_plain(self.cells),
            "chi_square": to_plain(self.chi_square),
            "likelihood_ratio": to_plain(self.likelihood_ratio),
            "measures": to_plain(self.measures),
            "summary": to_plain(self.summary),
        }
