"""Robust location estimates: trimmed mean, M-estimators and extreme values."""

from __future__ import annotations

import logging
import math
from typing import Any, Callable, Dict, Optional, Sequence

import numpy as np

from statcalc.stats.config import PercentileMethod
from statcalc.stats.percentiles import WeightedDistribution
from statcalc.stats.results import ExtremeCase, ExtremeValues

logger = logging.getLogger(__name__)

# Tuning constants (SPSS EXAMINE defaults)
HUBER_K = 1.339
HAMPEL_A, HAMPEL_B, HAMPEL_C = 1.7, 3.4, 8.5
ANDREWS_C = 1.34
TUKEY_C = 4.685

# MAD of a standard normal
MAD_NORMAL = 0.6745

OUTLIER_STEP = 1.5
EXTREME_STEP = 3.0


def trimmed_mean(
    values: Sequence[float], weights: Optional[Sequence[float]] = None, percent: float = 5.0
) -> Optional[float]:
    """Weighted mean after trimming ``percent`` of the total weight from each tail.

    Args:
        values: Observations
        weights: Case weights (default: ones)
        percent: Percent of total weight trimmed from each end (0-50)

    Returns:
        Trimmed mean, or None without valid cases

    Notes:
        Cases straddling a cut keep only their retained fraction of weight,
        so the result is continuous in ``percent`` and equals the mean for
        symmetric data.
    """
    x = np.asarray(values, dtype=float)
    w = np.ones_like(x) if weights is None else np.asarray(weights, dtype=float)
    if len(x) == 0 or w.sum() <= 0:
        return None

    order = np.argsort(x, kind="mergesort")
    x, w = x[order], w[order]
    W = float(w.sum())
    cut = W * percent / 100.0

    start = np.cumsum(w) - w
    retained = np.minimum(start + w, W - cut) - np.maximum(start, cut)
    retained = np.clip(retained, 0.0, None)
    if retained.sum() <= 0:
        return WeightedDistribution.from_cases(x, w).percentile(50, PercentileMethod.HAVERAGE)
    return float(np.dot(retained, x) / retained.sum())


def huber_psi(u: np.ndarray, k: float = HUBER_K) -> np.ndarray:
    return np.clip(u, -k, k)


def hampel_psi(
    u: np.ndarray, a: float = HAMPEL_A, b: float = HAMPEL_B, c: float = HAMPEL_C
) -> np.ndarray:
    au = np.abs(u)
    sign = np.sign(u)
    return np.where(
        au <= a,
        u,
        np.where(
            au <= b,
            a * sign,
            np.where(au <= c, a * sign * (c - au) / (c - b), 0.0),
        ),
    )


def andrews_psi(u: np.ndarray, c: float = ANDREWS_C) -> np.ndarray:
    return np.where(np.abs(u) <= c * math.pi, c * np.sin(u / c), 0.0)


def tukey_psi(u: np.ndarray, c: float = TUKEY_C) -> np.ndarray:
    return np.where(np.abs(u) <= c, u * (1.0 - (u / c) ** 2) ** 2, 0.0)


PSI_FUNCTIONS: Dict[str, Callable[[np.ndarray], np.ndarray]] = {
    "huber": huber_psi,
    "hampel": hampel_psi,
    "andrews": andrews_psi,
    "tukey": tukey_psi,
}


def _psi_weights(psi: Callable[[np.ndarray], np.ndarray], u: np.ndarray) -> np.ndarray:
    out = np.ones_like(u)
    nonzero = np.abs(u) > 1e-12
    out[nonzero] = psi(u[nonzero]) / u[nonzero]
    return out


def m_estimate(
    values: Sequence[float],
    weights: Optional[Sequence[float]] = None,
    estimator: str = "huber",
    max_iterations: int = 30,
    tol: float = 1e-6,
) -> Optional[float]:
    """Iteratively reweighted M-estimate of location.

    Args:
        values: Observations
        weights: Case weights (default: ones)
        estimator: One of ``huber``, ``hampel``, ``andrews``, ``tukey``
        max_iterations: Iteration cap
        tol: Relative convergence tolerance on the location change

    Returns:
        Location estimate, or None without valid cases

    Notes:
        Starts at the weighted median with scale MAD/0.6745; returns the
        median when the MAD is zero.
    """
    if estimator not in PSI_FUNCTIONS:
        raise ValueError(f"Unknown M-estimator: {estimator}. Expected one of {sorted(PSI_FUNCTIONS)}")

    x = np.asarray(values, dtype=float)
    w = np.ones_like(x) if weights is None else np.asarray(weights, dtype=float)
    if len(x) == 0 or w.sum() <= 0:
        return None

    median = WeightedDistribution.from_cases(x, w).percentile(50, PercentileMethod.HAVERAGE)
    mad = WeightedDistribution.from_cases(np.abs(x - median), w).percentile(50, PercentileMethod.HAVERAGE)
    scale = mad / MAD_NORMAL
    if scale <= 0:
        return median

    psi = PSI_FUNCTIONS[estimator]
    location = median
    for iteration in range(1, max_iterations + 1):
        u = (x - location) / scale
        case_weights = w * _psi_weights(psi, u)
        total = case_weights.sum()
        if total <= 0:
            logger.debug(f"{estimator}: all cases rejected at iteration {iteration}")
            break
        updated = float(np.dot(case_weights, x) / total)
        change = abs(updated - location)
        location = updated
        if change < tol * max(1.0, abs(location)):
            logger.debug(f"{estimator}: converged after {iteration} iterations")
            break
    return location


def m_estimators(
    values: Sequence[float], weights: Optional[Sequence[float]] = None, max_iterations: int = 30
) -> Dict[str, Optional[float]]:
    """All four M-estimates keyed by estimator name."""
    return {
        name: m_estimate(values, weights, name, max_iterations=max_iterations)
        for name in PSI_FUNCTIONS
    }


def classify_value(value: float, q1: Optional[float], q3: Optional[float]) -> str:
    """``extreme`` beyond 3 IQR, ``outlier`` beyond 1.5 IQR, else ``normal``."""
    if q1 is None or q3 is None:
        return "normal"
    iqr = q3 - q1
    if value < q1 - EXTREME_STEP * iqr or value > q3 + EXTREME_STEP * iqr:
        return "extreme"
    if value < q1 - OUTLIER_STEP * iqr or value > q3 + OUTLIER_STEP * iqr:
        return "outlier"
    return "normal"


def extreme_values(
    cases,
    q1: Optional[float],
    q3: Optional[float],
    count: int = 5,
    case_numbers: Optional[Sequence[int]] = None,
    render: Optional[Callable[[float], Any]] = None,
) -> ExtremeValues:
    """Highest and lowest ``count`` cases with their fence classification.

    Args:
        cases: CaseSelection in the numeric domain
        q1: Lower quartile (or hinge)
        q3: Upper quartile (or hinge)
        count: Cases reported at each end
        case_numbers: Case numbers aligned to the input (default: position + 1)
        render: Display conversion for values
    """
    render = render or (lambda v: v)
    entries = []
    for idx, value in zip(cases.indices, cases.values):
        number = case_numbers[idx] if case_numbers is not None else idx + 1
        entries.append((int(number), float(value)))

    def build(selected):
        return [ExtremeCase(n, render(v), classify_value(v, q1, q3)) for n, v in selected]

    highest = sorted(entries, key=lambda e: (-e[1], e[0]))[:count]
    lowest = sorted(entries, key=lambda e: (e[1], e[0]))[:count]

    fences: Dict[str, Optional[float]] = {
        "lower_outer": None,
        "lower_inner": None,
        "upper_inner": None,
        "upper_outer": None,
    }
    if q1 is not None and q3 is not None:
        iqr = q3 - q1
        fences = {
            "lower_outer": q1 - EXTREME_STEP * iqr,
            "lower_inner": q1 - OUTLIER_STEP * iqr,
            "upper_inner": q3 + OUTLIER_STEP * iqr,
            "upper_outer": q3 + EXTREME_STEP * iqr,
        }
    return ExtremeValues(highest=build(highest), lowest=build(lowest), fences=fences)
