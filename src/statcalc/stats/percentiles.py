"""Weighted distributions, percentile definitions and Tukey hinges."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence, Tuple

import numpy as np

from statcalc.stats.coercion import round_half_up
from statcalc.stats.config import PercentileMethod

_RANK_EPS = 1e-9


@dataclass(frozen=True)
class WeightedDistribution:
    """Distinct sorted values with their summed weights.

    Attributes:
        values: Distinct values in ascending order
        counts: Summed case weight of each value
    """

    values: np.ndarray
    counts: np.ndarray

    @classmethod
    def from_cases(cls, values: Sequence[float], weights: Optional[Sequence[float]] = None) -> WeightedDistribution:
        x = np.asarray(values, dtype=float)
        w = np.ones_like(x) if weights is None else np.asarray(weights, dtype=float)
        keep = np.isfinite(x) & np.isfinite(w) & (w > 0)
        x, w = x[keep], w[keep]
        if len(x) == 0:
            return cls(np.empty(0), np.empty(0))
        distinct, inverse = np.unique(x, return_inverse=True)
        counts = np.bincount(inverse, weights=w)
        return cls(distinct, counts)

    @property
    def total(self) -> float:
        return float(self.counts.sum()) if len(self.counts) else 0.0

    @property
    def cumulative(self) -> np.ndarray:
        return np.cumsum(self.counts)

    @property
    def is_empty(self) -> bool:
        return len(self.values) == 0 or self.total <= 0

    def value_at_rank(self, rank: float) -> float:
        """Smallest value whose cumulative weight reaches ``rank`` (1-based)."""
        cum = self.cumulative
        idx = int(np.searchsorted(cum, rank - _RANK_EPS, side="left"))
        idx = min(max(idx, 0), len(self.values) - 1)
        return float(self.values[idx])

    def _interpolate(self, position: float) -> float:
        lower = math.floor(position)
        frac = position - lower
        x_lo = self.value_at_rank(max(lower, 1))
        if frac < _RANK_EPS:
            return x_lo
        x_hi = self.value_at_rank(lower + 1)
        return (1.0 - frac) * x_lo + frac * x_hi

    def percentile(self, p: float, method: PercentileMethod = PercentileMethod.HAVERAGE) -> Optional[float]:
        """Percentile ``p`` (0-100) by the given definition.

        Args:
            p: Percentile in [0, 100]
            method: Percentile definition

        Returns:
            The percentile value, or None for an empty distribution

        Raises:
            ValueError: If ``p`` is outside [0, 100]
        """
        if p < 0 or p > 100:
            raise ValueError(f"Percentile must be in [0, 100], got {p}")
        if self.is_empty:
            return None

        method = PercentileMethod.from_wire(method)
        W = self.total
        q = p / 100.0
        first, last = float(self.values[0]), float(self.values[-1])

        if method == PercentileMethod.TUKEY_HINGES:
            target = round_half_up(p)
            if target in (25, 50, 75):
                lower, median, upper = self.hinges()
                return {25: lower, 50: median, 75: upper}[int(target)]
            method = PercentileMethod.WAVERAGE

        if method == PercentileMethod.HAVERAGE:
            position = (W + 1.0) * q
            if position <= 1.0:
                return first
            if position >= W:
                return last
            return self._interpolate(position)

        position = W * q
        if position <= 0:
            return first
        if position >= W:
            return last

        if method == PercentileMethod.WAVERAGE:
            return self._interpolate(position)

        if method == PercentileMethod.ROUND:
            return self.value_at_rank(max(round_half_up(position), 1.0))

        whole = abs(position - round(position)) < _RANK_EPS
        if method == PercentileMethod.EMPIRICAL:
            return self.value_at_rank(round(position) if whole else math.ceil(position))

        if method == PercentileMethod.AEMPIRICAL:
            if whole:
                r = round(position)
                return 0.5 * (self.value_at_rank(r) + self.value_at_rank(r + 1))
            return self.value_at_rank(math.ceil(position))

        raise ValueError(f"Unsupported percentile method: {method}")

    def percentiles(
        self, ps: Iterable[float], method: PercentileMethod = PercentileMethod.HAVERAGE
    ) -> Dict[float, Optional[float]]:
        return {float(p): self.percentile(p, method) for p in ps}

    def hinges(self) -> Tuple[Optional[float], Optional[float], Optional[float]]:
        """Tukey's lower hinge, median and upper hinge.

        Fractional weights are rounded (at least 1 per distinct value) so
        depths refer to whole cases. The median sits at depth ``(n+1)/2``
        and the hinges at depth ``(floor(median depth)+1)/2`` from each end;
        half depths average the two neighbouring cases.
        """
        if self.is_empty:
            return None, None, None

        counts = np.array([max(1.0, round_half_up(c)) for c in self.counts])
        expanded = _Expanded(self.values, counts)
        n = expanded.n

        depth_median = (n + 1) / 2.0
        depth_hinge = (math.floor(depth_median) + 1) / 2.0

        median = expanded.at_depth(depth_median)
        lower = expanded.at_depth(depth_hinge)
        upper = expanded.at_depth(n + 1 - depth_hinge)
        return lower, median, upper


class _Expanded:
    """Order statistics of a value/count table without materializing it."""

    def __init__(self, values: np.ndarray, counts: np.ndarray):
        self.values = values
        self.cum = np.cumsum(counts)
        self.n = float(self.cum[-1])

    def at(self, rank: int) -> float:
        idx = int(np.searchsorted(self.cum, rank - _RANK_EPS, side="left"))
        return float(self.values[min(idx, len(self.values) - 1)])

    def at_depth(self, depth: float) -> float:
        lo = math.floor(depth)
        if depth - lo < _RANK_EPS:
            return self.at(lo)
        return 0.5 * (self.at(lo) + self.at(lo + 1))
