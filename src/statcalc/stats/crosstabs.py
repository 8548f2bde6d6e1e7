"""Weighted two-way contingency tables."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
from scipy import stats as sp_stats

from statcalc.data.variable import VariableDef
from statcalc.stats.cases import display_value, natural_key, normalize_weights, text_key
from statcalc.stats.coercion import parse_number, round_half_up, to_numeric, truncate
from statcalc.stats.config import CrosstabsOptions, NonintegerWeights
from statcalc.stats.dates import DEFAULT_CODEC, DateCodec
from statcalc.stats.descriptive import resolve_variable
from statcalc.stats.labels import map_value_label
from statcalc.stats.missing import is_missing
from statcalc.stats.results import CrosstabsResult

logger = logging.getLogger(__name__)


def adjust_weight(weight: float, mode: NonintegerWeights) -> float:
    """Apply the rounding or truncation of a non-integer weight mode."""
    if mode == NonintegerWeights.NO_ADJUSTMENT:
        return weight
    if mode.rounds:
        return round_half_up(weight)
    return truncate(weight)


@dataclass
class _Side:
    """How one variable of the table turns raw values into category keys."""

    variable: VariableDef
    domain: str  # "date", "numeric" or "text"

    def key(self, raw: Any, classifier, codec: DateCodec) -> Optional[Any]:
        numeric_type = not self.variable.is_string
        if classifier(raw, self.variable.missing, numeric_type):
            return None
        if self.domain == "text":
            return text_key(raw, numeric_type)
        x = to_numeric(raw, self.variable.core_type, codec)
        if x is None or classifier(x, self.variable.missing, True):
            return None
        return x

    def sort_key(self, key: Any):
        if self.domain == "text":
            return natural_key(key)
        return key

    def display(self, key: Any, codec: DateCodec) -> Any:
        if self.domain == "date":
            return codec.from_ordinal(key)
        if self.domain == "numeric":
            return display_value(key, self.variable, codec)
        return key


def _side_for(variable: VariableDef, raw_values: Sequence[Any], classifier, codec: DateCodec) -> _Side:
    """Choose the category domain of a table side.

    Dates when the variable is a date or any value is date-shaped, numeric
    when a non-string variable's valid values all coerce to numbers, text
    otherwise.
    """
    numeric_type = not variable.is_string
    present = [v for v in raw_values if not classifier(v, variable.missing, numeric_type)]
    if variable.is_date or any(codec.is_date_string(v) for v in present):
        return _Side(variable, "date")
    if numeric_type and all(parse_number(v) is not None for v in present):
        return _Side(variable, "numeric")
    return _Side(variable, "text")


class CrosstabsCalculator:
    """Contingency table of a row variable by a column variable.

    A case enters the table only when it has a usable weight and valid
    values on both sides; each side is classified with its own missing
    specification. Category axes are the ascending distinct valid values.

    Args:
        row: Row variable definition (or wire object)
        col: Column variable definition (or wire object)
        data: Case records mapping variable names to raw values
        weights: Optional case weights aligned to ``data``
        options: CrosstabsOptions
        classifier: Missing-value classifier
        label_mapper: Value-label lookup
        codec: Date codec

    Example:
        >>> calc = CrosstabsCalculator({"name": "a"}, {"name": "b"}, records)
        >>> result = calc.compute()
        >>> result.chi_square["value"], result.chi_square["df"]
    """

    def __init__(
        self,
        row: Union[VariableDef, Mapping[str, Any]],
        col: Union[VariableDef, Mapping[str, Any]],
        data: Sequence[Mapping[str, Any]],
        weights: Optional[Sequence[Any]] = None,
        options: Optional[CrosstabsOptions] = None,
        *,
        classifier=is_missing,
        label_mapper=map_value_label,
        codec: DateCodec = DEFAULT_CODEC,
    ):
        if data is None:
            raise ValueError("data is required")
        self.row = resolve_variable(row)
        self.col = resolve_variable(col)
        self.data = data
        self.weights = weights
        self.options = options or CrosstabsOptions()
        self.classifier = classifier
        self.label_mapper = label_mapper
        self.codec = codec
        self._memo: Dict[str, Any] = {}

    def _case_weights(self) -> np.ndarray:
        w = normalize_weights(self.weights, len(self.data))
        mode = self.options.noninteger_weights
        if mode.per_case:
            w = np.array([adjust_weight(x, mode) if x > 0 else 0.0 for x in w])
        return w

    def accumulate(self) -> Tuple[np.ndarray, List[Any], List[Any], Dict[str, float]]:
        """Observed table, row keys, column keys and the case summary."""
        if "table" in self._memo:
            return self._memo["table"]

        records = list(self.data)
        for rec in records:
            if not isinstance(rec, Mapping):
                raise ValueError(f"Crosstabs case records must be objects, got {type(rec).__name__}")
        row_raw = [rec.get(self.row.name) for rec in records]
        col_raw = [rec.get(self.col.name) for rec in records]
        row_side = _side_for(self.row, row_raw, self.classifier, self.codec)
        col_side = _side_for(self.col, col_raw, self.classifier, self.codec)

        mode = self.options.noninteger_weights
        weights = self._case_weights()
        cells: Dict[Tuple[Any, Any], float] = {}
        total = valid = 0.0

        for i, w in enumerate(weights):
            if w <= 0:
                continue
            total += w
            rk = row_side.key(row_raw[i], self.classifier, self.codec)
            ck = col_side.key(col_raw[i], self.classifier, self.codec)
            if rk is None or ck is None:
                continue
            valid += w
            cell_weight = adjust_weight(w, mode) if mode.per_cell else w
            if cell_weight <= 0:
                continue
            cells[(rk, ck)] = cells.get((rk, ck), 0.0) + cell_weight

        row_keys = sorted({k[0] for k in cells}, key=row_side.sort_key)
        col_keys = sorted({k[1] for k in cells}, key=col_side.sort_key)
        r_index = {k: i for i, k in enumerate(row_keys)}
        c_index = {k: j for j, k in enumerate(col_keys)}
        observed = np.zeros((len(row_keys), len(col_keys)))
        for (rk, ck), w in cells.items():
            observed[r_index[rk], c_index[ck]] += w

        summary = {
            "rows": len(row_keys),
            "cols": len(col_keys),
            "valid": valid,
            "missing": max(total - valid, 0.0),
            "total": total,
        }
        logger.debug(
            f"Crosstabs {self.row.name} x {self.col.name}: {observed.shape}, valid={valid:g}, mode={mode.value}"
        )
        self._memo["sides"] = (row_side, col_side)
        self._memo["table"] = (observed, row_keys, col_keys, summary)
        return self._memo["table"]

    def compute(self) -> CrosstabsResult:
        """Table, cell views, chi-square tests and association measures."""
        if "result" in self._memo:
            return self._memo["result"]

        observed, row_keys, col_keys, summary = self.accumulate()
        row_side, col_side = self._memo["sides"]
        row_values = [row_side.display(k, self.codec) for k in row_keys]
        col_values = [col_side.display(k, self.codec) for k in col_keys]

        result = CrosstabsResult(
            row=self.row.name,
            col=self.col.name,
            row_categories=row_values,
            col_categories=col_values,
            row_labels=[self.label_mapper(self.row, v) for v in row_values],
            col_labels=[self.label_mapper(self.col, v) for v in col_values],
            observed=observed,
            summary=summary,
            cells=cell_views(observed),
            chi_square=pearson_chi_square(observed),
            likelihood_ratio=likelihood_ratio(observed),
            measures=association_measures(
                observed,
                _scores(row_side, row_keys),
                _scores(col_side, col_keys),
                square=row_values == col_values,
            ),
        )
        self._memo["result"] = result
        return result


def _scores(side: _Side, keys: List[Any]) -> np.ndarray:
    if side.domain in ("numeric", "date"):
        return np.asarray(keys, dtype=float)
    return np.arange(1, len(keys) + 1, dtype=float)


def expected_counts(observed: np.ndarray) -> np.ndarray:
    total = observed.sum()
    if total <= 0:
        return np.zeros_like(observed)
    return np.outer(observed.sum(axis=1), observed.sum(axis=0)) / total


def _safe_divide(num: np.ndarray, den: np.ndarray) -> np.ndarray:
    out = np.full(np.broadcast(num, den).shape, np.nan)
    np.divide(num, den, out=out, where=np.broadcast_to(den, out.shape) != 0)
    return out


def cell_views(observed: np.ndarray) -> Dict[str, np.ndarray]:
    """Expected counts, percentages and residuals for every cell."""
    total = observed.sum()
    rt = observed.sum(axis=1, keepdims=True)
    ct = observed.sum(axis=0, keepdims=True)
    expected = expected_counts(observed)
    residual = observed - expected
    adj_den = expected * (1 - rt / total) * (1 - ct / total) if total > 0 else expected
    return {
        "expected": expected,
        "row_percent": 100.0 * _safe_divide(observed, rt),
        "column_percent": 100.0 * _safe_divide(observed, ct),
        "total_percent": 100.0 * _safe_divide(observed, np.asarray(total)),
        "residual": residual,
        "standardized_residual": _safe_divide(residual, np.sqrt(expected)),
        "adjusted_residual": _safe_divide(residual, np.sqrt(np.clip(adj_den, 0, None))),
    }


def pearson_chi_square(observed: np.ndarray) -> Optional[Dict[str, Any]]:
    """Pearson chi-square over cells with positive expected count.

    Returns:
        ``{value, df, p_value}``, or None for tables with fewer than two
        rows or columns
    """
    n_rows, n_cols = observed.shape
    if n_rows < 2 or n_cols < 2 or observed.sum() <= 0:
        return None
    expected = expected_counts(observed)
    mask = expected > 0
    value = float(np.sum((observed[mask] - expected[mask]) ** 2 / expected[mask]))
    df = (n_rows - 1) * (n_cols - 1)
    return {"value": value, "df": df, "p_value": float(sp_stats.chi2.sf(value, df))}


def likelihood_ratio(observed: np.ndarray) -> Optional[Dict[str, Any]]:
    """Likelihood-ratio chi-square ``G2 = 2 * sum(O * ln(O / E))``."""
    n_rows, n_cols = observed.shape
    if n_rows < 2 or n_cols < 2 or observed.sum() <= 0:
        return None
    expected = expected_counts(observed)
    mask = (observed > 0) & (expected > 0)
    value = float(2.0 * np.sum(observed[mask] * np.log(observed[mask] / expected[mask])))
    df = (n_rows - 1) * (n_cols - 1)
    return {"value": value, "df": df, "p_value": float(sp_stats.chi2.sf(value, df))}


def concordance(observed: np.ndarray) -> Tuple[float, float]:
    """Weighted concordant and discordant pair counts."""
    n_rows, n_cols = observed.shape
    concordant = discordant = 0.0
    for i in range(n_rows):
        for j in range(n_cols):
            if observed[i, j] == 0:
                continue
            concordant += observed[i, j] * observed[i + 1:, j + 1:].sum()
            discordant += observed[i, j] * observed[i + 1:, :j].sum()
    return concordant, discordant


def _ratio(num: float, den: float) -> Optional[float]:
    if den == 0 or not math.isfinite(den):
        return None
    return num / den


def _weighted_correlation(observed: np.ndarray, row_scores: np.ndarray, col_scores: np.ndarray) -> Optional[float]:
    total = observed.sum()
    if total <= 0:
        return None
    rt, ct = observed.sum(axis=1), observed.sum(axis=0)
    mx = np.dot(rt, row_scores) / total
    my = np.dot(ct, col_scores) / total
    dx, dy = row_scores - mx, col_scores - my
    cov = float(dx @ observed @ dy)
    var_x = float(np.dot(rt, dx ** 2))
    var_y = float(np.dot(ct, dy ** 2))
    if var_x <= 0 or var_y <= 0:
        return None
    return cov / math.sqrt(var_x * var_y)


def _midranks(totals: np.ndarray) -> np.ndarray:
    return np.cumsum(totals) - totals + (totals + 1) / 2.0


def association_measures(
    observed: np.ndarray,
    row_scores: Optional[np.ndarray] = None,
    col_scores: Optional[np.ndarray] = None,
    square: bool = False,
) -> Dict[str, Optional[float]]:
    """Nominal, ordinal and agreement measures of a contingency table.

    Args:
        observed: Observed weighted counts
        row_scores: Numeric scores of the row categories (default: 1..R)
        col_scores: Numeric scores of the column categories (default: 1..C)
        square: Whether rows and columns share the same categories (kappa)

    Returns:
        Measure name -> value (None when undefined)
    """
    names = [
        "phi", "contingency_coefficient", "cramers_v",
        "lambda_symmetric", "lambda_row", "lambda_col",
        "goodman_kruskal_tau_row", "goodman_kruskal_tau_col",
        "gamma", "kendall_tau_b", "kendall_tau_c",
        "somers_d_symmetric", "somers_d_row", "somers_d_col",
        "pearson_r", "spearman", "kappa",
    ]
    measures: Dict[str, Optional[float]] = {name: None for name in names}
    n_rows, n_cols = observed.shape
    T = float(observed.sum())
    if n_rows < 2 or n_cols < 2 or T <= 0:
        return measures

    rt, ct = observed.sum(axis=1), observed.sum(axis=0)
    chi2 = pearson_chi_square(observed)["value"]
    k = min(n_rows, n_cols)
    measures["phi"] = math.sqrt(chi2 / T)
    measures["contingency_coefficient"] = math.sqrt(chi2 / (chi2 + T))
    measures["cramers_v"] = math.sqrt(chi2 / (T * (k - 1)))

    # Lambda: proportional reduction in error predicting one side from the other
    max_in_cols = observed.max(axis=0).sum()
    max_in_rows = observed.max(axis=1).sum()
    measures["lambda_row"] = _ratio(max_in_cols - rt.max(), T - rt.max())
    measures["lambda_col"] = _ratio(max_in_rows - ct.max(), T - ct.max())
    measures["lambda_symmetric"] = _ratio(
        max_in_cols + max_in_rows - rt.max() - ct.max(), 2 * T - rt.max() - ct.max()
    )

    sum_r2 = float(np.sum(rt ** 2))
    sum_c2 = float(np.sum(ct ** 2))
    with np.errstate(divide="ignore", invalid="ignore"):
        by_col = np.nansum(observed ** 2 / ct[np.newaxis, :])
        by_row = np.nansum(observed ** 2 / rt[:, np.newaxis])
    measures["goodman_kruskal_tau_row"] = _ratio(T * by_col - sum_r2, T ** 2 - sum_r2)
    measures["goodman_kruskal_tau_col"] = _ratio(T * by_row - sum_c2, T ** 2 - sum_c2)

    P, Q = concordance(observed)
    d_rows = T ** 2 - sum_r2
    d_cols = T ** 2 - sum_c2
    measures["gamma"] = _ratio(P - Q, P + Q)
    measures["kendall_tau_b"] = _ratio(2 * (P - Q), math.sqrt(d_rows * d_cols))
    measures["kendall_tau_c"] = _ratio(2 * k * (P - Q), T ** 2 * (k - 1))
    measures["somers_d_symmetric"] = _ratio(4 * (P - Q), d_rows + d_cols)
    measures["somers_d_row"] = _ratio(2 * (P - Q), d_cols)
    measures["somers_d_col"] = _ratio(2 * (P - Q), d_rows)

    rs = np.arange(1, n_rows + 1, dtype=float) if row_scores is None else row_scores
    cs = np.arange(1, n_cols + 1, dtype=float) if col_scores is None else col_scores
    measures["pearson_r"] = _weighted_correlation(observed, rs, cs)
    measures["spearman"] = _weighted_correlation(observed, _midranks(rt), _midranks(ct))

    if square and n_rows == n_cols:
        po = float(np.trace(observed)) / T
        pe = float(np.dot(rt, ct)) / T ** 2
        measures["kappa"] = _ratio(po - pe, 1 - pe)

    return measures
