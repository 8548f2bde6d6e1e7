"""Value-label lookup."""

from __future__ import annotations

from collections.abc import Hashable
from typing import Any

from statcalc.data.variable import VariableDef
from statcalc.stats.coercion import parse_number
from statcalc.stats.missing import canonical_text


def map_value_label(variable: VariableDef, raw: Any) -> str:
    """Return the configured label for a value, else the value as text.

    Lookup tries the exact key, then the canonical string form, then numeric
    equality, so a label keyed ``"1"`` matches an observed ``1.0``.
    """
    labels = variable.value_labels or {}
    if labels:
        if isinstance(raw, Hashable) and raw in labels:
            return labels[raw]

        text = canonical_text(raw)
        number = parse_number(raw)
        for key, label in labels.items():
            if canonical_text(key) == text:
                return label
            if number is not None and parse_number(key) == number:
                return label

    if raw is None:
        return ""
    return canonical_text(raw)
