"""Date codec between ``dd-mm-yyyy`` strings and SPSS-style ordinals.

Ordinals are seconds since 14 October 1582 (the start of the Gregorian
calendar), so decoded dates sort and group numerically and can share the
numeric code paths of the calculators.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Optional

SPSS_EPOCH = date(1582, 10, 14)
SECONDS_PER_DAY = 86400

_FORMAT_PATTERNS = {
    "%d-%m-%Y": r"^\d{2}-\d{2}-\d{4}$",
    "%m/%d/%Y": r"^\d{2}/\d{2}/\d{4}$",
    "%Y-%m-%d": r"^\d{4}-\d{2}-\d{2}$",
    "%d.%m.%Y": r"^\d{2}\.\d{2}\.\d{4}$",
}


@dataclass(frozen=True)
class DateCodec:
    """Encode and decode date strings of a fixed format.

    Attributes:
        fmt: ``strftime`` format of the wire strings (default ``%d-%m-%Y``)
    """

    fmt: str = "%d-%m-%Y"

    def __post_init__(self):
        if self.fmt not in _FORMAT_PATTERNS:
            raise ValueError(
                f"Unsupported date format {self.fmt!r}. Supported: {sorted(_FORMAT_PATTERNS)}"
            )

    @property
    def pattern(self) -> re.Pattern:
        return re.compile(_FORMAT_PATTERNS[self.fmt])

    def is_date_string(self, value: Any) -> bool:
        """True if ``value`` has the shape of a date string (validity not checked)."""
        return isinstance(value, str) and self.pattern.match(value.strip()) is not None

    def to_ordinal(self, value: Any) -> Optional[float]:
        """Decode a date string into seconds since the epoch; None if invalid."""
        if not self.is_date_string(value):
            return None
        try:
            parsed = datetime.strptime(value.strip(), self.fmt).date()
        except ValueError:
            return None
        return float((parsed - SPSS_EPOCH).days * SECONDS_PER_DAY)

    def from_ordinal(self, ordinal: Any) -> Optional[str]:
        """Render an ordinal (seconds) as a date string; None if out of range."""
        if ordinal is None or isinstance(ordinal, bool):
            return None
        try:
            seconds = float(ordinal)
        except (TypeError, ValueError):
            return None
        if not math.isfinite(seconds):
            return None
        try:
            day = SPSS_EPOCH + timedelta(days=math.floor(seconds / SECONDS_PER_DAY))
        except OverflowError:
            return None
        return day.strftime(self.fmt) if day.year >= 1000 else None


DEFAULT_CODEC = DateCodec()


def date_string_to_ordinal(value: Any) -> Optional[float]:
    """Decode a ``dd-mm-yyyy`` string with the default codec."""
    return DEFAULT_CODEC.to_ordinal(value)


def ordinal_to_date_string(ordinal: Any) -> Optional[str]:
    """Render an ordinal as ``dd-mm-yyyy`` with the default codec."""
    return DEFAULT_CODEC.from_ordinal(ordinal)
