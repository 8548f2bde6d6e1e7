"""Input format types for statcalc table loading."""

from __future__ import annotations

from enum import Enum
from pathlib import Path


class DataFormat(str, Enum):
    """Supported table formats."""

    CSV = "csv"
    PARQUET = "parquet"
    PARQUET_DATASET = "parquet_dataset"

    @classmethod
    def from_path(cls, path: Path) -> DataFormat:
        """
        Infer format from path.

        Parameters
        ----------
        path : Path
            Path to a table file or a directory of parquet files

        Returns
        -------
        DataFormat
            Inferred format

        Raises
        ------
        ValueError
            If the suffix is not recognised
        """
        path = Path(path)

        if path.is_dir():
            return cls.PARQUET_DATASET

        suffix = path.suffix.lower()
        if suffix in (".csv", ".txt"):
            return cls.CSV
        if suffix in (".parquet", ".pq"):
            return cls.PARQUET
        raise ValueError(
            f"Cannot infer table format from path: {path}. "
            f"Expected a .csv or .parquet file, or a directory of parquet files."
        )
