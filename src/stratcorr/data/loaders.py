"""Table loading for CSV, TSV, Parquet files and Parquet dataset directories."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd

logger = logging.getLogger(__name__)

# Delimited text suffixes and their separators
DELIMITED_SUFFIXES = {".csv": ",", ".tsv": "\t"}
PARQUET_SUFFIX = ".parquet"


def load_table(
    path: Union[Path, str],
    columns: Optional[List[str]] = None,
) -> pd.DataFrame:
    """Load the input table for a correlation run.

    A directory is read as a Parquet dataset; files are read by suffix
    (.csv, .tsv, .parquet).

    Raises:
        FileNotFoundError: If the path does not exist
        ValueError: If the suffix is not supported or Parquet reading fails
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Data path not found: {path}")

    suffix = path.suffix.lower()
    if path.is_dir() or suffix == PARQUET_SUFFIX:
        df = _read_parquet(path, columns)
    elif suffix in DELIMITED_SUFFIXES:
        df = pd.read_csv(path, sep=DELIMITED_SUFFIXES[suffix], usecols=columns)
    else:
        supported = ", ".join([*DELIMITED_SUFFIXES, PARQUET_SUFFIX])
        raise ValueError(
            f"Unsupported data file {path.name}: expected {supported} or a Parquet dataset directory"
        )

    logger.info(f"Loaded {path}: {len(df)} rows, {len(df.columns)} columns")
    return df


def _read_parquet(path: Path, columns: Optional[List[str]]) -> pd.DataFrame:
    try:
        import pyarrow.dataset as ds
    except ImportError as e:
        raise ImportError(
            "Reading Parquet requires pyarrow. Install with: pip install stratcorr[parquet]"
        ) from e

    try:
        table = ds.dataset(path, format="parquet").to_table(columns=columns)
    except Exception as e:
        raise ValueError(f"Failed to read Parquet data from {path}: {e}") from e
    return table.to_pandas()
