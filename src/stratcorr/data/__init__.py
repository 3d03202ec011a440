"""
Data loading and column selection for stratcorr.

Example usage:
    from stratcorr.data import load_table, resolve_columns

    df = load_table(Path("mtcars.parquet"))
    predictors = resolve_columns(["d*", "hp", "-drat"], df.columns)
"""

from stratcorr.data.loaders import load_table
from stratcorr.data.selection import resolve_columns, numeric_columns
from stratcorr.data.validation import validate_columns, non_numeric_columns

__all__ = [
    "load_table",
    "resolve_columns",
    "numeric_columns",
    "validate_columns",
    "non_numeric_columns",
]
