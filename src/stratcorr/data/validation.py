"""Input validation for correlation runs."""

from __future__ import annotations

import logging
from typing import List, Sequence

import pandas as pd

from stratcorr.config import ConfigurationError
from stratcorr.reports import RESULT_COLUMNS

logger = logging.getLogger(__name__)

RESERVED_COLUMNS = frozenset([*RESULT_COLUMNS, "p_bonf"])


def validate_columns(
    df: pd.DataFrame,
    outcome: str,
    predictors: Sequence[str],
    strata_vars: Sequence[str],
) -> None:
    """
    Validate the resolved column roles against the dataframe.

    Parameters
    ----------
    df : pd.DataFrame
        Input dataframe
    outcome : str
        Outcome column name
    predictors : Sequence[str]
        Resolved predictor names
    strata_vars : Sequence[str]
        Resolved stratification variable names

    Raises
    ------
    ConfigurationError
        If the outcome is missing, no predictors were selected, a column
        is used both as predictor and as stratification variable, or a
        stratification variable shares its name with a result column
    """
    if outcome not in df.columns:
        raise ConfigurationError(
            f"Outcome column '{outcome}' not found. Available: {list(df.columns)[:10]}...",
            field="outcome",
            value=outcome,
        )

    if len(predictors) == 0:
        raise ConfigurationError(
            "No predictor columns selected. "
            "Specify predictors explicitly or ensure the data contains numeric columns.",
            field="predictors",
            value=list(predictors),
        )

    overlap = [c for c in predictors if c in set(strata_vars)]
    if overlap:
        raise ConfigurationError(
            f"Columns used both as predictor and stratification variable: {overlap}",
            field="stratification_vars",
            value=overlap,
        )

    reserved = [c for c in strata_vars if c in RESERVED_COLUMNS]
    if reserved:
        raise ConfigurationError(
            f"Stratification variables clash with result columns: {reserved}. "
            "Rename them before running.",
            field="stratification_vars",
            value=reserved,
        )


def non_numeric_columns(df: pd.DataFrame, columns: Sequence[str]) -> List[str]:
    """Columns whose dtype is not numeric; their values are coerced to NaN when tested."""
    return [c for c in columns if not pd.api.types.is_numeric_dtype(df[c])]
