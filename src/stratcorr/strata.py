"""Stratum enumeration and filtering."""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from stratcorr.config import (
    CROSSED_SEPARATOR,
    MIN_OBSERVATIONS,
    UNSTRATIFIED,
    StratificationMode,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StratumDescriptor:
    """A subgroup of rows fixed by (variable, level) constraints.

    The unstratified stratum has no constraints and matches every row.
    A level that is missing (NaN/None) matches rows where the variable is missing.
    """

    family: str
    levels: Tuple[Tuple[str, Any], ...] = ()

    @property
    def is_stratified(self) -> bool:
        return bool(self.levels)

    @property
    def variables(self) -> List[str]:
        return [var for var, _ in self.levels]

    def mask(self, df: pd.DataFrame) -> pd.Series:
        """Boolean row selector for ``df``."""
        selected = pd.Series(True, index=df.index)
        for var, level in self.levels:
            if _is_missing(level):
                selected &= df[var].isna()
            else:
                selected &= (df[var] == level).fillna(False).astype(bool)
        return selected

    def describe(self) -> str:
        if not self.levels:
            return self.family
        constraints = ", ".join(f"{var}={level}" for var, level in self.levels)
        return f"{self.family} [{constraints}]"


def _is_missing(value: Any) -> bool:
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def observed_levels(series: pd.Series, drop_na: bool = True) -> List[Any]:
    """Distinct observed values of ``series`` in deterministic order.

    Categorical columns keep their category order; other columns are sorted
    ascending (by string form when values are not mutually comparable).
    A missing level, when kept, always comes last.
    """
    present = series.dropna()

    if isinstance(series.dtype, pd.CategoricalDtype):
        seen = set(present.unique().tolist())
        levels = [c for c in series.cat.categories if c in seen]
    else:
        levels = pd.unique(present).tolist()
        try:
            levels = sorted(levels)
        except TypeError:
            levels = sorted(levels, key=str)

    if not drop_na and series.isna().any():
        levels.append(np.nan)

    return levels


def enumerate_strata(
    df: pd.DataFrame,
    variables: Optional[Sequence[str]] = None,
    mode: Union[str, StratificationMode] = StratificationMode.SEPARATE,
    drop_na_strata: bool = True,
) -> List[StratumDescriptor]:
    """List the strata to test, unstratified first.

    Args:
        df: Input dataframe
        variables: Stratification column names, in output order
        mode: "separate" (one family per variable) or "crossed"
            (one family over the Cartesian product of all variables' levels)
        drop_na_strata: Exclude missing values as a stratification level

    Returns:
        Ordered list of StratumDescriptor
    """
    mode = StratificationMode.parse(mode, "stratification_mode")
    strata = [StratumDescriptor(family=UNSTRATIFIED)]

    variables = list(variables or [])
    if not variables:
        return strata

    level_lists = [observed_levels(df[var], drop_na=drop_na_strata) for var in variables]

    if mode is StratificationMode.SEPARATE:
        for var, levels in zip(variables, level_lists):
            for level in levels:
                strata.append(StratumDescriptor(family=var, levels=((var, level),)))
    else:
        family = CROSSED_SEPARATOR.join(variables)
        for combination in itertools.product(*level_lists):
            strata.append(
                StratumDescriptor(family=family, levels=tuple(zip(variables, combination)))
            )

    return strata


def select_rows(df: pd.DataFrame, stratum: StratumDescriptor) -> pd.DataFrame:
    """Rows of ``df`` belonging to ``stratum``."""
    if not stratum.is_stratified:
        return df
    return df.loc[stratum.mask(df)]


def filter_strata(
    df: pd.DataFrame,
    strata: Sequence[StratumDescriptor],
    min_rows: int = MIN_OBSERVATIONS,
    log: Optional[logging.Logger] = None,
    level: int = logging.DEBUG,
) -> List[Tuple[StratumDescriptor, pd.DataFrame]]:
    """Keep strata with at least ``min_rows`` rows, paired with their rows.

    Strata below the threshold are dropped entirely.
    """
    log = log or logger
    viable = []
    for stratum in strata:
        subset = select_rows(df, stratum)
        if len(subset) < min_rows:
            log.log(
                level,
                "Skipping stratum %s: %d rows (< %d)",
                stratum.describe(),
                len(subset),
                min_rows,
            )
            continue
        viable.append((stratum, subset))

    log.log(level, "%d of %d strata are viable", len(viable), len(strata))
    return viable
