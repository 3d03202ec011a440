"""Result table assembly and run summaries."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from stratcorr.correlation import RawResult
from stratcorr.strata import StratumDescriptor

RESULT_COLUMNS = [
    "stratification_family",
    "predictor",
    "outcome",
    "method",
    "n_pair",
    "cor",
    "p_value",
    "directionality",
    "exact_warning",
]


def stratification_columns(strata: Sequence[StratumDescriptor]) -> List[str]:
    """Distinct stratification variables, in order of first appearance."""
    columns: List[str] = []
    for stratum in strata:
        for var in stratum.variables:
            if var not in columns:
                columns.append(var)
    return columns


def result_columns(strata_columns: Sequence[str], with_p_bonf: bool) -> List[str]:
    columns = list(strata_columns) + RESULT_COLUMNS
    if with_p_bonf:
        columns.append("p_bonf")
    return columns


def assemble_results(
    results: Sequence[RawResult],
    p_bonf: Optional[np.ndarray] = None,
    strata_columns: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """Build the output table.

    Args:
        results: Raw results in stratum order, then predictor order
        p_bonf: Corrected p-values aligned with ``results`` (None = no correction)
        strata_columns: Stratification columns to emit; derived from the
            results' strata when not given

    Returns:
        DataFrame with one row per defined result. Stratification columns hold
        the stratum's level, or NaN when the stratum does not constrain that
        variable.
    """
    if strata_columns is None:
        strata_columns = stratification_columns([res.stratum for res in results])
    columns = result_columns(strata_columns, with_p_bonf=p_bonf is not None)

    rows = []
    for i, res in enumerate(results):
        if not res.is_defined:
            continue

        row: Dict[str, Any] = {var: np.nan for var in strata_columns}
        row.update(dict(res.stratum.levels))
        row.update(
            {
                "stratification_family": res.stratum.family,
                "predictor": res.predictor,
                "outcome": res.outcome,
                "method": res.method.value,
                "n_pair": res.n_pair,
                "cor": res.cor,
                "p_value": res.p_value,
                "directionality": res.directionality.value,
                "exact_warning": res.exact_warning,
            }
        )
        if p_bonf is not None:
            row["p_bonf"] = float(p_bonf[i])
        rows.append(row)

    table = pd.DataFrame(rows, columns=columns)
    if not table.empty:
        table["n_pair"] = table["n_pair"].astype(int)
        table["exact_warning"] = table["exact_warning"].astype(bool)
    return table


def summarize_by_family(table: pd.DataFrame, alpha: float = 0.05) -> pd.DataFrame:
    """Count tests and significant results per stratification family.

    Significance uses ``p_bonf`` when present, else ``p_value``.
    """
    summary_columns = ["stratification_family", "n_tests", "n_significant", "min_p_value"]
    if table.empty:
        return pd.DataFrame(columns=summary_columns)

    p_col = "p_bonf" if "p_bonf" in table.columns else "p_value"
    rows = []
    for family, group in table.groupby("stratification_family", sort=False):
        rows.append(
            {
                "stratification_family": family,
                "n_tests": len(group),
                "n_significant": int((group[p_col] < alpha).sum()),
                "min_p_value": float(group["p_value"].min()),
            }
        )
    return pd.DataFrame(rows, columns=summary_columns)


def build_run_manifest(
    config: Dict[str, Any],
    n_rows: int,
    predictors: Sequence[str],
    strata_vars: Sequence[str],
    n_strata: int,
    n_viable_strata: int,
    n_tests: int,
    n_results: int,
    dataset: Optional[str] = None,
) -> pd.DataFrame:
    """Build run manifest sheet.

    Returns:
        DataFrame with metadata about the run
    """
    from stratcorr import __version__

    rows = []
    if dataset is not None:
        rows.append({"parameter": "dataset", "value": dataset})
    rows.extend(
        [
            {"parameter": "timestamp", "value": datetime.now().strftime("%Y-%m-%d %H:%M:%S")},
            {"parameter": "package_version", "value": __version__},
            {"parameter": "n_rows", "value": n_rows},
            {"parameter": "predictors", "value": ", ".join(predictors)},
            {"parameter": "stratification_vars", "value": ", ".join(strata_vars)},
            {"parameter": "n_strata", "value": n_strata},
            {"parameter": "n_viable_strata", "value": n_viable_strata},
            {"parameter": "n_tests", "value": n_tests},
            {"parameter": "n_results", "value": n_results},
        ]
    )
    for key, value in config.items():
        if isinstance(value, (list, dict)):
            value = str(value)
        rows.append({"parameter": key, "value": value})

    return pd.DataFrame(rows, columns=["parameter", "value"])
