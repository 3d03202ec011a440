"""Public API for stratified correlation analysis."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import pandas as pd

from stratcorr.config import ColumnSelection, ConfigurationError, CorrelationConfig
from stratcorr.correction import apply_bonferroni
from stratcorr.correlation import RawResult, run_correlation_tests
from stratcorr.data import (
    load_table,
    non_numeric_columns,
    numeric_columns,
    resolve_columns,
    validate_columns,
)
from stratcorr.reports import assemble_results, build_run_manifest, summarize_by_family
from stratcorr.strata import StratumDescriptor, enumerate_strata, filter_strata
from stratcorr.variables import PredictorSpec, resolve_predictor_specs

logger = logging.getLogger(__name__)


@dataclass
class CorrelationRun:
    """Everything produced by one invocation."""

    results: pd.DataFrame
    predictors: List[PredictorSpec]
    strata_vars: List[str]
    strata: List[StratumDescriptor]
    viable_strata: List[StratumDescriptor]
    raw_results: List[RawResult] = field(default_factory=list)

    @property
    def n_tests(self) -> int:
        return len(self.raw_results)


def run_correlations(
    df: pd.DataFrame,
    outcome: str,
    predictors: Optional[ColumnSelection] = None,
    stratification_vars: Optional[ColumnSelection] = None,
    stratification_mode: str = "separate",
    method: str = "pearson",
    method_map: Optional[Mapping[str, str]] = None,
    directionality: str = "two.sided",
    directionality_map: Optional[Mapping[str, str]] = None,
    use: str = "everything",
    bonferroni_correct: bool = True,
    bonferroni_scope: str = "both",
    drop_na_strata: bool = True,
    verbose: bool = False,
    n_jobs: int = 1,
    logger: Optional[logging.Logger] = None,
) -> pd.DataFrame:
    """Correlate an outcome with many predictors, overall and within strata.

    Args:
        df: Input dataframe (not modified)
        outcome: Outcome column name
        predictors: Predictor selection (None = all numeric columns except
            the outcome and the stratification variables)
        stratification_vars: Stratification column selection (None = none)
        stratification_mode: "separate" or "crossed"
        method: Default method (pearson, kendall, spearman)
        method_map: Per-predictor method overrides
        directionality: Default alternative (two.sided, less, greater)
        directionality_map: Per-predictor alternative overrides
        use: Missing-data policy (everything, all.obs, complete.obs,
            na.or.complete, pairwise.complete.obs)
        bonferroni_correct: Add a ``p_bonf`` column
        bonferroni_scope: "both" (one family for all tests) or
            "stratified_only" (unstratified tests left uncorrected)
        drop_na_strata: Exclude missing stratification values as a level
        verbose: Log diagnostics at INFO instead of DEBUG
        n_jobs: Parallel workers for the tests (joblib semantics)
        logger: Logger receiving diagnostics (default: module logger)

    Returns:
        DataFrame with stratification columns followed by
        stratification_family, predictor, outcome, method, n_pair, cor,
        p_value, directionality, exact_warning and (optionally) p_bonf.

    Raises:
        ConfigurationError: On any invalid setting, before computation starts

    Example:
        >>> from stratcorr import run_correlations
        >>> res = run_correlations(
        ...     mtcars,
        ...     outcome="mpg",
        ...     predictors=["disp", "hp"],
        ...     stratification_vars=["cyl", "gear"],
        ...     stratification_mode="crossed",
        ... )
    """
    config = CorrelationConfig(
        outcome=outcome,
        predictors=predictors,
        stratification_vars=stratification_vars,
        stratification_mode=stratification_mode,
        method=method,
        method_map=dict(method_map or {}),
        directionality=directionality,
        directionality_map=dict(directionality_map or {}),
        use=use,
        bonferroni_correct=bonferroni_correct,
        bonferroni_scope=bonferroni_scope,
        drop_na_strata=drop_na_strata,
        verbose=verbose,
        n_jobs=n_jobs,
    )
    return run_correlations_from_config(df, config, logger=logger)


def run_correlations_from_config(
    df: pd.DataFrame, config: CorrelationConfig, logger: Optional[logging.Logger] = None
) -> pd.DataFrame:
    """Run from a CorrelationConfig object and return the results table."""
    return compute_correlations(df, config, logger=logger).results


def compute_correlations(
    df: pd.DataFrame, config: CorrelationConfig, logger: Optional[logging.Logger] = None
) -> CorrelationRun:
    """Run the full pipeline and keep the intermediate products.

    Column roles and per-predictor settings are resolved and validated
    before any test is computed.
    """
    log = logger if logger is not None else logging.getLogger(__name__)
    level = logging.INFO if config.verbose else logging.DEBUG

    if config.outcome not in df.columns:
        raise ConfigurationError(
            f"Outcome column '{config.outcome}' not found. Available: {list(df.columns)[:10]}...",
            field="outcome",
            value=config.outcome,
        )

    strata_vars = resolve_columns(
        config.stratification_vars, df.columns, field_name="stratification_vars"
    )
    if config.predictors is None:
        predictors = numeric_columns(df, exclude=[config.outcome, *strata_vars])
    else:
        predictors = resolve_columns(config.predictors, df.columns, field_name="predictors")

    validate_columns(df, config.outcome, predictors, strata_vars)

    specs = resolve_predictor_specs(
        predictors,
        method=config.method,
        method_map=config.method_map,
        directionality=config.directionality,
        directionality_map=config.directionality_map,
    )

    non_numeric = non_numeric_columns(df, [config.outcome, *predictors])
    if non_numeric:
        log.warning(f"Non-numeric columns will be coerced (unparseable values become missing): {non_numeric}")

    log.log(level, "Outcome: %s", config.outcome)
    log.log(level, "Predictors (%d): %s", len(specs), [s.name for s in specs])
    for spec in specs:
        log.log(level, "  %s: method=%s, directionality=%s", spec.name, spec.method.value, spec.directionality.value)
    if strata_vars:
        log.log(level, "Stratification (%s): %s", config.stratification_mode.value, strata_vars)

    strata = enumerate_strata(
        df,
        strata_vars,
        mode=config.stratification_mode,
        drop_na_strata=config.drop_na_strata,
    )
    viable = filter_strata(df, strata, log=log, level=level)

    raw_results = run_correlation_tests(
        viable,
        specs,
        config.outcome,
        use=config.use,
        n_jobs=config.n_jobs,
        log=log,
        level=level,
    )

    p_bonf = None
    if config.bonferroni_correct:
        p_bonf = apply_bonferroni(raw_results, config.bonferroni_scope, log=log, level=level)

    results = assemble_results(raw_results, p_bonf, strata_columns=strata_vars)
    log.log(
        level,
        "Computed %d tests over %d strata; %d results reported",
        len(raw_results),
        len(viable),
        len(results),
    )

    return CorrelationRun(
        results=results,
        predictors=specs,
        strata_vars=strata_vars,
        strata=strata,
        viable_strata=[stratum for stratum, _ in viable],
        raw_results=raw_results,
    )


def run_correlations_from_file(
    data: Union[Path, str],
    outcome: str,
    outdir: Optional[Union[Path, str]] = None,
    alpha: float = 0.05,
    write_csv: bool = True,
    write_xlsx: bool = True,
    **kwargs: Any,
) -> Dict[str, Any]:
    """Load a table, run the analysis and optionally write outputs.

    Args:
        data: Path to a CSV/Parquet file or a Parquet dataset directory
        outcome: Outcome column name
        outdir: Output directory (None = do not write files)
        alpha: Significance threshold used in summaries and highlighting
        write_csv: Write ``correlations.csv``
        write_xlsx: Write ``correlations.xlsx``
        **kwargs: Any other CorrelationConfig field

    Returns:
        Dictionary with results and output paths
    """
    if alpha <= 0 or alpha >= 1:
        raise ConfigurationError(f"Alpha must be in (0, 1), got {alpha}", field="alpha", value=alpha)

    run_logger = kwargs.pop("logger", None)
    config = CorrelationConfig(outcome=outcome, **kwargs)

    data = Path(data)
    df = load_table(data)
    run = compute_correlations(df, config, logger=run_logger)

    family_summary = summarize_by_family(run.results, alpha=alpha)
    n_significant = int(family_summary["n_significant"].sum()) if not family_summary.empty else 0

    csv_path = None
    xlsx_path = None
    if outdir is not None:
        from stratcorr.excel import write_results_csv, write_results_workbook

        outdir = Path(outdir)
        if write_csv:
            csv_path = write_results_csv(outdir, run.results)
            logger.info(f"Wrote {csv_path}")
        if write_xlsx:
            manifest = build_run_manifest(
                config.to_dict(),
                n_rows=len(df),
                predictors=[s.name for s in run.predictors],
                strata_vars=run.strata_vars,
                n_strata=len(run.strata),
                n_viable_strata=len(run.viable_strata),
                n_tests=run.n_tests,
                n_results=len(run.results),
                dataset=data.name,
            )
            xlsx_path = write_results_workbook(outdir, run.results, family_summary, manifest, alpha)
            logger.info(f"Wrote {xlsx_path}")

    return {
        "results": run.results,
        "family_summary": family_summary,
        "csv": csv_path,
        "xlsx": xlsx_path,
        "n_samples": len(df),
        "n_predictors": len(run.predictors),
        "n_strata": len(run.viable_strata),
        "n_tests": run.n_tests,
        "n_results": len(run.results),
        "n_significant": n_significant,
    }
