"""Correlation test primitive and per-stratum test engine."""

from __future__ import annotations

import logging
import math
import warnings
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from scipy import stats

from stratcorr.config import (
    MIN_OBSERVATIONS,
    Alternative,
    CorrelationMethod,
    MissingPolicy,
)
from stratcorr.strata import StratumDescriptor
from stratcorr.variables import PredictorSpec

logger = logging.getLogger(__name__)

# Exact null distributions are used up to these sizes when there are no ties
KENDALL_EXACT_MAX_N = 49
SPEARMAN_EXACT_MAX_N = 9


@dataclass(frozen=True)
class CorTestResult:
    """Outcome of a single correlation test.

    Attributes:
        statistic: Correlation coefficient (NaN if undefined)
        p_value: P-value (NaN if undefined)
        n_pair: Number of complete (x, y) pairs used
        exact_warning: Rank-method p-value is an approximation (ties, or
            too many pairs for the exact null distribution)
        error: Reason the test could not be computed, if any
    """

    statistic: float
    p_value: float
    n_pair: int
    exact_warning: bool = False
    error: Optional[str] = None

    @property
    def is_defined(self) -> bool:
        return bool(np.isfinite(self.statistic) and np.isfinite(self.p_value))

    @classmethod
    def undefined(cls, n_pair: int, error: Optional[str] = None) -> "CorTestResult":
        return cls(statistic=np.nan, p_value=np.nan, n_pair=n_pair, error=error)


@dataclass(frozen=True)
class RawResult:
    """A correlation test computed for one (stratum, predictor) pair."""

    stratum: StratumDescriptor
    predictor: str
    outcome: str
    method: CorrelationMethod
    directionality: Alternative
    n_pair: int
    cor: float
    p_value: float
    exact_warning: bool = False
    error: Optional[str] = None

    @property
    def is_defined(self) -> bool:
        return bool(np.isfinite(self.cor) and np.isfinite(self.p_value))


def _as_float_array(values) -> np.ndarray:
    series = pd.Series(values) if not isinstance(values, pd.Series) else values
    return pd.to_numeric(series, errors="coerce").to_numpy(dtype=float, na_value=np.nan)


def _has_ties(values: np.ndarray) -> bool:
    return len(np.unique(values)) < len(values)


def _spearman_rho(x, y, axis=-1):
    rx = stats.rankdata(x, axis=axis)
    ry = stats.rankdata(y, axis=axis)
    n = rx.shape[axis]
    d = rx - ry
    return 1.0 - 6.0 * np.sum(d * d, axis=axis) / (n * (n * n - 1))


def _spearman_exact_pvalue(x: np.ndarray, y: np.ndarray, alternative: str) -> float:
    """P-value from the full permutation distribution of rho (untied data only)."""
    res = stats.permutation_test(
        (x, y),
        _spearman_rho,
        permutation_type="pairings",
        vectorized=True,
        n_resamples=math.factorial(len(x)),
        alternative=alternative,
    )
    return float(res.pvalue)


def cor_test(
    x,
    y,
    method: Union[str, CorrelationMethod] = CorrelationMethod.PEARSON,
    alternative: Union[str, Alternative] = Alternative.TWO_SIDED,
    use: Union[str, MissingPolicy] = MissingPolicy.EVERYTHING,
) -> CorTestResult:
    """Test for association between paired samples.

    Args:
        x: First sample (array-like; non-numeric values become missing)
        y: Second sample, same length as ``x``
        method: "pearson", "kendall" or "spearman"
        alternative: "two.sided", "less" or "greater"
        use: Missing-data policy

    Returns:
        CorTestResult; undefined (NaN statistic and p-value) when fewer than
        three complete pairs remain, when either sample is constant, or when
        the missing-data policy rejects the input.
    """
    method = CorrelationMethod.parse(method, "method")
    alternative = Alternative.parse(alternative, "directionality")
    use = MissingPolicy.parse(use, "use")

    x = _as_float_array(x)
    y = _as_float_array(y)
    if len(x) != len(y):
        raise ValueError(f"x and y must have the same length, got {len(x)} and {len(y)}")

    complete = np.isfinite(x) & np.isfinite(y)
    n_pair = int(complete.sum())

    if not complete.all():
        if use is MissingPolicy.EVERYTHING:
            return CorTestResult.undefined(n_pair)
        if use is MissingPolicy.ALL_OBS:
            return CorTestResult.undefined(n_pair, error="missing observations")

    x = x[complete]
    y = y[complete]

    if n_pair < MIN_OBSERVATIONS:
        return CorTestResult.undefined(n_pair, error="not enough finite observations")

    if np.ptp(x) == 0 or np.ptp(y) == 0:
        return CorTestResult.undefined(n_pair, error="constant input")

    ties = _has_ties(x) or _has_ties(y)
    exact = False
    if method is CorrelationMethod.KENDALL:
        exact = not ties and n_pair <= KENDALL_EXACT_MAX_N
    elif method is CorrelationMethod.SPEARMAN:
        exact = not ties and n_pair <= SPEARMAN_EXACT_MAX_N
    exact_warning = method.is_rank_based and not exact
    alt = alternative.scipy_name

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        if method is CorrelationMethod.PEARSON:
            statistic, p_value = stats.pearsonr(x, y, alternative=alt)
        elif method is CorrelationMethod.KENDALL:
            statistic, p_value = stats.kendalltau(
                x, y, alternative=alt, method="exact" if exact else "asymptotic"
            )
        else:
            statistic, p_value = stats.spearmanr(x, y, alternative=alt)
            if exact:
                p_value = _spearman_exact_pvalue(x, y, alt)

    for w in caught:
        logger.debug("%s test emitted %s: %s", method.value, w.category.__name__, w.message)

    statistic = float(statistic)
    p_value = float(p_value)
    return CorTestResult(
        statistic=statistic if np.isfinite(statistic) else np.nan,
        p_value=p_value if np.isfinite(p_value) else np.nan,
        n_pair=n_pair,
        exact_warning=bool(exact_warning),
    )


def _run_one(
    stratum: StratumDescriptor,
    subset: pd.DataFrame,
    spec: PredictorSpec,
    outcome: str,
    use: MissingPolicy,
) -> RawResult:
    try:
        result = cor_test(
            subset[spec.name],
            subset[outcome],
            method=spec.method,
            alternative=spec.directionality,
            use=use,
        )
    except Exception as e:
        result = CorTestResult.undefined(0, error=str(e))

    return RawResult(
        stratum=stratum,
        predictor=spec.name,
        outcome=outcome,
        method=spec.method,
        directionality=spec.directionality,
        n_pair=result.n_pair,
        cor=result.statistic,
        p_value=result.p_value,
        exact_warning=result.exact_warning,
        error=result.error,
    )


def run_correlation_tests(
    strata: Sequence[Tuple[StratumDescriptor, pd.DataFrame]],
    specs: Sequence[PredictorSpec],
    outcome: str,
    use: Union[str, MissingPolicy] = MissingPolicy.EVERYTHING,
    n_jobs: int = 1,
    log: Optional[logging.Logger] = None,
    level: int = logging.DEBUG,
) -> List[RawResult]:
    """Run every (stratum, predictor) test.

    Args:
        strata: Viable strata paired with their rows
        specs: Resolved predictor settings
        outcome: Outcome column name
        use: Missing-data policy shared by all tests
        n_jobs: joblib worker count (threads); 1 runs sequentially
        log: Logger for diagnostics
        level: Logging level for diagnostics

    Returns:
        RawResults in stratum order, then predictor order. Tests that could
        not be computed are returned undefined (with ``error`` set where a
        reason is known), never raised.
    """
    log = log or logger
    use = MissingPolicy.parse(use, "use")

    tasks = [(stratum, subset, spec) for stratum, subset in strata for spec in specs]
    results = Parallel(n_jobs=n_jobs, prefer="threads")(
        delayed(_run_one)(stratum, subset, spec, outcome, use) for stratum, subset, spec in tasks
    )

    for res in results:
        if not res.is_defined:
            log.log(
                level,
                "No result for %s ~ %s in %s (n_pair=%d%s)",
                res.outcome,
                res.predictor,
                res.stratum.describe(),
                res.n_pair,
                f", {res.error}" if res.error else "",
            )
        elif res.exact_warning:
            log.log(
                level,
                "Approximate p-value (ties or n above exact limit) for %s ~ %s in %s",
                res.outcome,
                res.predictor,
                res.stratum.describe(),
            )

    return list(results)
