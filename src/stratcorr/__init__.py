"""
stratcorr: many-predictor correlation tests with stratification and Bonferroni control.

This package provides:
- Per-predictor correlation method and alternative-hypothesis overrides
- Separate or crossed stratification by categorical variables
- Bonferroni correction scoped over all tests or stratified tests only
- CSV / Parquet loading, CSV / Excel export, and a Typer CLI

Public API:
-----------
from stratcorr import run_correlations

results = run_correlations(
    df,
    outcome="mpg",
    predictors=["disp", "hp", "drat", "wt", "qsec"],
    stratification_vars=["cyl"],
)
"""

__version__ = "0.1.0"

from stratcorr.config import (
    Alternative,
    BonferroniScope,
    ConfigurationError,
    CorrelationConfig,
    CorrelationMethod,
    MissingPolicy,
    StratificationMode,
)
from stratcorr.api import (
    run_correlations,
    run_correlations_from_config,
    run_correlations_from_file,
    compute_correlations,
)
from stratcorr.correlation import cor_test

__all__ = [
    "__version__",
    "run_correlations",
    "run_correlations_from_config",
    "run_correlations_from_file",
    "compute_correlations",
    "cor_test",
    "CorrelationConfig",
    "ConfigurationError",
    "CorrelationMethod",
    "Alternative",
    "MissingPolicy",
    "StratificationMode",
    "BonferroniScope",
]
