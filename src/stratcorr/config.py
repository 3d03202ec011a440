"""Configuration types for stratified correlation runs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

logger = logging.getLogger(__name__)

# Minimum rows per stratum and minimum complete pairs per test
MIN_OBSERVATIONS = 3

UNSTRATIFIED = "unstratified"
CROSSED_SEPARATOR = "×"

ColumnSelection = Union[str, Callable[[str], bool], Sequence[Union[str, Callable[[str], bool]]]]


class ConfigurationError(ValueError):
    """Raised when an invocation is misconfigured.

    Carries the offending ``field`` and ``value`` so callers can report them.
    """

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        super().__init__(message)
        self.field = field
        self.value = value


class _ConfigEnum(str, Enum):
    """String enum that reports the offending field on bad input."""

    @classmethod
    def parse(cls, value: Any, field_name: str):
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            valid = [m.value for m in cls]
            raise ConfigurationError(
                f"{field_name} must be one of {valid}, got {value!r}",
                field=field_name,
                value=value,
            ) from None


class CorrelationMethod(_ConfigEnum):
    """Correlation coefficient used by a test."""

    PEARSON = "pearson"
    KENDALL = "kendall"
    SPEARMAN = "spearman"

    @property
    def is_rank_based(self) -> bool:
        return self is not CorrelationMethod.PEARSON


class Alternative(_ConfigEnum):
    """Alternative-hypothesis direction."""

    TWO_SIDED = "two.sided"
    LESS = "less"
    GREATER = "greater"

    @property
    def scipy_name(self) -> str:
        return "two-sided" if self is Alternative.TWO_SIDED else self.value


class MissingPolicy(_ConfigEnum):
    """Missing-data handling, following R's ``cor(use=...)`` names."""

    EVERYTHING = "everything"
    ALL_OBS = "all.obs"
    COMPLETE_OBS = "complete.obs"
    NA_OR_COMPLETE = "na.or.complete"
    PAIRWISE_COMPLETE_OBS = "pairwise.complete.obs"


class StratificationMode(_ConfigEnum):
    """How several stratification variables combine."""

    SEPARATE = "separate"
    CROSSED = "crossed"


class BonferroniScope(_ConfigEnum):
    """Which results share a Bonferroni family."""

    BOTH = "both"
    STRATIFIED_ONLY = "stratified_only"


@dataclass
class CorrelationConfig:
    """Configuration for a stratified correlation run.

    Attributes:
        outcome: Name of the outcome column
        predictors: Selection expression for predictor columns
            (None = all numeric columns except outcome and strata)
        stratification_vars: Selection expression for stratification columns
        stratification_mode: "separate" or "crossed"
        method: Default correlation method (pearson, kendall, spearman)
        method_map: Per-predictor method overrides
        directionality: Default alternative (two.sided, less, greater)
        directionality_map: Per-predictor alternative overrides
        use: Missing-data policy (everything, all.obs, complete.obs,
            na.or.complete, pairwise.complete.obs)
        bonferroni_correct: Whether to add a p_bonf column
        bonferroni_scope: "both" or "stratified_only"
        drop_na_strata: Exclude missing stratification values as a level
        verbose: Emit diagnostics at INFO instead of DEBUG
        n_jobs: Number of parallel workers for the tests (joblib semantics)
    """

    outcome: str
    predictors: Optional[ColumnSelection] = None
    stratification_vars: Optional[ColumnSelection] = None
    stratification_mode: Union[str, StratificationMode] = StratificationMode.SEPARATE
    method: Union[str, CorrelationMethod] = CorrelationMethod.PEARSON
    method_map: Dict[str, Union[str, CorrelationMethod]] = field(default_factory=dict)
    directionality: Union[str, Alternative] = Alternative.TWO_SIDED
    directionality_map: Dict[str, Union[str, Alternative]] = field(default_factory=dict)
    use: Union[str, MissingPolicy] = MissingPolicy.EVERYTHING
    bonferroni_correct: bool = True
    bonferroni_scope: Union[str, BonferroniScope] = BonferroniScope.BOTH
    drop_na_strata: bool = True
    verbose: bool = False
    n_jobs: int = 1

    def __post_init__(self):
        """Validate configuration."""
        if not isinstance(self.outcome, str) or not self.outcome:
            raise ConfigurationError(
                f"outcome must be a non-empty column name, got {self.outcome!r}",
                field="outcome",
                value=self.outcome,
            )

        self.stratification_mode = StratificationMode.parse(
            self.stratification_mode, "stratification_mode"
        )
        self.method = CorrelationMethod.parse(self.method, "method")
        self.directionality = Alternative.parse(self.directionality, "directionality")
        self.use = MissingPolicy.parse(self.use, "use")
        self.bonferroni_scope = BonferroniScope.parse(self.bonferroni_scope, "bonferroni_scope")

        self.method_map = {
            name: CorrelationMethod.parse(value, f"method_map[{name!r}]")
            for name, value in (self.method_map or {}).items()
        }
        self.directionality_map = {
            name: Alternative.parse(value, f"directionality_map[{name!r}]")
            for name, value in (self.directionality_map or {}).items()
        }

        if self.n_jobs == 0:
            raise ConfigurationError("n_jobs must be non-zero", field="n_jobs", value=self.n_jobs)

    def to_dict(self) -> Dict[str, Any]:
        """Plain-value view of the configuration, used in run manifests."""

        def _plain(value):
            if isinstance(value, Enum):
                return value.value
            if callable(value):
                return getattr(value, "__name__", repr(value))
            if isinstance(value, (list, tuple)):
                return [_plain(v) for v in value]
            if isinstance(value, dict):
                return {k: _plain(v) for k, v in value.items()}
            return value

        return {
            "outcome": self.outcome,
            "predictors": _plain(self.predictors),
            "stratification_vars": _plain(self.stratification_vars),
            "stratification_mode": _plain(self.stratification_mode),
            "method": _plain(self.method),
            "method_map": _plain(self.method_map),
            "directionality": _plain(self.directionality),
            "directionality_map": _plain(self.directionality_map),
            "use": _plain(self.use),
            "bonferroni_correct": self.bonferroni_correct,
            "bonferroni_scope": _plain(self.bonferroni_scope),
            "drop_na_strata": self.drop_na_strata,
            "n_jobs": self.n_jobs,
        }


def parse_override_map(items: Optional[List[str]], field_name: str) -> Dict[str, str]:
    """Parse ``name=value`` strings (as given on the command line) into a dict."""
    overrides: Dict[str, str] = {}
    for item in items or []:
        for part in item.split(","):
            part = part.strip()
            if not part:
                continue
            name, sep, value = part.partition("=")
            if not sep or not name.strip() or not value.strip():
                raise ConfigurationError(
                    f"{field_name} entries must look like name=value, got {part!r}",
                    field=field_name,
                    value=part,
                )
            overrides[name.strip()] = value.strip()
    return overrides
