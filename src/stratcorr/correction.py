"""Bonferroni correction over correction families."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

import numpy as np
from statsmodels.stats.multitest import multipletests

from stratcorr.config import UNSTRATIFIED, BonferroniScope
from stratcorr.correlation import RawResult

logger = logging.getLogger(__name__)


@dataclass
class CorrectionFamily:
    """Results that share a Bonferroni denominator.

    ``members`` holds positions into the result list the family was built from.
    """

    label: str
    members: List[int] = field(default_factory=list)

    @property
    def m(self) -> int:
        return len(self.members)

    def corrected(self, pvals: np.ndarray) -> np.ndarray:
        """Bonferroni-adjusted p-values, min(1, p * m), for this family's members."""
        family_p = np.asarray(pvals, dtype=float)[self.members]
        if family_p.size == 0:
            return family_p
        _, adj, _, _ = multipletests(family_p, method="bonferroni")
        return adj


def build_families(
    results: Sequence[RawResult],
    scope: Union[str, BonferroniScope] = BonferroniScope.BOTH,
) -> List[CorrectionFamily]:
    """Partition defined results into correction families.

    Undefined results belong to no family and do not count towards ``m``.

    - ``both``: every defined result is in one family.
    - ``stratified_only``: each unstratified result is its own family of
      size 1 (p-value unchanged); all stratified results form one family.
    """
    scope = BonferroniScope.parse(scope, "bonferroni_scope")
    defined = [i for i, res in enumerate(results) if res.is_defined]

    if scope is BonferroniScope.BOTH:
        return [CorrectionFamily(label="all", members=defined)]

    families = [
        CorrectionFamily(label=UNSTRATIFIED, members=[i])
        for i in defined
        if not results[i].stratum.is_stratified
    ]
    families.append(
        CorrectionFamily(
            label="stratified",
            members=[i for i in defined if results[i].stratum.is_stratified],
        )
    )
    return families


def apply_bonferroni(
    results: Sequence[RawResult],
    scope: Union[str, BonferroniScope] = BonferroniScope.BOTH,
    log: Optional[logging.Logger] = None,
    level: int = logging.DEBUG,
) -> np.ndarray:
    """Corrected p-value for each result (NaN where the result is undefined).

    Args:
        results: Raw results, in output order
        scope: Bonferroni scoping policy
        log: Logger for diagnostics
        level: Logging level for diagnostics

    Returns:
        Array aligned with ``results``
    """
    log = log or logger
    pvals = np.array([res.p_value for res in results], dtype=float)
    p_bonf = np.full(len(results), np.nan, dtype=float)

    for family in build_families(results, scope):
        if family.m == 0:
            continue
        p_bonf[family.members] = family.corrected(pvals)
        if family.m > 1:
            log.log(level, "Bonferroni family %r: m=%d", family.label, family.m)

    return p_bonf
