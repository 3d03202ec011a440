"""Tests for Bonferroni family accounting."""

import numpy as np
import pytest

from stratcorr.config import Alternative, ConfigurationError, CorrelationMethod
from stratcorr.correction import CorrectionFamily, apply_bonferroni, build_families
from stratcorr.correlation import RawResult
from stratcorr.strata import StratumDescriptor

UNSTRAT = StratumDescriptor(family="unstratified")
SITE_A = StratumDescriptor(family="site", levels=(("site", "a"),))
SITE_B = StratumDescriptor(family="site", levels=(("site", "b"),))


def _result(stratum, p_value, predictor="x"):
    cor = np.nan if np.isnan(p_value) else 0.5
    return RawResult(
        stratum=stratum,
        predictor=predictor,
        outcome="y",
        method=CorrelationMethod.PEARSON,
        directionality=Alternative.TWO_SIDED,
        n_pair=10,
        cor=cor,
        p_value=p_value,
    )


@pytest.fixture
def mixed_results():
    return [
        _result(UNSTRAT, 0.01),
        _result(UNSTRAT, 0.20),
        _result(SITE_A, 0.04),
        _result(SITE_A, np.nan),
        _result(SITE_B, 0.30),
    ]


def test_scope_both_single_family(mixed_results):
    """All defined results share one family; undefined ones are not counted."""
    families = build_families(mixed_results, "both")

    assert len(families) == 1
    assert families[0].m == 4
    assert families[0].members == [0, 1, 2, 4]


def test_scope_both_corrected_values(mixed_results):
    p_bonf = apply_bonferroni(mixed_results, "both")

    assert p_bonf[0] == pytest.approx(0.04)
    assert p_bonf[1] == pytest.approx(0.80)
    assert p_bonf[2] == pytest.approx(0.16)
    assert np.isnan(p_bonf[3])
    assert p_bonf[4] == pytest.approx(1.0)


def test_scope_stratified_only(mixed_results):
    """Unstratified p-values pass through; stratified share m = stratified count."""
    p_bonf = apply_bonferroni(mixed_results, "stratified_only")

    assert p_bonf[0] == pytest.approx(0.01)
    assert p_bonf[1] == pytest.approx(0.20)
    assert p_bonf[2] == pytest.approx(0.08)
    assert np.isnan(p_bonf[3])
    assert p_bonf[4] == pytest.approx(0.60)


def test_stratified_only_families(mixed_results):
    families = build_families(mixed_results, "stratified_only")

    sizes = {f.label: [] for f in families}
    for f in families:
        sizes[f.label].append(f.m)
    assert sizes == {"unstratified": [1, 1], "stratified": [2]}


def test_capped_at_one():
    results = [_result(UNSTRAT, 0.6), _result(UNSTRAT, 0.9)]
    assert list(apply_bonferroni(results, "both")) == [1.0, 1.0]


def test_no_results():
    assert apply_bonferroni([], "both").size == 0


def test_all_undefined():
    results = [_result(SITE_A, np.nan)]
    assert np.isnan(apply_bonferroni(results, "stratified_only")).all()


def test_family_corrected_subset():
    family = CorrectionFamily(label="all", members=[1, 2])
    adj = family.corrected(np.array([0.5, 0.1, 0.2]))
    assert adj == pytest.approx([0.2, 0.4])


def test_invalid_scope_raises(mixed_results):
    with pytest.raises(ConfigurationError):
        apply_bonferroni(mixed_results, "stratified")
