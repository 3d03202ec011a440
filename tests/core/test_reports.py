"""Tests for result table assembly."""

import numpy as np
import pandas as pd
import pytest

from stratcorr.config import Alternative, CorrelationMethod
from stratcorr.correlation import RawResult
from stratcorr.reports import (
    RESULT_COLUMNS,
    assemble_results,
    build_run_manifest,
    stratification_columns,
    summarize_by_family,
)
from stratcorr.strata import StratumDescriptor

UNSTRAT = StratumDescriptor(family="unstratified")
CYL4 = StratumDescriptor(family="cyl", levels=(("cyl", 4),))
GEAR3 = StratumDescriptor(family="gear", levels=(("gear", 3),))


def _result(stratum, predictor, p_value, method=CorrelationMethod.PEARSON):
    return RawResult(
        stratum=stratum,
        predictor=predictor,
        outcome="mpg",
        method=method,
        directionality=Alternative.TWO_SIDED,
        n_pair=12,
        cor=np.nan if np.isnan(p_value) else -0.7,
        p_value=p_value,
        exact_warning=method is not CorrelationMethod.PEARSON,
    )


def test_column_schema_with_correction():
    results = [_result(UNSTRAT, "disp", 0.01), _result(CYL4, "disp", 0.02)]
    table = assemble_results(results, p_bonf=np.array([0.02, 0.04]))

    assert list(table.columns) == ["cyl", *RESULT_COLUMNS, "p_bonf"]
    assert table["p_bonf"].tolist() == [0.02, 0.04]


def test_column_schema_without_correction():
    table = assemble_results([_result(UNSTRAT, "disp", 0.01)])
    assert list(table.columns) == RESULT_COLUMNS


def test_unconstrained_strata_get_missing_marker():
    """Each stratum fills only the variables it constrains."""
    results = [
        _result(UNSTRAT, "disp", 0.01),
        _result(CYL4, "disp", 0.02),
        _result(GEAR3, "disp", 0.03),
    ]
    table = assemble_results(results)

    assert table["cyl"].isna().tolist() == [True, False, True]
    assert table["gear"].isna().tolist() == [True, True, False]
    assert table.loc[1, "cyl"] == 4
    assert table.loc[2, "gear"] == 3
    assert table["stratification_family"].tolist() == ["unstratified", "cyl", "gear"]


def test_undefined_results_omitted():
    results = [_result(UNSTRAT, "disp", 0.01), _result(UNSTRAT, "hp", np.nan)]
    table = assemble_results(results, p_bonf=np.array([0.01, np.nan]))

    assert table["predictor"].tolist() == ["disp"]


def test_enum_values_written_as_strings():
    table = assemble_results([_result(UNSTRAT, "carb", 0.01, CorrelationMethod.SPEARMAN)])

    row = table.iloc[0]
    assert row["method"] == "spearman"
    assert row["directionality"] == "two.sided"
    assert bool(row["exact_warning"]) is True


def test_explicit_strata_columns_kept_when_unused():
    table = assemble_results([_result(UNSTRAT, "disp", 0.01)], strata_columns=["cyl", "gear"])
    assert list(table.columns[:2]) == ["cyl", "gear"]


def test_empty_results_keep_schema():
    table = assemble_results([], p_bonf=np.array([]), strata_columns=["cyl"])

    assert table.empty
    assert list(table.columns) == ["cyl", *RESULT_COLUMNS, "p_bonf"]


def test_stratification_columns_first_appearance():
    crossed = StratumDescriptor(family="gear×cyl", levels=(("gear", 4), ("cyl", 6)))
    assert stratification_columns([UNSTRAT, crossed, CYL4]) == ["gear", "cyl"]


def test_summarize_by_family():
    results = [
        _result(UNSTRAT, "disp", 0.001),
        _result(UNSTRAT, "hp", 0.2),
        _result(CYL4, "disp", 0.03),
    ]
    table = assemble_results(results, p_bonf=np.array([0.003, 0.6, 0.09]))
    summary = summarize_by_family(table, alpha=0.05)

    assert summary["stratification_family"].tolist() == ["unstratified", "cyl"]
    assert summary["n_tests"].tolist() == [2, 1]
    assert summary["n_significant"].tolist() == [1, 0]
    assert summary["min_p_value"].tolist() == pytest.approx([0.001, 0.03])


def test_summarize_empty():
    summary = summarize_by_family(pd.DataFrame())
    assert summary.empty
    assert "n_tests" in summary.columns


def test_run_manifest_contains_config():
    manifest = build_run_manifest(
        {"method": "pearson", "method_map": {"carb": "spearman"}},
        n_rows=32,
        predictors=["disp", "carb"],
        strata_vars=["cyl"],
        n_strata=4,
        n_viable_strata=4,
        n_tests=8,
        n_results=8,
        dataset="mtcars.csv",
    )
    values = dict(zip(manifest["parameter"], manifest["value"]))

    assert values["dataset"] == "mtcars.csv"
    assert values["predictors"] == "disp, carb"
    assert values["method"] == "pearson"
    assert values["method_map"] == "{'carb': 'spearman'}"
    assert "package_version" in values
