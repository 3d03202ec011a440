"""Tests for workbook output."""

import numpy as np
import pandas as pd
import pytest

from stratcorr.excel import autosize_column, write_results_workbook


class _RecordingSheet:
    def __init__(self):
        self.columns = {}

    def set_column(self, first, last, width, cell_format=None):
        self.columns[first] = width


def test_autosize_handles_missing_levels():
    """Stratification columns are NaN on unstratified rows."""
    df = pd.DataFrame({"cyl": [np.nan, 4.0, 6.0, 8.0], "site": [None, "north", "south-west", None]})
    ws = _RecordingSheet()

    autosize_column(ws, df, 0, "cyl", min_width=1)
    autosize_column(ws, df, 1, "site", min_width=1)

    assert ws.columns[0] == len("cyl") + 2
    assert ws.columns[1] == len("south-west") + 2


def test_workbook_with_stratified_results(tmp_path):
    results = pd.DataFrame(
        {
            "cyl": [np.nan, 4.0, 6.0],
            "stratification_family": ["unstratified", "cyl", "cyl"],
            "predictor": ["disp"] * 3,
            "outcome": ["mpg"] * 3,
            "method": ["pearson"] * 3,
            "n_pair": [32, 11, 7],
            "cor": [-0.85, -0.80, 0.10],
            "p_value": [9.4e-10, 0.003, 0.83],
            "directionality": ["two.sided"] * 3,
            "exact_warning": [False, False, False],
            "p_bonf": [2.8e-9, 0.009, 1.0],
        }
    )
    summary = pd.DataFrame({"stratification_family": ["cyl"], "n_tests": [2]})
    manifest = pd.DataFrame({"parameter": ["outcome"], "value": ["mpg"]})

    path = write_results_workbook(tmp_path, results, summary, manifest)

    openpyxl = pytest.importorskip("openpyxl")
    wb = openpyxl.load_workbook(path)
    try:
        ws = wb["Correlations"]
        assert ws["A1"].value == "cyl"
        assert ws["A2"].value is None
        assert ws["A3"].value == 4
        assert ws.max_row == 4
    finally:
        wb.close()
