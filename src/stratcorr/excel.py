"""Excel and CSV output for correlation results."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import pandas as pd
import xlsxwriter

PVALUE_COLUMNS = ["p_value", "p_bonf", "min_p_value"]
DECIMAL_COLUMNS = ["cor"]


def autosize_column(
    ws: Any,
    df: pd.DataFrame,
    col_idx: int,
    col_name: str,
    cell_format: Any = None,
    min_width: int = 12,
    max_width: int = 50,
):
    """Set column width based on content, optionally with a number format."""
    header_len = len(str(col_name))
    content_len = df[col_name].map(lambda v: len(str(v))).max() if len(df) > 0 else 0
    width = max(min_width, min(max_width, max(header_len, content_len) + 2))
    ws.set_column(col_idx, col_idx, width, cell_format)


def create_formats(workbook: Any) -> Dict[str, Any]:
    """Create xlsxwriter format objects.

    Args:
        workbook: xlsxwriter Workbook object

    Returns:
        Dictionary of format objects
    """
    return {
        "pvalue": workbook.add_format({"num_format": "0.00E+00"}),
        "decimal3": workbook.add_format({"num_format": "0.000"}),
        "sig_highlight": workbook.add_format({"bg_color": "#FFEB9C", "font_color": "#9C5700"}),
        "warning": workbook.add_format({"bg_color": "#F4B084"}),
    }


def write_sheet_with_formatting(
    writer: pd.ExcelWriter,
    df: pd.DataFrame,
    sheet_name: str,
    formats: Dict[str, Any],
    alpha: float = 0.05,
):
    """Write a DataFrame to Excel with formatting.

    Empty tables still get a header row so every sheet is present.
    """
    df.to_excel(writer, sheet_name=sheet_name, index=False)
    ws = writer.sheets[sheet_name]

    ws.freeze_panes(1, 0)
    if len(df.columns) > 0:
        ws.autofilter(0, 0, max(len(df), 1), len(df.columns) - 1)

    for col_idx, col_name in enumerate(df.columns):
        cell_format = None
        if col_name in PVALUE_COLUMNS:
            cell_format = formats["pvalue"]
        elif col_name in DECIMAL_COLUMNS:
            cell_format = formats["decimal3"]
        autosize_column(ws, df, col_idx, col_name, cell_format)

    if df.empty:
        return

    # Highlight significant corrected (or raw) p-values
    sig_col = "p_bonf" if "p_bonf" in df.columns else "p_value"
    if sig_col in df.columns:
        col_idx = df.columns.get_loc(sig_col)
        ws.conditional_format(
            1,
            col_idx,
            len(df),
            col_idx,
            {"type": "cell", "criteria": "<", "value": alpha, "format": formats["sig_highlight"]},
        )

    if "exact_warning" in df.columns:
        col_idx = df.columns.get_loc("exact_warning")
        ws.conditional_format(
            1,
            col_idx,
            len(df),
            col_idx,
            {"type": "cell", "criteria": "==", "value": "TRUE", "format": formats["warning"]},
        )


def write_results_workbook(
    outdir: Path,
    results: pd.DataFrame,
    family_summary: pd.DataFrame,
    run_manifest: pd.DataFrame,
    alpha: float = 0.05,
) -> Path:
    """Write results workbook.

    Sheets: Run_Manifest, Correlations, Family_Summary.

    Returns:
        Path to created workbook
    """
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)
    out_xlsx = outdir / "correlations.xlsx"

    with pd.ExcelWriter(out_xlsx, engine="xlsxwriter") as writer:
        formats = create_formats(writer.book)
        write_sheet_with_formatting(writer, run_manifest, "Run_Manifest", formats, alpha)
        write_sheet_with_formatting(writer, results, "Correlations", formats, alpha)
        write_sheet_with_formatting(writer, family_summary, "Family_Summary", formats, alpha)

    return out_xlsx


def write_results_csv(outdir: Path, results: pd.DataFrame) -> Path:
    """Write the results table as ``correlations.csv``."""
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)
    out_csv = outdir / "correlations.csv"
    results.to_csv(out_csv, index=False)
    return out_csv
