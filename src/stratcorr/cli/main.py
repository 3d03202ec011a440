"""Main CLI entrypoint using Typer."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer

from stratcorr import __version__
from stratcorr.config import ConfigurationError, parse_override_map

app = typer.Typer(
    name="stratcorr",
    help="Stratified many-predictor correlation tests with Bonferroni control.",
    add_completion=False,
)

# Logging setup
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"stratcorr {__version__}")
        raise typer.Exit()


def _split_names(values: Optional[List[str]]) -> Optional[List[str]]:
    """Accept repeated options and comma-separated lists alike."""
    if not values:
        return None
    names = [name.strip() for value in values for name in value.split(",")]
    return [name for name in names if name]


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
):
    """stratcorr: correlation tests overall and within strata."""
    pass


@app.command("run")
def run_cmd(
    data: Path = typer.Option(..., "--data", help="Path to data file (.csv, .tsv, .parquet) or directory (parquet dataset)."),
    outcome: str = typer.Option(..., "--outcome", help="Outcome column"),
    predictors: Optional[List[str]] = typer.Option(
        None,
        "--predictors",
        "-p",
        help="Predictor columns, globs ('d*'), regexes ('re:^q') or exclusions ('-wt'). "
        "Default: all numeric columns except outcome and strata.",
    ),
    strata: Optional[List[str]] = typer.Option(None, "--strata", "-s", help="Stratification columns"),
    mode: str = typer.Option("separate", "--mode", help="Stratification mode: separate or crossed"),
    method: str = typer.Option("pearson", "--method", help="Default method: pearson, kendall, spearman"),
    method_map: Optional[List[str]] = typer.Option(
        None, "--method-map", help="Per-predictor method overrides, e.g. carb=spearman"
    ),
    directionality: str = typer.Option(
        "two.sided", "--directionality", help="Default alternative: two.sided, less, greater"
    ),
    directionality_map: Optional[List[str]] = typer.Option(
        None, "--directionality-map", help="Per-predictor alternative overrides, e.g. wt=less"
    ),
    use: str = typer.Option(
        "everything",
        "--use",
        help="Missing-data policy: everything, all.obs, complete.obs, na.or.complete, pairwise.complete.obs",
    ),
    no_bonferroni: bool = typer.Option(False, "--no-bonferroni", help="Skip Bonferroni correction"),
    bonferroni_scope: str = typer.Option(
        "both", "--bonferroni-scope", help="Correction family: both or stratified_only"
    ),
    keep_na_strata: bool = typer.Option(
        False, "--keep-na-strata", help="Treat missing stratification values as a level"
    ),
    outdir: Optional[Path] = typer.Option(None, "--outdir", help="Output directory for CSV/Excel results"),
    alpha: float = typer.Option(0.05, "--alpha", help="Significance threshold for summaries"),
    n_jobs: int = typer.Option(1, "--n-jobs", help="Parallel workers (-1 = all cores)"),
    no_csv: bool = typer.Option(False, "--no-csv", help="Skip CSV output"),
    no_xlsx: bool = typer.Option(False, "--no-xlsx", help="Skip Excel output"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log per-stratum diagnostics"),
):
    """
    Correlate an outcome with many predictors, overall and within strata.

    Examples:
        # Unstratified, Pearson, Bonferroni over all tests
        stratcorr run --data mtcars.csv --outcome mpg -p disp,hp,drat,wt,qsec

        # Crossed strata, Spearman for one predictor, results written to disk
        stratcorr run \\
            --data mtcars.parquet \\
            --outcome mpg \\
            -p disp -p carb \\
            --strata cyl,gear --mode crossed \\
            --method-map carb=spearman \\
            --outdir derived/correlations
    """
    from stratcorr.api import run_correlations_from_file

    try:
        typer.echo(f"Running correlation analysis on {data}...")

        results = run_correlations_from_file(
            data,
            outcome=outcome,
            outdir=outdir,
            alpha=alpha,
            write_csv=not no_csv,
            write_xlsx=not no_xlsx,
            predictors=_split_names(predictors),
            stratification_vars=_split_names(strata),
            stratification_mode=mode,
            method=method,
            method_map=parse_override_map(method_map, "method_map"),
            directionality=directionality,
            directionality_map=parse_override_map(directionality_map, "directionality_map"),
            use=use,
            bonferroni_correct=not no_bonferroni,
            bonferroni_scope=bonferroni_scope,
            drop_na_strata=not keep_na_strata,
            verbose=verbose,
            n_jobs=n_jobs,
        )
    except ConfigurationError as e:
        typer.secho(f"\n✗ Invalid configuration: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)
    except Exception as e:
        typer.secho(f"\n✗ Analysis failed: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.secho("\n✓ Analysis complete!", fg=typer.colors.GREEN)
    typer.echo(f"  Samples: {results['n_samples']}")
    typer.echo(f"  Predictors: {results['n_predictors']}")
    typer.echo(f"  Strata tested: {results['n_strata']}")
    typer.echo(f"  Tests: {results['n_tests']} ({results['n_results']} reported)")
    typer.echo(f"  Significant at {alpha}: {results['n_significant']}")
    if results["csv"]:
        typer.echo(f"  CSV: {results['csv']}")
    if results["xlsx"]:
        typer.echo(f"  Workbook: {results['xlsx']}")
    if outdir is None:
        typer.echo("")
        typer.echo(results["results"].to_string(index=False))


if __name__ == "__main__":
    app()
