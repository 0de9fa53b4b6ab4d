"""Command-line interface for summarizing and plotting posterior draws.

Reads a saved posterior (ArviZ NetCDF or a CSV draw table), extracts the
requested variables, and prints point/interval summaries or writes eye
plots. Options given on the command line override the YAML config.

Usage:
    tidydraws summarize fit.nc --var "b[condition]" --var sigma
    tidydraws summarize fit.nc --config configs/summary.yaml --output summary.csv
    tidydraws plot fit.nc "b[condition]" --output-dir figures
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import pandas as pd
import structlog
import typer
from rich.console import Console
from rich.table import Table

from tidydraws import __version__
from tidydraws.config import TidyConfig, load_config
from tidydraws.errors import TidyDrawsError
from tidydraws.utils.logging import setup_logging

logger = structlog.get_logger(__name__)

app = typer.Typer(
    add_completion=False,
    help="tidydraws - tidy summaries of posterior draws.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit.",
    ),
) -> None:
    """tidydraws - tidy summaries of posterior draws."""
    if version:
        typer.echo(f"tidydraws version {__version__}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _load_posterior(path: Path) -> Any:
    """Load an InferenceData NetCDF file or a CSV draw table."""
    if path.suffix.lower() == ".csv":
        return pd.read_csv(path)
    import arviz as az

    return az.from_netcdf(path)


def _build_config(
    config_paths: Optional[list[Path]], overrides: Optional[dict[str, dict[str, Any]]] = None
) -> TidyConfig:
    return load_config(list(config_paths or []), overrides=overrides)


def _render_summary(summary: pd.DataFrame, digits: int) -> None:
    console = Console()
    table = Table(show_header=True, header_style="bold")
    for column in summary.columns:
        table.add_column(str(column), justify="right" if pd.api.types.is_float_dtype(summary[column]) else "left")
    for row in summary.itertuples(index=False):
        cells = []
        for value in row:
            if isinstance(value, float):
                cells.append("" if pd.isna(value) else f"{value:.{digits}f}")
            else:
                cells.append("" if value is None or value is pd.NA else str(value))
        table.add_row(*cells)
    console.print(table)


@app.command("summarize")
def summarize(
    posterior: Path = typer.Argument(..., exists=True, dir_okay=False, help="NetCDF (.nc) or CSV draws file"),
    config: Optional[list[Path]] = typer.Option(
        None,
        "--config",
        "-c",
        exists=True,
        dir_okay=False,
        help="YAML config file(s); later files override earlier ones",
    ),
    var: Optional[list[str]] = typer.Option(
        None,
        "--var",
        help="Variable spec, e.g. 'b[condition]' (repeatable; overrides config)",
    ),
    point: Optional[str] = typer.Option(None, "--point", help="Point estimate: mean, median or mode"),
    interval: Optional[str] = typer.Option(None, "--interval", help="Interval: qi or hdi"),
    prob: Optional[list[float]] = typer.Option(None, "--prob", help="Probability level (repeatable)"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the summary to CSV instead of printing"),
    digits: int = typer.Option(3, "--digits", min=0, help="Digits shown when printing"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable DEBUG logging"),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Write JSON logs to this file"),
) -> None:
    """Summarize variables with point estimates and credible intervals.

    Examples:
        # Median and 95% quantile interval for each level of condition
        tidydraws summarize fit.nc --var "b[condition]" --point median

        # Several probability levels, highest density intervals
        tidydraws summarize fit.nc --var sigma --interval hdi --prob 0.95 --prob 0.5
    """
    from tidydraws.pipeline import summarize_model

    setup_logging(verbose=verbose, log_file=log_file)
    try:
        cfg = _build_config(
            config,
            overrides={
                "draws": {"variables": list(var) if var else None},
                "summary": {"point": point, "interval": interval, "probs": list(prob) if prob else None},
            },
        )
        summary = summarize_model(_load_posterior(posterior), cfg)
    except (TidyDrawsError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        summary.to_csv(output, index=False)
        typer.echo(f"Wrote {len(summary)} rows to {output}")
    else:
        _render_summary(summary, digits)


@app.command("plot")
def plot(
    posterior: Path = typer.Argument(..., exists=True, dir_okay=False, help="NetCDF (.nc) or CSV draws file"),
    spec: str = typer.Argument(..., help="Variable spec with at most one index, e.g. 'b[condition]'"),
    output_dir: Path = typer.Option(Path("figures"), "--output-dir", "-d", help="Directory for figure files"),
    config: Optional[list[Path]] = typer.Option(
        None,
        "--config",
        "-c",
        exists=True,
        dir_okay=False,
        help="YAML config file(s); later files override earlier ones",
    ),
    formats: str = typer.Option("pdf,png", "--formats", help="Comma-separated figure formats"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable DEBUG logging"),
) -> None:
    """Draw an eye plot of one variable across the levels of its index."""
    from tidydraws.pipeline import plot_model

    setup_logging(verbose=verbose)
    format_list = tuple(f.strip() for f in formats.split(",") if f.strip())
    try:
        cfg = _build_config(config)
        paths = plot_model(_load_posterior(posterior), spec, cfg, output_dir, formats=format_list)
    except (TidyDrawsError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Exported {len(paths)} figures to {output_dir}")
    for path in paths:
        typer.echo(f"  {path.name}")


def main() -> None:
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
