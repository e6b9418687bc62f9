#!/usr/bin/env python
"""
Run the full scale analysis and write the report.

Fits a graded response model to a response file, assesses model fit,
tabulates parameters, scores respondents and renders the figures.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from scale_analysis import configure_logging
from scale_analysis.irt.fit import GlobalFit, ItemFit
from scale_analysis.report import (
    PipelineStageError,
    RuntimeSettings,
    get_config_path,
    load_config,
    run_report,
)

console = Console(force_terminal=True, legacy_windows=True)
app = typer.Typer()


def print_global_fit(fit: GlobalFit) -> None:
    """Pretty-print global fit as a rich Table."""
    table = Table(title="Global Fit")
    table.add_column("Index", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("M2", f"{fit.statistic:.2f}")
    table.add_row("df", str(fit.df))
    table.add_row("p", f"{fit.p_value:.4f}")
    table.add_row(
        "RMSEA",
        f"{fit.rmsea:.3f} [{fit.rmsea_ci_lower:.3f}, {fit.rmsea_ci_upper:.3f}]",
    )
    table.add_row("SRMSR", f"{fit.srmsr:.3f}")
    table.add_row("CFI", f"{fit.cfi:.3f}")
    table.add_row("TLI", f"{fit.tli:.3f}")
    console.print(table)


def print_item_fit(item_fits: dict[str, ItemFit]) -> None:
    """Pretty-print item fit as a rich Table."""
    table = Table(title="Item Fit (S-X2)")
    table.add_column("Item", style="bold")
    table.add_column("S-X2", justify="right")
    table.add_column("df", justify="right")
    table.add_column("p", justify="right")
    table.add_column("RMSEA", justify="right")

    for item_id, fit in item_fits.items():
        table.add_row(
            item_id,
            f"{fit.statistic:.2f}",
            str(fit.df),
            f"{fit.p_value:.4f}",
            f"{fit.rmsea:.3f}",
        )
    console.print(table)


@app.command()
def main(
    config_path: Path | None = typer.Option(
        None,
        "-c",
        "--config",
        help="YAML analysis configuration (defaults to the bundled config)",
    ),
    dataset_path: Path | None = typer.Option(
        None,
        "-d",
        "--dataset",
        help="Response file overriding dataset_path in the config",
    ),
    output_dir: Path | None = typer.Option(
        None,
        "-o",
        "--output-dir",
        help="Directory receiving the report files",
    ),
    theta_min: float | None = typer.Option(
        None, help="Lower bound of the plotted theta range"
    ),
    theta_max: float | None = typer.Option(
        None, help="Upper bound of the plotted theta range"
    ),
    category_min: int | None = typer.Option(
        None, help="Lowest valid category code"
    ),
    category_max: int | None = typer.Option(
        None, help="Highest valid category code"
    ),
    infer_categories: bool | None = typer.Option(
        None,
        "--infer-categories/--declared-categories",
        help="Take the category range from the observed codes",
    ),
) -> None:
    """Fit the model and write the scale analysis report."""
    settings = RuntimeSettings()
    configure_logging(settings.log_level)

    if config_path is None:
        config_path = get_config_path()
    if not config_path.exists():
        console.print(f"[red]Config not found: {config_path}[/red]")
        raise typer.Exit(1)

    overrides = {
        "dataset_path": str(dataset_path) if dataset_path else None,
        "output_dir": str(output_dir) if output_dir else None,
        "theta_min": theta_min,
        "theta_max": theta_max,
        "category_min": category_min,
        "category_max": category_max,
        "infer_categories": infer_categories,
    }
    try:
        config = load_config(config_path, overrides)
    except ValueError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise typer.Exit(1) from e

    console.print(
        Panel(
            f"[bold]Scale Analysis[/bold]\n\n"
            f"Dataset: [cyan]{config.dataset_path}[/cyan]\n"
            f"Model: [cyan]{config.item_type}[/cyan], "
            f"[cyan]{config.dimensions}[/cyan] dimension\n"
            f"Theta range: [cyan]{config.theta_min}[/cyan] to "
            f"[cyan]{config.theta_max}[/cyan]\n"
            f"Output: [cyan]{config.output_dir}[/cyan]",
            title="Configuration",
        )
    )

    try:
        report, written = run_report(config, settings)
    except PipelineStageError as e:
        console.print(f"[red]\\[{e.stage.value}] {e}[/red]")
        raise typer.Exit(1) from e

    print_global_fit(report.global_fit)
    print_item_fit(report.item_fit)
    console.print(
        f"Marginal reliability = {report.marginal_reliability:.3f}, "
        f"empirical reliability = {report.empirical_reliability:.3f}"
    )

    console.print(
        Panel(
            f"[bold green]Report written[/bold green]\n\n"
            f"Files: [cyan]{len(written)}[/cyan]\n"
            f"Output: [cyan]{config.output_dir}[/cyan]",
            title="Done",
        )
    )


if __name__ == "__main__":
    app()
