"""
Command-line interface for fibscope.
"""

import csv
import json
import sys
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import Config
from .exceptions import FibscopeError
from .logger import get_logger, set_level
from .models.market_data import PricePoint
from .models.results import AnalysisResult
from .orchestrator import AnalysisOrchestrator
from .patterns.templates import TemplateCatalog

console = Console()


def load_series(path: Path) -> List[PricePoint]:
    """
    Read a price series from a JSON or CSV file.

    JSON files hold a list of numbers or of objects with ``price`` and
    optional ``volume`` and ``timestamp``. CSV files need a ``price`` column;
    ``volume`` and ``timestamp`` columns are optional. Missing timestamps
    default to the row position.
    """
    if path.suffix.lower() == ".csv":
        with path.open(newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
    else:
        with path.open(encoding="utf-8") as f:
            rows = json.load(f)
        if not isinstance(rows, list):
            raise click.ClickException(f"{path}: expected a JSON list")

    series = []
    for i, row in enumerate(rows):
        if isinstance(row, (int, float)):
            row = {"price": row}
        if not isinstance(row, dict) or row.get("price") in (None, ""):
            raise click.ClickException(f"{path}: row {i} has no price")

        volume = row.get("volume")
        timestamp = row.get("timestamp")
        try:
            series.append(PricePoint(
                price=float(row["price"]),
                volume=float(volume) if volume not in (None, "") else None,
                timestamp=int(timestamp) if timestamp not in (None, "") else i
            ))
        except ValueError as e:
            raise click.ClickException(f"{path}: row {i} is invalid: {e}")
    return series


def _patterns_table(result: AnalysisResult) -> Table:
    table = Table(title=f"Patterns ({len(result.patterns)})")
    table.add_column("Kind", style="cyan")
    table.add_column("Span", justify="right")
    table.add_column("Direction")
    table.add_column("Confidence", justify="right", style="green")
    table.add_column("Ratios")

    for pattern in result.patterns:
        direction = pattern.metadata.direction.value if pattern.metadata.direction else "-"
        ratios = ", ".join(f"{r:.3f}" for r in pattern.metadata.ratios[:6])
        table.add_row(
            pattern.kind.display_name,
            f"{pattern.start_index}-{pattern.end_index}",
            direction,
            f"{pattern.confidence:.3f}",
            ratios
        )
    return table


@click.group()
@click.version_option(version=__version__, prog_name="fibscope")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to .env configuration file"
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose logging"
)
@click.pass_context
def main(ctx: click.Context, config: Optional[Path], verbose: bool) -> None:
    """
    fibscope: Fibonacci and Harmonic Pattern Recognition

    Finds golden spiral, Fibonacci and harmonic patterns in price series.
    """
    ctx.ensure_object(dict)

    try:
        if config:
            ctx.obj["config"] = Config.load_from_env(str(config))
        else:
            ctx.obj["config"] = Config.load_from_env()
    except ValueError as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)

    if verbose:
        ctx.obj["config"].logging.level = "DEBUG"
        set_level("DEBUG")

    ctx.obj["logger"] = get_logger("fibscope.cli", ctx.obj["config"].logging.level)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--tolerance", type=float, default=None, help="Ratio tolerance (default 0.03)")
@click.option("--window-size", type=int, default=None, help="Structural window size (default 3)")
@click.option("--sequential", is_flag=True, help="Disable the parallel backend")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def analyze(
    ctx: click.Context,
    file: Path,
    tolerance: Optional[float],
    window_size: Optional[int],
    sequential: bool,
    as_json: bool
) -> None:
    """Analyze the price series in FILE (JSON or CSV)."""
    config: Config = ctx.obj["config"]
    logger = ctx.obj["logger"]

    updates = {"use_cache": False}
    if tolerance is not None:
        updates["tolerance"] = tolerance
    if window_size is not None:
        updates["window_size"] = window_size
    if sequential:
        updates["prefer_parallel"] = False

    try:
        options = config.analysis.model_validate({**config.analysis.model_dump(), **updates})
        prices = load_series(file)
        logger.info(f"Loaded {len(prices)} prices from {file}")
        result = AnalysisOrchestrator(config=config).analyze(prices, options)
    except FibscopeError as e:
        click.echo(f"Analysis failed: {e}", err=True)
        sys.exit(1)
    except ValueError as e:
        click.echo(f"Invalid input: {e}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(result.model_dump_json(indent=2))
        return

    console.print(f"[bold]Series:[/bold] {len(prices)} prices from {file.name}")
    if result.patterns:
        console.print(_patterns_table(result))
    else:
        console.print("[yellow]No patterns found[/yellow]")
    console.print(
        f"Confidence: [green]{result.confidence:.3f}[/green]  "
        f"Elapsed: {result.elapsed_ms:.1f} ms  "
        f"Backend: {'parallel' if result.accelerated else 'sequential'}"
    )
    if result.series_confidence is not None:
        console.print(f"Series confidence: {result.series_confidence.value:.3f}")


@main.command()
def templates() -> None:
    """List the harmonic pattern templates."""
    table = Table(title="Harmonic Templates")
    table.add_column("Name", style="cyan")
    table.add_column("Kind")
    table.add_column("AB", justify="right")
    table.add_column("BC", justify="right")
    table.add_column("CD", justify="right")
    table.add_column("AD", justify="right")
    table.add_column("Tolerance", justify="right")

    for template in TemplateCatalog():
        table.add_row(
            template.name,
            template.kind.value,
            *(f"{r:.3f}" for r in template.ratios),
            f"{template.tolerance:.0%}"
        )
    console.print(table)


if __name__ == "__main__":
    main()
