"""CLI entry point for snapgate."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from snapgate.baseline.store import BaselineStore
from snapgate.comparator.errors import ComparisonError
from snapgate.comparator.image_diff import DEFAULT_PIXEL_THRESHOLD, compare, decode_image
from snapgate.models.config import GateConfig, ScreenshotCheck
from snapgate.runner import SuiteRunner

console = Console()

_RESULT_STYLES = {"pass": "green", "fail": "red", "error": "red"}

# Mirrors the home page and header checks of a typical visual regression suite
_REMOVE_GRADIENT_SCRIPT = (
    "() => { const el = document.querySelector('span.gradient-text');"
    " if (el) { el.classList.remove('gradient-text'); } }"
)


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_config(config: str) -> GateConfig:
    try:
        return GateConfig.load(config)
    except FileNotFoundError:
        console.print(f"[red]Config file not found: {config}[/red]")
        console.print("Run 'snapgate init' to create a default config.")
        sys.exit(2)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Visual regression screenshot gate"""
    setup_logging(verbose)


@cli.command()
@click.option("--target", "-t", prompt="Base URL", help="Website URL to check")
def init(target: str) -> None:
    """Create a default configuration file."""
    config_path = Path("snapgate.json")
    if config_path.exists():
        if not click.confirm("snapgate.json already exists. Overwrite?"):
            return

    cfg = GateConfig(
        base_url=target,
        checks=[
            ScreenshotCheck(
                test_id="homepage",
                name="homepage.png",
                full_page=True,
                max_diff_pixel_ratio=0.1,
            ),
            ScreenshotCheck(
                test_id="header",
                name="header.png",
                selector='h1:has-text("QA Playground")',
                scripts=[_REMOVE_GRADIENT_SCRIPT],
            ),
        ],
    )
    cfg.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nEdit the checks, then run:")
    console.print("  [blue]snapgate run[/blue]")


@cli.command()
@click.option("--config", "-c", default="snapgate.json", help="Config file path")
def run(config: str) -> None:
    """Capture every configured check and compare it against its baseline."""
    cfg = _load_config(config)
    if not cfg.checks:
        console.print("[yellow]No checks configured[/yellow]")
        return

    result = SuiteRunner(cfg).run()

    table = Table(title=f"Screenshot checks ({result.run_id})")
    table.add_column("Test", style="bold")
    table.add_column("Screenshot")
    table.add_column("Result")
    table.add_column("Ratio", justify="right")
    table.add_column("Details")
    for r in result.check_results:
        style = _RESULT_STYLES.get(r.result, "white")
        ratio = f"{r.ratio:.4f}" if r.ratio is not None else "-"
        table.add_row(r.test_id, r.name, f"[{style}]{r.result}[/{style}]", ratio, r.diff_path or r.message)
    console.print(table)
    console.print(
        f"{result.passed} passed, {result.failed} failed, {result.errors} errors "
        f"in {result.duration_seconds}s"
    )
    if not result.ok:
        sys.exit(1)


@cli.command("compare")
@click.argument("candidate", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("baseline", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--max-diff-pixel-ratio", "-r", default=0.0, type=click.FloatRange(0.0, 1.0),
              show_default=True, help="Maximum tolerated fraction of differing pixels")
@click.option("--pixel-threshold", "-t", default=DEFAULT_PIXEL_THRESHOLD, type=click.IntRange(0, 255),
              show_default=True, help="Per-channel difference above which a pixel counts as different")
@click.option("--diff-out", type=click.Path(dir_okay=False, path_type=Path),
              help="Write a diff overlay PNG when the images differ")
def compare_cmd(
    candidate: Path,
    baseline: Path,
    max_diff_pixel_ratio: float,
    pixel_threshold: int,
    diff_out: Path | None,
) -> None:
    """Compare two image files. Exit 0 on pass, 1 on fail, 2 on error."""
    try:
        result = compare(
            decode_image(candidate.read_bytes()),
            decode_image(baseline.read_bytes()),
            max_diff_pixel_ratio,
            pixel_threshold=pixel_threshold,
            with_diff=diff_out is not None,
        )
    except ComparisonError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(2)

    if result.passed:
        console.print(f"[green]PASS[/green] {result.describe()}")
        return
    console.print(f"[red]FAIL[/red] {result.describe()}")
    if diff_out is not None and result.diff_image is not None:
        diff_out.parent.mkdir(parents=True, exist_ok=True)
        result.diff_image.save(diff_out, format="PNG")
        console.print(f"  Diff: [blue]{diff_out}[/blue]")
    sys.exit(1)


@cli.command()
@click.option("--config", "-c", default="snapgate.json", help="Config file path")
def baselines(config: str) -> None:
    """List stored baselines."""
    cfg = _load_config(config)
    entries = BaselineStore(Path(cfg.baselines_dir)).entries()
    if not entries:
        console.print("[yellow]No baselines stored[/yellow]")
        return
    table = Table(title="Baselines")
    table.add_column("Test", style="bold")
    table.add_column("Screenshot")
    table.add_column("Size")
    table.add_column("Captured")
    for e in entries:
        table.add_row(e.test_id, e.name, f"{e.width}x{e.height}", e.captured_at)
    console.print(table)


if __name__ == "__main__":
    cli()
