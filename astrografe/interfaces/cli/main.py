"""
CLI Main - Typer-based command-line interface.

Usage:
    astrografe normalize path/to/quote.txt
    astrografe extract path/to/quote.txt --output result.json
    astrografe providers
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from astrografe.config import AstrografeError, get_settings
from astrografe.domains.extraction import normalize_text
from astrografe.domains.orchestration import (
    IngestionOutcome,
    IngestionPipeline,
    build_client,
    build_provider_pool,
)

app = typer.Typer(
    name="astrografe",
    help="Astrografe - Quote extraction pipeline",
    add_completion=False,
)
console = Console()


def _read_document(path: Path) -> str:
    if not path.exists():
        console.print(f"[red]Error:[/red] File not found: {escape(str(path))}")
        raise typer.Exit(1)
    return path.read_text(encoding="utf-8", errors="replace")


def _fail(error: AstrografeError) -> None:
    console.print(f"[red]Error:[/red] {escape(f'[{error.code.value}] {error.message}')}")
    raise typer.Exit(1)


def _setup_logging(verbose: bool) -> None:
    if not verbose:
        return
    logging.basicConfig(
        level=logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.command()
def normalize(
    path: Path = typer.Argument(..., help="Path to a text document"),
) -> None:
    """Print the normalized text of a document."""
    typer.echo(normalize_text(_read_document(path)))


@app.command()
def extract(
    path: Path = typer.Argument(..., help="Path to a text document"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output JSON path"),
    embed: bool = typer.Option(True, "--embed/--no-embed", help="Embed the description"),
    timeout: float | None = typer.Option(
        None, "--timeout", "-t", help="Per-call deadline in seconds"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log attempts"),
) -> None:
    """Extract a structured record from a quote document."""
    _setup_logging(verbose)
    raw_text = _read_document(path)

    try:
        outcome = asyncio.run(_extract_async(raw_text, embed, timeout))
    except AstrografeError as e:
        _fail(e)
        return

    _print_outcome(outcome)

    if output:
        output.write_text(outcome.model_dump_json(indent=2), encoding="utf-8")
        console.print(f"\n[green]Saved to:[/green] {escape(str(output))}")


async def _extract_async(
    raw_text: str,
    embed: bool,
    timeout: float | None,
) -> IngestionOutcome:
    """Async extraction implementation."""
    settings = get_settings()
    client = build_client(settings)
    pool = build_provider_pool(settings)
    pipeline = IngestionPipeline.from_settings(settings, pool, client=client, embed=embed)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task("Extracting...", total=None)
            return await pipeline.ingest(raw_text, timeout=timeout)
    finally:
        await client.close()


def _print_outcome(outcome: IngestionOutcome) -> None:
    result = outcome.result

    console.print("\n[green]Extraction Complete[/green]\n")
    console.print(f"[bold]Description:[/bold] {escape(result.descricao)}\n")

    table = Table(title="Extraction Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Model", result.model_used)
    table.add_row("Confidence", f"{result.confidence:.0%}")
    table.add_row("Line Items", str(result.line_item_count))
    table.add_row("Input Chars", str(outcome.input_chars))
    table.add_row("Truncated", "yes" if outcome.truncated else "no")
    table.add_row("Embedding", "yes" if outcome.has_embedding else "no")
    table.add_row("Time", f"{outcome.processing_seconds:.1f}s")

    console.print(table)

    if result.has_warnings:
        console.print("\n[bold yellow]Warnings:[/bold yellow]")
        for warning in result.warnings:
            console.print(f"  [yellow]![/yellow] {escape(warning)}")


@app.command()
def providers() -> None:
    """Show configured generation models in rotation order."""
    settings = get_settings()

    table = Table(title="Provider Rotation")
    table.add_column("#", style="dim")
    table.add_column("Model", style="cyan")

    for i, provider_id in enumerate(settings.provider_ids, 1):
        table.add_row(str(i), provider_id)

    console.print(table)
    console.print(f"[dim]Embedding: {settings.model_embedding}[/dim]")


@app.command()
def version() -> None:
    """Show version information."""
    from astrografe import __version__

    console.print(f"Astrografe v{__version__}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
