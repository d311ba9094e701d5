"""
SuREViz CLI - run the dashboard server or drive a session from the shell.

Usage:
    sureviz serve --port 3838
    sureviz check chr1:50000 --flank 1000 --file snps=snps.tsv --file assay_signal=sure.bed.gz
    sureviz render chr1:50000 --flank 1000 --file snps=snps.tsv --reference hg38.fa
"""

import json
from pathlib import Path
from typing import Optional, List

import typer
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from sureviz import __version__
from sureviz.config import get_config
from sureviz.core.exceptions import ParseError, ReferenceNotAvailableError, ValidationFailure
from sureviz.core.log import setup_logging
from sureviz.genome.reference import GenomeReference
from sureviz.models.data_classes import Query, ValidationResult
from sureviz.models.enums import FileRole, OutcomeStatus
from sureviz.session.validator import ValidationCheck

# Initialize Typer app and Rich console
app = typer.Typer(
    name="sureviz",
    help="Interactive viewer for SNP effects on regulatory elements",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()


# =============================================================================
# Version callback
# =============================================================================

def version_callback(value: bool) -> None:
    if value:
        console.print(f"[bold blue]SuREViz[/bold blue] version {__version__}")
        raise typer.Exit()


# =============================================================================
# Main app options
# =============================================================================

@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """
    SuREViz - query a locus, validate it against your files, render the plots.
    """
    pass


# =============================================================================
# Serve command
# =============================================================================

@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default from config)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port (default from config)"),
) -> None:
    """Start the web API."""
    from sureviz.api.server import run

    setup_logging()
    run(host=host, port=port)


# =============================================================================
# Check command
# =============================================================================

@app.command()
def check(
    query: str = typer.Argument(..., help="Locus, e.g. chr1:50000"),
    flank: Optional[str] = typer.Option(None, "--flank", "-l", help="Bases on each side (default from config)"),
    file: Optional[List[str]] = typer.Option(None, "--file", "-f", help="role=path, repeatable"),
    reference: Optional[Path] = typer.Option(None, "--reference", "-r", help="Reference FASTA"),
) -> None:
    """
    Parse and validate a query without rendering.

    Examples:
        sureviz check chr1:50000 --flank 1000 --file snps=snps.tsv
    """
    workflow = _open_session(reference, file or [])
    flank_text = flank if flank is not None else str(get_config().default_flank)

    try:
        parsed = workflow.parser.parse(query, flank_text)
    except ParseError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    try:
        checks = workflow.validator.run_checks(parsed, workflow.files)
    except ReferenceNotAvailableError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    _print_checks(parsed, checks)
    try:
        _raise_on_failures(checks)
    except ValidationFailure as e:
        console.print(f"[red]Input does not follow the guidelines[/red] ({len(e.result.reasons)} problem(s))")
        raise typer.Exit(1)

    console.print("[green]Input follows the guidelines[/green]")


# =============================================================================
# Render command
# =============================================================================

@app.command()
def render(
    query: str = typer.Argument(..., help="Locus, e.g. chr1:50000"),
    flank: Optional[str] = typer.Option(None, "--flank", "-l", help="Bases on each side (default from config)"),
    file: Optional[List[str]] = typer.Option(None, "--file", "-f", help="role=path, repeatable"),
    reference: Optional[Path] = typer.Option(None, "--reference", "-r", help="Reference FASTA"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output directory"),
    format: str = typer.Option("json", "--format", help="Output format: json, table"),
) -> None:
    """
    Validate a query and render its artifacts.

    Examples:
        sureviz render chr1:50000 --flank 1000 --file snps=snps.tsv -r hg38.fa
    """
    from sureviz.session.workflow import ButtonPressed

    workflow = _open_session(reference, file or [], output_dir=output)
    flank_text = flank if flank is not None else str(get_config().default_flank)

    try:
        outcome = workflow.submit(ButtonPressed(query, flank_text))
    except ReferenceNotAvailableError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if format == "table":
        table = Table(title=f"Render {query}")
        table.add_column("Field", style="cyan")
        table.add_column("Value")
        table.add_row("status", outcome.status.value)
        for reason in outcome.reasons:
            table.add_row("reason", reason)
        if outcome.error:
            table.add_row("error", outcome.error)
        if outcome.artifacts:
            table.add_row("output", str(outcome.artifacts.output_dir))
            for artifact in outcome.artifacts.artifacts:
                table.add_row(artifact.kind.value, artifact.name)
        console.print(table)
    else:
        print(json.dumps(outcome.model_dump(mode="json"), indent=2, default=str))

    if outcome.status != OutcomeStatus.RENDERED:
        raise typer.Exit(1)


# =============================================================================
# Info command
# =============================================================================

@app.command()
def info() -> None:
    """Show configuration and file roles."""
    config = get_config()

    console.print(Panel.fit(
        f"[bold blue]SuREViz[/bold blue] v{__version__}\n"
        f"Data directory: {config.data_dir}\n"
        f"Output directory: {config.output_dir}\n"
        f"Reference: {config.resolve_reference_fasta() or 'not configured'} ({config.genome_build})\n"
        f"Maximum flank: {config.validation.max_flank}",
        title="Configuration",
    ))

    required = set(config.validation.required_file_roles)
    table = Table(title="File Roles")
    table.add_column("Role", style="cyan")
    table.add_column("Required")

    for role in FileRole:
        table.add_row(role.value, "yes" if role in required else "")

    console.print(table)


# =============================================================================
# Utility functions
# =============================================================================

def _parse_file_option(value: str) -> tuple:
    """Split ``role=path``."""
    if "=" not in value:
        raise ValueError(f"Expected role=path, got '{value}'")
    role, path = value.split("=", 1)
    return FileRole.from_string(role.strip()), Path(path.strip())


def _open_session(reference: Optional[Path], files: List[str], output_dir: Optional[Path] = None):
    """Build a one-off session with the given files registered."""
    from sureviz.session.registry import build_workflow

    config = get_config()
    if output_dir is not None:
        config = config.model_copy(update={"output_dir": output_dir})

    fasta = reference or config.resolve_reference_fasta()
    genome = GenomeReference(config.genome_build, fasta_path=fasta)
    workflow = build_workflow(config, genome, "cli")

    for value in files:
        try:
            role, path = _parse_file_option(value)
        except ValueError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)
        uploaded = workflow.register_file(role, path)
        if not uploaded.parsed:
            console.print(f"[yellow]Warning:[/yellow] {role.value}: {uploaded.error}")

    return workflow


def _raise_on_failures(checks: List[ValidationCheck]) -> ValidationResult:
    reasons = [c.message for c in checks if not c.passed]
    result = ValidationResult(passed=not reasons, reasons=reasons)
    if not result.passed:
        raise ValidationFailure(result)
    return result


def _print_checks(query: Query, checks: List[ValidationCheck]) -> None:
    table = Table(title=f"Checks for {query.locus} (flank {query.flank})")
    table.add_column("Check", style="cyan")
    table.add_column("Status")
    table.add_column("Message")

    for c in checks:
        status = "[green]pass[/green]" if c.passed else "[red]fail[/red]"
        table.add_row(c.name, status, c.message)

    console.print(table)


# =============================================================================
# Entry point
# =============================================================================

if __name__ == "__main__":
    app()
