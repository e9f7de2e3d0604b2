"""
Rendering functions for condbuild output.

This module handles all pretty-printing and table formatting.
Services return data, this module makes it human-readable.
"""

from rich.table import Table
from rich.console import Console
from rich import box
from typing import Optional

from .domain.verdict import BuildVerdict
from .services.pipeline_service import PipelineResult
from .services.retention_service import RetentionReport

console = Console()


def _verdict_text(verdict: Optional[BuildVerdict]) -> str:
    if verdict is None:
        return "[red]not decided[/red]"
    if verdict.triggered:
        return f"[yellow]build[/yellow] ({verdict.reason.value})"
    return f"[green]reuse[/green] ({verdict.reason.value})"


def render_summary(result: PipelineResult, out: Optional[Console] = None) -> None:
    """
    Render a pipeline result as a table.

    Args:
        result: Pipeline result
        out: Console to print to (defaults to stdout)
    """
    out = out or console
    table = Table(
        title=f"Build Summary: {result.inputs.package.name}",
        box=box.ROUNDED,
        show_header=False,
    )
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    table.add_row("Image", f"{result.inputs.registry}/{result.inputs.image_path}")
    table.add_row("Verdict", _verdict_text(result.verdict))
    if result.availability is not None:
        table.add_row("Fallback", f"{result.inputs.fallback_tag or '-'} ({result.availability.value})")
    table.add_row("Digest", result.digest or result.reused_digest or "-")
    table.add_row("Tags", "\n".join(result.inputs.tags) or "[dim]none[/dim]")
    if result.sbom_files:
        table.add_row("SBOM", "\n".join(result.sbom_files))
    table.add_row("Attestation", result.attestation)
    if result.error:
        table.add_row("Error", f"[red]{result.error}[/red]")

    out.print(table)


def render_retention(report: RetentionReport, out: Optional[Console] = None) -> None:
    """Render a retention report as a table."""
    out = out or console
    if report.error:
        out.print(f"[yellow]Retention skipped: {report.error}[/yellow]")
        return

    table = Table(
        title=f"Retention: {report.package} (keep {report.keep})",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )
    table.add_column("Status")
    table.add_column("Count", justify="right")
    table.add_column("Version IDs", style="dim")

    deleted_label = "would delete" if report.dry_run else "deleted"
    for label, ids in (("kept", report.kept), ("protected", report.protected),
                       (deleted_label, report.deleted), ("failed", report.failed)):
        table.add_row(label, str(len(ids)), ", ".join(str(i) for i in ids[:10]) + (" ..." if len(ids) > 10 else ""))

    out.print(table)
