"""
Rendering functions for types-publisher output.

Core functions return data, this module makes it human-readable.
"""

from rich.table import Table
from rich.console import Console
from rich import box

from .domain.operation import OperationStatus, OperationSummary

console = Console(stderr=True)

STATUS_STYLES = {
    OperationStatus.SUCCESS: "green",
    OperationStatus.SKIPPED: "yellow",
    OperationStatus.FAILED: "red",
}


def render_generation_summary(summary: OperationSummary) -> None:
    """
    Render the results of a package generation run as a table.

    Args:
        summary: Summary returned by PackageGeneratorService.generate
    """
    if not summary.details:
        console.print("[yellow]No packages generated.[/yellow]")
        return

    table = Table(
        title="Generated Packages",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )
    table.add_column("Package", style="cyan")
    table.add_column("Status")
    table.add_column("Files", style="dim")

    for detail in summary.details:
        style = STATUS_STYLES.get(detail.status, "white")
        files = detail.error if detail.error else ", ".join(detail.files)
        table.add_row(detail.package_name, f"[{style}]{detail.status.value}[/{style}]", files)

    console.print(table)
    console.print(f"{summary.successful} generated, {summary.failed} failed")
