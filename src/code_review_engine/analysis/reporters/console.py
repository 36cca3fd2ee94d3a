"""Console reporter for review results."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from ..metrics import quality_grade
from ..review.models import SEVERITY_ORDER, Severity
from .markdown import render_markdown

if TYPE_CHECKING:
    from ..review.models import ReviewResult

SEVERITY_STYLES = {
    Severity.CRITICAL: "bold red",
    Severity.HIGH: "red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "blue",
    Severity.INFO: "dim",
}


class ConsoleReporter:
    """Console reporter for displaying review results in terminal."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def print_summary(self, result: ReviewResult) -> None:
        """Print severity counts and metrics.

        Args:
            result: Review result to display
        """
        console = self.console
        grade = quality_grade(
            result.metrics.maintainability_index, result.summary.total_issues
        )

        console.print(f"\n[bold blue]🔍 Code Review: {result.target}[/bold blue]")
        console.print("━" * 60)
        console.print(f"  Files Analyzed: {result.files_analyzed}")
        console.print(f"  Lines of Code: {result.metrics.lines_of_code:,}")
        console.print(f"  Complexity: {result.metrics.complexity}")
        console.print(
            f"  Maintainability Index: {result.metrics.maintainability_index}"
        )
        console.print(f"  Grade: [bold]{grade}[/bold]")
        console.print()

        table = Table(show_header=True, header_style="bold cyan", box=None)
        table.add_column("Severity", width=10)
        table.add_column("Count", justify="right", width=8)
        for severity in SEVERITY_ORDER:
            style = SEVERITY_STYLES[severity]
            table.add_row(
                f"[{style}]{severity.value}[/{style}]",
                str(result.summary.count_for(severity)),
            )
        table.add_row("[bold]total[/bold]", f"[bold]{result.summary.total_issues}[/bold]")
        console.print(table)

        if result.failed_providers:
            console.print()
            for failed in result.failed_providers:
                console.print(
                    f"  [yellow]⚠ {failed.provider_id} failed on {failed.file}: "
                    f"{failed.error}[/yellow]"
                )
        console.print()

    def print_report(self, result: ReviewResult, detailed: bool = True) -> None:
        """Print the full markdown report."""
        self.console.print(Markdown(render_markdown(result, detailed=detailed)))
