"""
Formatted Console Output - Rich Renderer for CLI.

Renders per-database report lines, run summaries, target listings and
driver diagnostics. Report lines are printed verbatim (no markup, no
wrapping) so they stay greppable in scheduler logs.
"""

from typing import TYPE_CHECKING, List, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from autodbreclaim.domain.config import ReclaimTarget
from autodbreclaim.domain.models import DatabaseOutcome, ReclaimAction, ReclaimReport

if TYPE_CHECKING:
    from autodbreclaim.infrastructure.odbc_check import DriverReport

ACTION_STYLES = {
    ReclaimAction.REMEDIATED: "bold yellow",
    ReclaimAction.WOULD_REMEDIATE: "yellow",
    ReclaimAction.NO_ACTION: "green",
    ReclaimAction.SKIPPED: "dim",
    ReclaimAction.FAILED: "bold red",
}


class ConsoleRenderer:
    """Renders formatted output to the console."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(highlight=False)

    def header(self, title: str):
        """Render a section header."""
        self.console.print(f"\n[bold cyan]{escape(title)}[/bold cyan]")
        self.console.print(f"[dim]{'━' * 60}[/dim]")

    def error(self, message: str):
        self.console.print(f"[red]❌ {escape(message)}[/red]", soft_wrap=True)

    def warning(self, message: str):
        self.console.print(f"[yellow]⚠️ {escape(message)}[/yellow]", soft_wrap=True)

    def success(self, message: str):
        self.console.print(f"[green]✅ {escape(message)}[/green]", soft_wrap=True)

    def outcome(self, outcome: DatabaseOutcome):
        """Print the one-line report for a database."""
        style = ACTION_STYLES.get(outcome.action, "")
        self.console.print(escape(outcome.describe()), style=style, soft_wrap=True)

    def summary(self, report: ReclaimReport):
        """Render the run summary for one server."""
        table = Table(box=box.SIMPLE, show_header=False)
        table.add_column("Result", style="bold")
        table.add_column("Count", justify="right")

        table.add_row("Databases checked", str(len(report.outcomes)))
        remediated_label = "Would remediate" if report.dry_run else "Remediated"
        remediated = (report.count(ReclaimAction.WOULD_REMEDIATE)
                      if report.dry_run else report.remediated)
        table.add_row(remediated_label, str(remediated))
        table.add_row("No action", str(report.count(ReclaimAction.NO_ACTION)))
        table.add_row("Skipped", str(report.count(ReclaimAction.SKIPPED)))
        failed = f"[red]{report.failed}[/red]" if report.failed else "0"
        table.add_row("Failed", failed)

        self.console.print(table)

    def targets(self, targets: List[ReclaimTarget]):
        """Render configured targets."""
        table = Table(title="🗄️ SQL Targets")
        table.add_column("ID", style="cyan", no_wrap=True)
        table.add_column("Server", style="blue")
        table.add_column("Auth")
        table.add_column("Enabled")

        for target in targets:
            enabled = "[green]✅ Yes[/green]" if target.enabled else "[dim]No[/dim]"
            auth = "sql" if target.uses_sql_auth else "integrated"
            table.add_row(escape(target.id), escape(target.display_name), auth, enabled)

        self.console.print(table)

    def drivers(self, report: "DriverReport"):
        """Render ODBC driver diagnostics."""
        self.header("Available ODBC Drivers")
        if not report.has_sql_server_driver:
            self.error("No SQL Server ODBC drivers found!")
            self.console.print("   Please install: ODBC Driver 18 for SQL Server")
        else:
            self.console.print("\n[bold]SQL Server Drivers:[/bold]")
            for driver in report.sql_server:
                status = ("[green]✅ RECOMMENDED[/green]" if report.is_recommended(driver)
                          else "[yellow]⚠️ Legacy[/yellow]")
                self.console.print(f"  - {escape(driver)} {status}")

        if report.other:
            self.console.print(f"\n[dim]ℹ️ {len(report.other)} other ODBC driver(s) available[/dim]")
