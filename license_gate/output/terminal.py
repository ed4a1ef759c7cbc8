"""Terminal output formatter using Rich."""
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from license_gate.models.report import CheckReport, Verbosity

# Number of license expressions listed in the summary panel
TOP_LICENSES = 8


class TerminalFormatter:
    """Format check reports for terminal display using Rich.

    Shows a summary panel with the most common licenses, a violations table
    and the upstream chain explaining each violation.
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        verbosity: Verbosity = Verbosity.NORMAL,
    ) -> None:
        """Initialize the formatter with a Rich console.

        Args:
            console: Optional Rich Console instance. If not provided,
                a new Console will be created.
            verbosity: Output verbosity level.
        """
        self._console = console if console is not None else Console()
        self._verbosity = verbosity

    def format_check_report(self, report: CheckReport) -> None:
        """Display a check report.

        Args:
            report: The report to display.
        """
        if self._verbosity == Verbosity.QUIET:
            self._print_quiet_output(report)
            return

        for warning in report.warnings:
            self._console.print(f"[yellow]Warning:[/yellow] {escape(warning)}")

        if report.policy_mode == "none":
            self._console.print(
                "[yellow]No policy found; run license-gate init to create one.[/yellow]"
            )

        self._console.print(
            f"Dependency types checked: {', '.join(report.dependency_types)}"
        )
        self._print_summary(report)

        if report.passed:
            self._console.print("[green]All packages comply with policy.[/green]")
            return

        self._print_violations(report)
        self._print_upstream(report)

    def _print_quiet_output(self, report: CheckReport) -> None:
        """Print only the status line and violating packages."""
        if report.passed:
            self._console.print(
                f"[green]PASS[/green] - All {len(report.entries)} packages comply"
            )
            return

        self._console.print(
            f"[red]FAIL[/red] - {len(report.violations)} violation(s)"
        )
        for violation in report.violations:
            self._console.print(
                f"  - {escape(violation.label)}: "
                f"[red]{violation.reason_type.value}[/red]"
            )

    def _print_summary(self, report: CheckReport) -> None:
        """Print the summary panel."""
        status, color = ("PASS", "green") if report.passed else ("FAIL", "red")
        lines = [
            f"Total packages: {len(report.entries)}",
            f"Violations: {len(report.violations)}",
            "",
            "Top licenses:",
        ]
        for license_name, count in report.license_counts()[:TOP_LICENSES]:
            lines.append(f"  {escape(license_name)}: {count}")
        lines.extend(["", f"Status: [{color}]{status}[/{color}]"])

        self._console.print(
            Panel(
                "\n".join(lines),
                title="[bold]LICENSE GATE[/bold]",
                border_style=color,
            )
        )

    def _print_violations(self, report: CheckReport) -> None:
        """Print the violations table."""
        table = Table(title=f"Violations ({len(report.violations)})")
        table.add_column("Package", style="cyan", no_wrap=True)
        table.add_column("License", style="yellow")
        table.add_column("Type", style="red")
        table.add_column("Reason")
        table.add_column("Suggested Remediation", style="green")

        for violation in report.violations:
            table.add_row(
                escape(violation.label),
                escape(violation.entry.license or "UNKNOWN"),
                violation.reason_type.value,
                escape(violation.reason),
                escape("\n".join(violation.remediation)),
            )
        self._console.print(table)

    def _print_upstream(self, report: CheckReport) -> None:
        """Print upstream chains: the first per violation, all when verbose."""
        verbose = self._verbosity == Verbosity.VERBOSE
        heading = (
            "Upstream chains:" if verbose else "Upstream chains (first path per violation):"
        )
        self._console.print("")
        self._console.print(f"[bold]{heading}[/bold]")

        for violation in report.violations:
            chains = list(violation.upstream) if verbose else list(violation.upstream[:1])
            if not chains:
                self._console.print(
                    f"  {escape(violation.label)}: no upstream (direct)"
                )
                continue
            for chain in chains:
                self._console.print(
                    f"  {escape(violation.label)}: {escape(' -> '.join(chain))}"
                )
