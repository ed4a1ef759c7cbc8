"""Markdown output formatter for check reports.

The failure layout is suitable for a CI job summary such as
``$GITHUB_STEP_SUMMARY``.
"""
from typing import Iterable

from license_gate.constants import CLI_NAME
from license_gate.models.report import CheckReport, Violation


def _cell(value: str) -> str:
    """Escape a value for use inside a Markdown table cell."""
    return value.replace("|", "\\|").replace("\n", " ")


class ReportMarkdownFormatter:
    """Format check reports as Markdown."""

    def format_check_report(self, report: CheckReport) -> str:
        """Format a check report as a Markdown string.

        Args:
            report: The report to format.

        Returns:
            Markdown string. A failing report lists every violation with its
            suggested remediation.
        """
        if report.passed:
            lines = [
                "## License Gate Passed",
                "",
                f"All {len(report.entries)} packages comply with policy.",
                "",
                f"Dependency types checked: {', '.join(report.dependency_types)}",
            ]
            lines.extend(self._format_warnings(report.warnings))
            return "\n".join(lines)

        summary = self.format_violations(report.violations)
        return "\n".join([summary, *self._format_warnings(report.warnings)])

    def format_violations(self, violations: Iterable[Violation]) -> str:
        """Build the failure summary table.

        Args:
            violations: Violations to list.

        Returns:
            Markdown with one row per violation, sorted by name then version.
        """
        ordered = sorted(violations, key=lambda v: (v.name, v.version))
        lines = [
            "## License Gate Failed",
            "",
            f"Violations: **{len(ordered)}**",
            "",
            "| Package | Detected License | Reason | Suggested Remediation |",
            "| --- | --- | --- | --- |",
        ]
        for violation in ordered:
            license_name = violation.entry.license or "UNKNOWN"
            reason = violation.reason or violation.reason_type.value
            remediation = "<br/>".join(violation.remediation)
            lines.append(
                f"| {_cell(violation.label)} | {_cell(license_name)} "
                f"| {_cell(reason)} | {_cell(remediation)} |"
            )

        lines.extend(
            [
                "",
                "Remediation commands:",
                f"- `{CLI_NAME} exceptions add`",
                f"- `{CLI_NAME} licenses allow add`",
            ]
        )
        return "\n".join(lines)

    def _format_warnings(self, warnings: list[str]) -> list[str]:
        if not warnings:
            return []
        return ["", "### Warnings", "", *(f"- {warning}" for warning in warnings)]
