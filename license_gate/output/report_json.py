"""JSON output for check reports, SBOM and violations files."""
import json
from datetime import datetime, timezone
from typing import Any, Iterable

from license_gate import __version__
from license_gate.models.dependency import DependencyEntry
from license_gate.models.report import CheckReport, Violation


class ReportJsonFormatter:
    """Format check results as JSON.

    ``format_sbom`` and ``format_violations`` produce the content of the
    SBOM and violations files; ``format_check_report`` produces the full
    report printed with ``--format json``.
    """

    def format_check_report(self, report: CheckReport) -> str:
        """Format a check report as a JSON string."""
        output = {
            "metadata": self._build_metadata(),
            "summary": self._build_summary(report),
            "warnings": list(report.warnings),
            "violations": self.format_violations(report.violations),
        }
        return json.dumps(output, indent=2)

    def format_sbom(self, entries: Iterable[DependencyEntry]) -> list[dict[str, Any]]:
        """Get SBOM file content: one object per entry in input order."""
        return [entry.to_json() for entry in entries]

    def format_violations(self, violations: Iterable[Violation]) -> list[dict[str, Any]]:
        """Get violations file content, including upstream chains."""
        return [violation.to_json() for violation in violations]

    def _build_metadata(self) -> dict[str, Any]:
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        return {"generated_at": timestamp, "tool_version": __version__}

    def _build_summary(self, report: CheckReport) -> dict[str, Any]:
        return {
            "total_packages": len(report.entries),
            "violations_count": len(report.violations),
            "dependency_types": list(report.dependency_types),
            "policy_mode": report.policy_mode,
            "licenses": dict(report.license_counts()),
            "status": "pass" if report.passed else "fail",
        }
