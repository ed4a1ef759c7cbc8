"""Output formatters for license-gate."""

from license_gate.output.report_json import ReportJsonFormatter
from license_gate.output.report_markdown import ReportMarkdownFormatter
from license_gate.output.terminal import TerminalFormatter

__all__ = [
    "ReportJsonFormatter",
    "ReportMarkdownFormatter",
    "TerminalFormatter",
]
