"""Pydantic data models for license-gate."""

from license_gate.models.dependency import DependencyEntry, DependencyGraph
from license_gate.models.policy import (
    ExceptionRecord,
    ExceptionScope,
    LegacyPolicy,
    LicenseRecord,
    PolicyBundle,
    PolicySettings,
    is_active,
    most_recent,
    sort_exception_records,
    sort_license_records,
)
from license_gate.models.report import (
    AllowedVia,
    CheckOptions,
    CheckReport,
    ComplianceResult,
    Decision,
    ExceptionMatch,
    ReasonType,
    Verbosity,
    Violation,
)

__all__ = [
    "AllowedVia",
    "CheckOptions",
    "CheckReport",
    "ComplianceResult",
    "Decision",
    "DependencyEntry",
    "DependencyGraph",
    "ExceptionMatch",
    "ExceptionRecord",
    "ExceptionScope",
    "LegacyPolicy",
    "LicenseRecord",
    "PolicyBundle",
    "PolicySettings",
    "ReasonType",
    "Verbosity",
    "Violation",
    "is_active",
    "most_recent",
    "sort_exception_records",
    "sort_license_records",
]
