"""Decision and report models for license-gate."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from license_gate.models.dependency import DependencyEntry
from license_gate.models.policy import ExceptionRecord, LicenseRecord


class ReasonType(str, Enum):
    """Why a dependency was denied."""

    UNKNOWN_LICENSE = "unknown-license"
    EXPIRED_LICENSE_POLICY = "expired-license-policy"
    LICENSE_NOT_ALLOWED = "license-not-allowed"
    EXPIRED_EXCEPTION = "expired-exception"
    LEGACY_NOT_ALLOWED = "legacy-not-allowed"


class AllowedVia(str, Enum):
    """Which policy path allowed a dependency."""

    EXPLICIT_LICENSE_RECORD = "explicit-license-record"
    CATEGORY_ALLOWLIST = "category-allowlist"
    LEGACY_EXCEPTION = "legacy-exception"
    LEGACY_LICENSE = "legacy-license"
    LEGACY_CATEGORY = "legacy-category"


class Verbosity(Enum):
    """Output verbosity levels."""

    QUIET = "quiet"
    NORMAL = "normal"
    VERBOSE = "verbose"


class Decision(BaseModel):
    """Outcome of evaluating one dependency's license against policy."""

    model_config = {"extra": "forbid", "frozen": True}

    allowed: bool = Field(description="True if the license is currently authorized")
    via: Optional[AllowedVia] = Field(
        default=None, description="Policy path that allowed the dependency"
    )
    token: Optional[str] = Field(
        default=None, description="License token that was allowed"
    )
    reason_type: Optional[ReasonType] = Field(
        default=None, description="Why the dependency was denied"
    )
    message: Optional[str] = Field(default=None, description="Human-readable reason")
    governing_record: Optional[LicenseRecord] = Field(
        default=None,
        description="Record behind the decision (active or most recent expired)",
    )


class ExceptionMatch(BaseModel):
    """Result of looking up exceptions for a dependency."""

    model_config = {"extra": "forbid", "frozen": True}

    matched: bool = Field(default=False, description="True if any exception matched")
    active: bool = Field(default=False, description="True if a matching one is active")
    record: Optional[ExceptionRecord] = Field(
        default=None,
        description="Most recent active record, else most recent expired one",
    )


class Violation(BaseModel):
    """A dependency denied by policy, with guidance for fixing it."""

    model_config = {"extra": "forbid", "frozen": True}

    entry: DependencyEntry = Field(description="The violating dependency")
    reason: str = Field(description="Human-readable reason")
    reason_type: ReasonType = Field(description="Typed reason")
    remediation: tuple[str, ...] = Field(
        default=(), description="Suggested next actions, in order"
    )
    upstream: tuple[tuple[str, ...], ...] = Field(
        default=(),
        description="Chains of name@version labels from a direct dependency",
    )

    @property
    def name(self) -> str:
        return self.entry.name

    @property
    def version(self) -> str:
        return self.entry.version

    @property
    def label(self) -> str:
        return self.entry.label

    def with_upstream(self, chains: list[list[str]]) -> Violation:
        """Return a copy with upstream chains attached."""
        return self.model_copy(
            update={"upstream": tuple(tuple(chain) for chain in chains)}
        )

    def to_json(self) -> dict[str, Any]:
        """Return the violation as written to the violations file."""
        data = self.entry.to_json()
        data.update(
            {
                "reason": self.reason,
                "reasonType": self.reason_type.value,
                "remediation": list(self.remediation),
                "upstream": [list(chain) for chain in self.upstream],
            }
        )
        return data


class ComplianceResult(BaseModel):
    """Violations and warnings produced by one compliance run."""

    model_config = {"extra": "forbid"}

    violations: list[Violation] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def passed(self) -> bool:
        """True if no dependency violates policy."""
        return not self.violations


class CheckReport(BaseModel):
    """Everything a report renderer needs about a check run."""

    model_config = {"extra": "forbid"}

    entries: list[DependencyEntry] = Field(
        default_factory=list, description="Entries that were checked"
    )
    violations: list[Violation] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    dependency_types: list[str] = Field(
        default_factory=list, description="Dependency types that were checked"
    )
    policy_mode: Literal["governed", "legacy", "none"] = Field(default="none")

    @property
    def passed(self) -> bool:
        return not self.violations

    def license_counts(self) -> list[tuple[str, int]]:
        """Count entries per license expression, most common first.

        Ties keep first-seen order.
        """
        counts: dict[str, int] = {}
        for entry in self.entries:
            key = entry.license or "UNKNOWN"
            counts[key] = counts.get(key, 0) + 1
        return sorted(counts.items(), key=lambda item: -item[1])


class CheckOptions(BaseModel):
    """Options for rendering a check run."""

    model_config = {"extra": "forbid"}

    format: Literal["terminal", "markdown", "json"] = Field(
        default="terminal",
        description="Output format for the report",
    )
    verbosity: Verbosity = Field(
        default=Verbosity.NORMAL,
        description="Output verbosity level (quiet, normal, verbose)",
    )

