"""Policy-related Pydantic models for license-gate.

License records and exception records form an append-only audit ledger:
several records may exist for the same identifier (or package and scope),
and a newer record supersedes an older one instead of editing it. The
activity and ordering rules in this module decide which record governs at
a given instant.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal, Optional, Sequence, TypeVar

from nodesemver import valid as valid_semver
from pydantic import BaseModel, Field, field_validator, model_validator

from license_gate.constants import DEFAULT_TIMEZONE, DEPENDENCY_TYPE_NAMES
from license_gate.exceptions import ConfigurationError

# Scope kinds sort exact < range < any in canonical storage order
SCOPE_ORDER = {"exact": 0, "range": 1, "any": 2}

_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp leniently.

    Accepts a trailing ``Z``, fractional seconds and date-only values.
    Naive values are taken as UTC.

    Args:
        value: Timestamp string or None.

    Returns:
        Timezone-aware datetime, or None if missing or unparsable.
    """
    if value is None:
        return None
    raw = str(value).strip()
    if not raw:
        return None
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime) -> str:
    """Format a datetime as a UTC ISO 8601 string with millisecond precision."""
    utc = value.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


class PolicySettings(BaseModel):
    """Policy-wide settings read from ``policy.json``."""

    model_config = {"extra": "forbid", "frozen": True, "populate_by_name": True}

    allowed_categories: tuple[str, ...] = Field(
        default=(),
        alias="allowedCategories",
        description="License categories allowed without an explicit record",
    )
    fail_on_unknown_license: bool = Field(
        default=True,
        alias="failOnUnknownLicense",
        description="Deny packages whose license cannot be determined",
    )
    timezone: str = Field(
        default=DEFAULT_TIMEZONE,
        min_length=1,
        description="Timezone used when presenting approval dates",
    )
    dependency_types: tuple[str, ...] = Field(
        default=tuple(DEPENDENCY_TYPE_NAMES),
        alias="dependencyTypes",
        description="Dependency types checked by default",
    )

    @field_validator("allowed_categories", mode="before")
    @classmethod
    def _canonical_categories(cls, value: Any) -> Any:
        if not isinstance(value, (list, tuple)):
            return value
        # Lazy import to avoid circular dependency
        from license_gate.analysis.categories import category_or_raise

        categories: list[str] = []
        for raw in value:
            try:
                category = category_or_raise(raw)
            except ConfigurationError as e:
                raise ValueError(str(e)) from e
            if category not in categories:
                categories.append(category)
        return tuple(categories)

    @field_validator("dependency_types", mode="before")
    @classmethod
    def _known_dependency_types(cls, value: Any) -> Any:
        if value is not None and not isinstance(value, (list, tuple)):
            return value
        # Lazy import to avoid circular dependency
        from license_gate.analysis.filtering import normalize_dependency_types

        try:
            return tuple(normalize_dependency_types(value))
        except ConfigurationError as e:
            raise ValueError(str(e)) from e

    def to_json(self) -> dict[str, Any]:
        """Return settings as written to ``policy.json``."""
        return {
            "allowedCategories": list(self.allowed_categories),
            "failOnUnknownLicense": self.fail_on_unknown_license,
            "timezone": self.timezone,
            "dependencyTypes": list(self.dependency_types),
        }


class PolicyRecord(BaseModel):
    """Approval fields shared by license and exception records.

    Timestamps keep the string read from disk. Unparsable values are
    rejected when a policy is loaded, but the activity rules still treat
    them fail-closed.
    """

    model_config = {"extra": "allow", "frozen": True, "populate_by_name": True}

    approved_by: tuple[str, ...] = Field(
        min_length=1,
        alias="approvedBy",
        description="People who approved the record",
    )
    approved_at: str = Field(alias="approvedAt", description="Approval timestamp")
    expires_at: Optional[str] = Field(
        alias="expiresAt",
        description="Expiry timestamp, or None for a record that never expires",
    )
    evidence_ref: str = Field(
        min_length=1,
        alias="evidenceRef",
        description="Ticket, URL or identifier backing the approval",
    )

    @field_validator("approved_by")
    @classmethod
    def _non_blank_approvers(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if any(not approver.strip() for approver in value):
            raise ValueError("approvedBy entries must not be blank")
        return value

    @field_validator("evidence_ref")
    @classmethod
    def _non_blank_evidence(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("evidenceRef is required")
        return value

    @property
    def approved_at_time(self) -> Optional[datetime]:
        """Parsed approval time, or None if unparsable."""
        return parse_timestamp(self.approved_at)

    @property
    def expires_at_time(self) -> Optional[datetime]:
        """Parsed expiry time, or None if missing or unparsable."""
        return parse_timestamp(self.expires_at)


class LicenseRecord(PolicyRecord):
    """Audited approval of one license identifier.

    The category is metadata only: an active record allows its identifier
    regardless of the policy's allowed categories.
    """

    identifier: str = Field(min_length=1, description="SPDX-like license identifier")
    category: str = Field(description="License category of the identifier")
    full_name: Optional[str] = Field(
        default=None, alias="fullName", description="Human-readable license name"
    )
    notes: Optional[str] = Field(default=None, description="Free-form notes")
    rationale: str = Field(min_length=1, description="Why the license is approved")

    @field_validator("category", mode="before")
    @classmethod
    def _canonical_category(cls, value: Any) -> Any:
        # Lazy import to avoid circular dependency
        from license_gate.analysis.categories import category_or_raise

        try:
            return category_or_raise(value)
        except ConfigurationError as e:
            raise ValueError(str(e)) from e

    def to_json(self) -> dict[str, Any]:
        """Return the record as written to ``licenses.json``."""
        return self.model_dump(by_alias=True, mode="json")


class ExceptionScope(BaseModel):
    """Version scope of an exception: exact version, semver range, or any."""

    model_config = {"extra": "forbid", "frozen": True}

    type: Literal["exact", "range", "any"] = Field(
        default="any", description="Scope kind"
    )
    version: Optional[str] = Field(default=None, description="Version for exact scope")
    range: Optional[str] = Field(default=None, description="Semver range for range scope")

    @model_validator(mode="after")
    def _check_scope_value(self) -> ExceptionScope:
        if self.type == "exact" and not (self.version or "").strip():
            raise ValueError("exact scope requires scope.version")
        if self.type == "range" and not (self.range or "").strip():
            raise ValueError("range scope requires scope.range")
        return self

    @property
    def sort_value(self) -> str:
        """Version or range compared within the same scope kind."""
        if self.type == "exact":
            return self.version or ""
        if self.type == "range":
            return self.range or ""
        return ""

    @property
    def key(self) -> str:
        """Identity of the scope, e.g. ``exact:1.2.3`` or ``any:*``."""
        if self.type == "any":
            return "any:*"
        return f"{self.type}:{self.sort_value}"

    def to_json(self) -> dict[str, Any]:
        """Return the scope without unused fields."""
        return self.model_dump(exclude_none=True)


class ExceptionRecord(PolicyRecord):
    """Audited exception for a package within a version scope."""

    package: str = Field(min_length=1, description="Package name")
    scope: ExceptionScope = Field(
        default_factory=ExceptionScope, description="Version scope"
    )
    detected_licenses: tuple[str, ...] = Field(
        default=(),
        alias="detectedLicenses",
        description="Licenses detected when the exception was approved",
    )
    reason: str = Field(min_length=1, description="Why the exception is granted")
    notes: Optional[str] = Field(default=None, description="Free-form notes")

    @property
    def normalized_package(self) -> str:
        """Package name with a trailing ``@<version>`` removed.

        The suffix is dropped only when it parses as a version, so scoped
        names such as ``@babel/core`` are left alone.
        """
        package = self.package.strip()
        at_index = package.rfind("@")
        if at_index <= 0:
            return package
        maybe_version = package[at_index + 1 :]
        if not valid_semver(maybe_version, loose=True):
            return package
        return package[:at_index]

    def to_json(self) -> dict[str, Any]:
        """Return the record as written to ``exceptions.json``."""
        data = self.model_dump(by_alias=True, mode="json")
        data["scope"] = self.scope.to_json()
        return data


class PolicyBundle(BaseModel):
    """Governed policy: settings plus the license and exception ledgers."""

    model_config = {"extra": "forbid", "frozen": True}

    settings: PolicySettings = Field(default_factory=PolicySettings)
    licenses: tuple[LicenseRecord, ...] = Field(
        default=(), description="License records in canonical order"
    )
    exceptions: tuple[ExceptionRecord, ...] = Field(
        default=(), description="Exception records in canonical order"
    )
    source: Optional[str] = Field(
        default=None, description="Policy directory the bundle was loaded from"
    )

    def records_for(self, identifier: str) -> list[LicenseRecord]:
        """Get every license record for an identifier, in ledger order."""
        return [record for record in self.licenses if record.identifier == identifier]


class LegacyPolicy(BaseModel):
    """Flat allowlist from the legacy ``allowedConfig.json`` format."""

    model_config = {"extra": "forbid", "frozen": True}

    path: str = Field(description="Path of the legacy config file")
    allowed_licenses: frozenset[str] = Field(default=frozenset())
    allowed_categories: frozenset[str] = Field(default=frozenset())
    exceptions: frozenset[str] = Field(
        default=frozenset(), description="Package names or name@version pairs"
    )


RecordT = TypeVar("RecordT", bound=PolicyRecord)


def is_active(record: PolicyRecord, now: datetime) -> bool:
    """Check whether a record is in force at a given time.

    Args:
        record: License or exception record.
        now: Evaluation time (naive values are taken as UTC).

    Returns:
        True if the record never expires or expires strictly after ``now``.
        An unparsable expiry is never active.
    """
    if record.expires_at is None or not str(record.expires_at).strip():
        return True
    expiry = record.expires_at_time
    if expiry is None:
        return False
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return expiry > now


def most_recent(records: Sequence[RecordT]) -> Optional[RecordT]:
    """Get the record with the latest approval time.

    Unparsable approval times sort as the earliest possible instant. Ties
    go to the first record in the given order.
    """
    if not records:
        return None
    return max(records, key=_approved_sort_key)


def _approved_sort_key(record: PolicyRecord) -> datetime:
    return record.approved_at_time or _EARLIEST


def sort_license_records(records: Sequence[LicenseRecord]) -> list[LicenseRecord]:
    """Sort license records by identifier, then approval time ascending."""
    return sorted(
        records,
        key=lambda record: (record.identifier, _approved_sort_key(record)),
    )


def sort_exception_records(
    records: Sequence[ExceptionRecord],
) -> list[ExceptionRecord]:
    """Sort exception records for storage.

    Order is package, scope kind (exact < range < any), scope value, then
    approval time ascending.
    """
    return sorted(
        records,
        key=lambda record: (
            record.package,
            SCOPE_ORDER.get(record.scope.type, 0),
            record.scope.sort_value,
            _approved_sort_key(record),
        ),
    )
