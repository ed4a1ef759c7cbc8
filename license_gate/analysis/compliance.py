"""Compliance decisions for dependency licenses.

Each dependency is evaluated independently against a read-only policy and
a fixed evaluation time:

1. Explicit license records for a token govern that token. An active
   record allows the dependency; records that have all expired block the
   category fallback for that token.
2. Tokens without any explicit record fall back to the category allowlist.
3. A denial can be suppressed by an active package exception.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional, Union

from nodesemver import satisfies

from license_gate.analysis.categories import SpdxCatalog
from license_gate.analysis.tokens import ordered_tokens
from license_gate.constants import CLI_NAME, UNKNOWN_LICENSE
from license_gate.models.dependency import DependencyEntry
from license_gate.models.policy import (
    ExceptionRecord,
    ExceptionScope,
    LegacyPolicy,
    LicenseRecord,
    PolicyBundle,
    is_active,
    most_recent,
)
from license_gate.models.report import (
    AllowedVia,
    ComplianceResult,
    Decision,
    ExceptionMatch,
    ReasonType,
    Violation,
)

logger = logging.getLogger(__name__)

Policy = Union[PolicyBundle, LegacyPolicy]

REMEDIATION: dict[ReasonType, tuple[str, ...]] = {
    ReasonType.EXPIRED_EXCEPTION: (f"Run {CLI_NAME} exceptions add",),
    ReasonType.EXPIRED_LICENSE_POLICY: (f"Run {CLI_NAME} licenses allow add",),
    ReasonType.UNKNOWN_LICENSE: (
        f"Run {CLI_NAME} licenses allow add",
        "Or set failOnUnknownLicense=false in policy/policy.json",
    ),
    ReasonType.LICENSE_NOT_ALLOWED: (
        f"Run {CLI_NAME} licenses allow add",
        f"Or run {CLI_NAME} exceptions add",
    ),
    ReasonType.LEGACY_NOT_ALLOWED: (
        f"Run {CLI_NAME} policy migrate",
        "Or update legacy allowedConfig.json",
    ),
}


def decide(
    entry: DependencyEntry,
    policy: PolicyBundle,
    catalog: Optional[SpdxCatalog],
    now: datetime,
) -> Decision:
    """Decide whether a dependency's declared license is authorized.

    Exceptions are not consulted here; see ``find_exception``.

    Args:
        entry: Dependency to evaluate.
        policy: Governed policy bundle.
        catalog: Default category per SPDX identifier. None disables the
            category allowlist for every token.
        now: Evaluation time.

    Returns:
        Decision. Denials carry a reason type and message; an expired
        explicit record is reported through ``governing_record``.
    """
    tokens = ordered_tokens(entry.license)
    unknown_detected = False
    first_expired: Optional[tuple[str, LicenseRecord]] = None

    for token in tokens:
        if token == UNKNOWN_LICENSE:
            unknown_detected = True
            continue

        records = policy.records_for(token)
        if not records:
            continue

        active = [record for record in records if is_active(record, now)]
        if active:
            return Decision(
                allowed=True,
                via=AllowedVia.EXPLICIT_LICENSE_RECORD,
                token=token,
                governing_record=most_recent(active),
            )

        if first_expired is None:
            expired = most_recent(records)
            if expired is not None:
                first_expired = (token, expired)

    allowed_categories = set(policy.settings.allowed_categories)
    for token in tokens:
        if token == UNKNOWN_LICENSE or policy.records_for(token):
            continue
        category = catalog.category_of(token) if catalog is not None else None
        if category is not None and category in allowed_categories:
            return Decision(
                allowed=True,
                via=AllowedVia.CATEGORY_ALLOWLIST,
                token=token,
            )

    license_text = entry.license or UNKNOWN_LICENSE
    if unknown_detected and policy.settings.fail_on_unknown_license:
        return Decision(
            allowed=False,
            reason_type=ReasonType.UNKNOWN_LICENSE,
            message=(
                f'Unknown license expression "{license_text}" '
                "is blocked by failOnUnknownLicense=true"
            ),
        )

    if first_expired is not None:
        token, record = first_expired
        return Decision(
            allowed=False,
            token=token,
            reason_type=ReasonType.EXPIRED_LICENSE_POLICY,
            message=(
                f"License policy for {token} expired at {record.expires_at} "
                "and no active follow-up record was found"
            ),
            governing_record=record,
        )

    return Decision(
        allowed=False,
        reason_type=ReasonType.LICENSE_NOT_ALLOWED,
        message=f"No active allowed-license policy record found for {license_text}",
    )


def match_exception_scope(version: str, scope: Optional[ExceptionScope]) -> bool:
    """Check whether a dependency version falls inside an exception scope.

    Args:
        version: Installed version of the dependency.
        scope: Exception scope; None behaves like ``any``.

    Returns:
        True on a match. An invalid range or version never matches.
    """
    if scope is None or scope.type == "any":
        return True
    if scope.type == "exact":
        return version == scope.version
    if scope.type == "range":
        if not scope.range:
            return False
        try:
            return bool(
                satisfies(version, scope.range, loose=True, include_prerelease=True)
            )
        except (ValueError, TypeError):
            return False
    return False


def find_exception(
    entry: DependencyEntry,
    exceptions: Iterable[ExceptionRecord],
    now: datetime,
) -> ExceptionMatch:
    """Find the exception governing a dependency.

    Args:
        entry: Dependency to look up.
        exceptions: Exception records in ledger order.
        now: Evaluation time.

    Returns:
        ExceptionMatch. When several records match, the most recent active
        one governs, else the most recent expired one.
    """
    matching = [
        record
        for record in exceptions
        if record.normalized_package == entry.name
        and match_exception_scope(entry.version, record.scope)
    ]
    if not matching:
        return ExceptionMatch()

    active = [record for record in matching if is_active(record, now)]
    if active:
        return ExceptionMatch(matched=True, active=True, record=most_recent(active))

    return ExceptionMatch(matched=True, active=False, record=most_recent(matching))


def decide_legacy(
    entry: DependencyEntry,
    policy: LegacyPolicy,
    catalog: Optional[SpdxCatalog],
) -> Decision:
    """Evaluate a dependency against a legacy flat allowlist."""
    if entry.name in policy.exceptions or entry.label in policy.exceptions:
        return Decision(allowed=True, via=AllowedVia.LEGACY_EXCEPTION)

    for token in ordered_tokens(entry.license):
        if token in policy.allowed_licenses:
            return Decision(allowed=True, via=AllowedVia.LEGACY_LICENSE, token=token)
        if policy.allowed_categories and catalog is not None:
            category = catalog.category_of(token)
            if category is not None and category in policy.allowed_categories:
                return Decision(
                    allowed=True, via=AllowedVia.LEGACY_CATEGORY, token=token
                )

    return Decision(
        allowed=False,
        reason_type=ReasonType.LEGACY_NOT_ALLOWED,
        message=(
            f"License {entry.license or UNKNOWN_LICENSE} "
            "is not allowed by legacy policy"
        ),
    )


def evaluate_compliance(
    entries: Iterable[DependencyEntry],
    policy: Optional[Policy],
    catalog: Optional[SpdxCatalog],
    now: Optional[datetime] = None,
) -> ComplianceResult:
    """Evaluate every dependency against policy.

    Args:
        entries: Dependencies to check.
        policy: Governed bundle, legacy allowlist, or None when the project
            has no policy (nothing is checked).
        catalog: SPDX category catalog.
        now: Evaluation time, defaults to the current UTC time.

    Returns:
        ComplianceResult with violations in input order. Upstream chains are
        not attached here.
    """
    if policy is None:
        return ComplianceResult()
    if now is None:
        now = datetime.now(timezone.utc)

    if isinstance(policy, LegacyPolicy):
        return _evaluate_legacy(entries, policy, catalog)

    violations: list[Violation] = []
    for entry in entries:
        decision = decide(entry, policy, catalog, now)
        if decision.allowed:
            logger.debug("%s allowed via %s", entry.label, decision.via.value)
            continue

        exception = find_exception(entry, policy.exceptions, now)
        if exception.active:
            logger.debug("%s allowed by exception", entry.label)
            continue

        reason = decision.message or ""
        reason_type = decision.reason_type or ReasonType.LICENSE_NOT_ALLOWED
        if exception.matched:
            expired_at = (
                exception.record.expires_at if exception.record else None
            ) or "unknown date"
            reason = (
                f"Exception for {entry.name} is expired ({expired_at}) "
                "and no active follow-up record was found"
            )
            reason_type = ReasonType.EXPIRED_EXCEPTION

        logger.debug("%s denied: %s", entry.label, reason_type.value)
        violations.append(
            Violation(
                entry=entry,
                reason=reason,
                reason_type=reason_type,
                remediation=REMEDIATION[reason_type],
            )
        )

    return ComplianceResult(violations=violations)


def _evaluate_legacy(
    entries: Iterable[DependencyEntry],
    policy: LegacyPolicy,
    catalog: Optional[SpdxCatalog],
) -> ComplianceResult:
    warnings = [
        f"Legacy policy format detected at {policy.path}. "
        f'Run "{CLI_NAME} policy migrate" to adopt governed policy files.'
    ]
    violations: list[Violation] = []
    for entry in entries:
        decision = decide_legacy(entry, policy, catalog)
        if decision.allowed:
            continue
        violations.append(
            Violation(
                entry=entry,
                reason=decision.message or "",
                reason_type=ReasonType.LEGACY_NOT_ALLOWED,
                remediation=REMEDIATION[ReasonType.LEGACY_NOT_ALLOWED],
            )
        )
    return ComplianceResult(violations=violations, warnings=warnings)
