"""Policy file creation, record appends and legacy migration.

License and exception files are append-only ledgers. Every write re-sorts
the ledger into canonical order and validates the whole bundle before the
file is replaced.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, NamedTuple, Optional, Sequence, Union

from license_gate.analysis.categories import SpdxCatalog, map_legacy_category
from license_gate.config.defaults import (
    EXCEPTIONS_FILE_NAME,
    LICENSES_FILE_NAME,
    MIGRATION_APPROVER,
    MIGRATION_EVIDENCE_REF,
    POLICY_FILE_NAME,
    get_default_settings,
    preset_categories,
)
from license_gate.config.loader import (
    find_policy_file,
    load_policy,
    read_document,
    read_legacy_document,
    validate_policy_bundle,
)
from license_gate.constants import PERMISSIVE_CATEGORY
from license_gate.exceptions import ConfigurationError
from license_gate.models.policy import (
    ExceptionRecord,
    ExceptionScope,
    LicenseRecord,
    PolicyBundle,
    PolicySettings,
    format_timestamp,
    most_recent,
    sort_exception_records,
    sort_license_records,
)

logger = logging.getLogger(__name__)

MIGRATION_NOTE = "Migrated from legacy config"


class PolicyPaths(NamedTuple):
    """Files making up a policy directory."""

    policy: Path
    licenses: Path
    exceptions: Path


class AppendResult(NamedTuple):
    """Outcome of writing a record to a ledger.

    Attributes:
        path: Ledger file that was written.
        existing: True if records for the same identifier (licenses) or the
            same package and scope (exceptions) were already present.
        replaced: True if an existing exception was replaced in place.
    """

    path: Path
    existing: bool
    replaced: bool = False


class MigrationResult(NamedTuple):
    """Governed policy produced from a legacy allowlist."""

    settings: PolicySettings
    licenses: list[LicenseRecord]
    exceptions: list[ExceptionRecord]


def now_iso() -> str:
    """Current UTC time as written to record timestamps."""
    return format_timestamp(datetime.now(timezone.utc))


def policy_paths(policy_dir: Path) -> PolicyPaths:
    """Get the JSON file paths of a policy directory."""
    return PolicyPaths(
        policy=policy_dir / POLICY_FILE_NAME,
        licenses=policy_dir / LICENSES_FILE_NAME,
        exceptions=policy_dir / EXCEPTIONS_FILE_NAME,
    )


def write_json(path: Path, data: Any) -> None:
    """Write JSON with two-space indentation and a trailing newline.

    Raises:
        ConfigurationError: If the file cannot be written.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8"
        )
    except OSError as e:
        raise ConfigurationError(f"Cannot write '{path}': {e}") from e


def ensure_policy_files(policy_dir: Path) -> PolicyPaths:
    """Create any missing policy file with default content.

    Existing files are left untouched.
    """
    paths = policy_paths(policy_dir)
    if find_policy_file(policy_dir) is None:
        write_json(paths.policy, get_default_settings().to_json())
        logger.debug("Created %s", paths.policy)
    if not paths.licenses.exists():
        write_json(paths.licenses, [])
    if not paths.exceptions.exists():
        write_json(paths.exceptions, [])
    return paths


def append_license_record(policy_dir: Path, record: LicenseRecord) -> AppendResult:
    """Append a license record to ``licenses.json``.

    Records already present for the identifier are kept; the new record
    becomes a follow-up that supersedes them once it is the most recent.

    Args:
        policy_dir: Policy directory (created if needed).
        record: Record to append.

    Returns:
        AppendResult for ``licenses.json``.

    Raises:
        ConfigurationError: If the resulting policy does not validate.
    """
    paths = ensure_policy_files(policy_dir)
    bundle = load_policy(policy_dir)
    existing = bool(bundle.records_for(record.identifier))

    licenses = sort_license_records([*bundle.licenses, record])
    validated = validate_policy_bundle(bundle.settings, licenses, bundle.exceptions)
    write_json(paths.licenses, [item.to_json() for item in validated.licenses])
    return AppendResult(path=paths.licenses, existing=existing)


def matching_exceptions(
    bundle: PolicyBundle, package: str, scope: ExceptionScope
) -> list[ExceptionRecord]:
    """Get exceptions recorded for the same package and scope."""
    return [
        record
        for record in bundle.exceptions
        if record.package == package and record.scope.key == scope.key
    ]


def append_exception_record(
    policy_dir: Path,
    record: ExceptionRecord,
    edit_existing: bool = False,
) -> AppendResult:
    """Add an exception record to ``exceptions.json``.

    Args:
        policy_dir: Policy directory (created if needed).
        record: Record to write.
        edit_existing: Replace the most recent record with the same package
            and scope instead of appending a follow-up.

    Returns:
        AppendResult for ``exceptions.json``.

    Raises:
        ConfigurationError: If the resulting policy does not validate.
    """
    paths = ensure_policy_files(policy_dir)
    bundle = load_policy(policy_dir)
    same_scope = matching_exceptions(bundle, record.package, record.scope)

    exceptions = list(bundle.exceptions)
    replaced = False
    if same_scope and edit_existing:
        target = most_recent(same_scope)
        exceptions[exceptions.index(target)] = record
        replaced = True
    else:
        exceptions.append(record)

    validated = validate_policy_bundle(
        bundle.settings, bundle.licenses, sort_exception_records(exceptions)
    )
    write_json(paths.exceptions, [item.to_json() for item in validated.exceptions])
    return AppendResult(path=paths.exceptions, existing=bool(same_scope), replaced=replaced)


def init_policy(
    policy_dir: Path,
    preset: str = "strict",
    dependency_types: Optional[Sequence[str]] = None,
    force: bool = False,
) -> Path:
    """Write policy settings for a preset, creating missing ledgers.

    Args:
        policy_dir: Policy directory.
        preset: ``strict``, ``standard`` or ``permissive``.
        dependency_types: Dependency types to check (None means all).
        force: Overwrite existing settings.

    Returns:
        Path of the written ``policy.json``.

    Raises:
        ConfigurationError: If the preset is invalid or settings exist and
            ``force`` is not set.
    """
    categories = preset_categories(preset)
    existing = find_policy_file(policy_dir)
    if existing is not None and not force:
        raise ConfigurationError(
            f"Policy already exists at {existing}. Use --force to overwrite."
        )

    paths = ensure_policy_files(policy_dir)
    settings = PolicySettings.model_validate(
        {
            **get_default_settings().to_json(),
            "allowedCategories": categories,
            "dependencyTypes": dependency_types,
        }
    )
    validate_policy_bundle(
        settings,
        read_document(paths.licenses, "allowed licenses policy"),
        read_document(paths.exceptions, "exceptions policy"),
    )
    write_json(paths.policy, settings.to_json())
    return paths.policy


def migrate_legacy_config(
    legacy: Union[dict[str, Any], list[Any]],
    now: str,
    catalog: SpdxCatalog,
    preset: Optional[Sequence[str]] = None,
) -> MigrationResult:
    """Convert a legacy allowlist into governed policy content.

    Args:
        legacy: Parsed legacy document (list of licenses or mapping).
        now: Approval timestamp for every migrated record.
        catalog: SPDX catalog used for categories and full names.
        preset: Allowed categories used when the legacy file has none.

    Returns:
        MigrationResult. Allowed licenses become never-expiring license
        records; exceptions become ``exact`` scoped records when written as
        ``name@version`` and ``any`` scoped records otherwise.
    """
    if isinstance(legacy, list):
        legacy = {"allowedLicenses": legacy}

    raw_categories = legacy.get("allowedCategories")
    mapped = [
        map_legacy_category(category)
        for category in (raw_categories if isinstance(raw_categories, list) else [])
    ]
    categories = [category for category in mapped if category]
    if not categories:
        categories = list(preset or [PERMISSIVE_CATEGORY])
    categories = list(dict.fromkeys(categories))

    approval = {
        "approvedBy": [MIGRATION_APPROVER],
        "approvedAt": now,
        "expiresAt": None,
        "evidenceRef": MIGRATION_EVIDENCE_REF,
    }

    licenses: list[LicenseRecord] = []
    raw_licenses = legacy.get("allowedLicenses")
    for raw in raw_licenses if isinstance(raw_licenses, list) else []:
        identifier = str(raw or "").strip()
        if not identifier:
            continue
        default_category = catalog.category_of(identifier)
        category = default_category if default_category in categories else categories[0]
        licenses.append(
            LicenseRecord.model_validate(
                {
                    "identifier": identifier,
                    "category": category,
                    "fullName": catalog.full_name_of(identifier),
                    "notes": MIGRATION_NOTE,
                    "rationale": "Migrated from legacy allowlist entry.",
                    **approval,
                }
            )
        )

    exceptions: list[ExceptionRecord] = []
    raw_exceptions = legacy.get("exceptions")
    for raw in raw_exceptions if isinstance(raw_exceptions, list) else []:
        entry = str(raw or "").strip()
        if not entry:
            continue
        package, scope = _split_legacy_exception(entry)
        exceptions.append(
            ExceptionRecord.model_validate(
                {
                    "package": package,
                    "scope": scope,
                    "detectedLicenses": [],
                    "reason": MIGRATION_NOTE,
                    "notes": None,
                    **approval,
                }
            )
        )

    settings = get_default_settings().model_copy(
        update={"allowed_categories": tuple(categories)}
    )
    return MigrationResult(
        settings=settings,
        licenses=sort_license_records(licenses),
        exceptions=sort_exception_records(exceptions),
    )


def _split_legacy_exception(entry: str) -> tuple[str, dict[str, str]]:
    # "@scope/pkg" has no version; "@scope/pkg@1.0.0" and "pkg@1.0.0" do
    at_index = entry.rfind("@")
    if at_index > 0:
        package, version = entry[:at_index], entry[at_index + 1 :]
        if package and version:
            return package, {"type": "exact", "version": version}
    return entry, {"type": "any"}


def migrate_policy(
    legacy_path: Path,
    policy_dir: Path,
    catalog: SpdxCatalog,
    force: bool = False,
    now: Optional[str] = None,
) -> PolicyPaths:
    """Migrate a legacy allowlist file into a policy directory.

    Raises:
        ConfigurationError: If the legacy file is missing or invalid, or
            target files exist and ``force`` is not set.
    """
    legacy = read_legacy_document(legacy_path)
    paths = policy_paths(policy_dir)
    if not force:
        existing = [str(path) for path in paths if path.exists()]
        if existing:
            raise ConfigurationError(
                f"Target policy files already exist ({', '.join(existing)}). "
                "Re-run with --force to overwrite."
            )

    migrated = migrate_legacy_config(legacy, now or now_iso(), catalog)
    bundle = validate_policy_bundle(
        migrated.settings, migrated.licenses, migrated.exceptions
    )
    write_json(paths.policy, bundle.settings.to_json())
    write_json(paths.licenses, [record.to_json() for record in bundle.licenses])
    write_json(paths.exceptions, [record.to_json() for record in bundle.exceptions])
    logger.debug("Migrated %s into %s", legacy_path, policy_dir)
    return paths
