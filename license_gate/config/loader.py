"""Policy discovery and loading for license-gate."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Literal, Mapping, NamedTuple, Optional, Union

import yaml
from pydantic import ValidationError

from license_gate.analysis.categories import SpdxCatalog, map_legacy_category
from license_gate.config.defaults import (
    DEFAULT_POLICY_DIR,
    EXCEPTIONS_FILE_NAME,
    LEGACY_CONFIG_NAME,
    LICENSES_FILE_NAME,
    POLICY_FILE_NAME,
)
from license_gate.exceptions import ConfigurationError
from license_gate.models.policy import (
    ExceptionRecord,
    LegacyPolicy,
    LicenseRecord,
    PolicyBundle,
    PolicyRecord,
    PolicySettings,
    sort_exception_records,
    sort_license_records,
)

logger = logging.getLogger(__name__)

# Settings may also be hand-written in YAML; policy.json wins when both exist
POLICY_FILE_NAMES = [POLICY_FILE_NAME, "policy.yaml", "policy.yml"]

YAML_SUFFIXES = {".yaml", ".yml"}


class PolicySource(NamedTuple):
    """Where a project's policy comes from.

    Attributes:
        mode: ``governed`` for a policy directory, ``legacy`` for a flat
            allowlist file, ``none`` when the project has no policy.
        path: Policy directory or legacy file, None for ``none``.
    """

    mode: Literal["governed", "legacy", "none"]
    path: Optional[Path]


def read_document(path: Path, description: str) -> Any:
    """Read a JSON document, or a YAML one for ``.yaml``/``.yml`` files.

    Args:
        path: File to read.
        description: What the file holds, used in error messages.

    Returns:
        Parsed content (None for an empty YAML document).

    Raises:
        ConfigurationError: If the file cannot be read or parsed.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(
            f"Failed to read {description} at '{path}': {e}"
        ) from e

    if path.suffix.lower() in YAML_SUFFIXES:
        try:
            return yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML syntax in '{path}': {e}"
            ) from e

    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in '{path}': {e}") from e


def find_policy_file(policy_dir: Path) -> Path | None:
    """Find the policy settings file in a policy directory.

    Searches for ``policy.json`` first, then ``policy.yaml`` and
    ``policy.yml``.

    Args:
        policy_dir: Policy directory.

    Returns:
        Path to the settings file if found, None otherwise.
    """
    for name in POLICY_FILE_NAMES:
        candidate = policy_dir / name
        if candidate.exists():
            return candidate
    return None


def detect_policy_source(
    root: Path,
    policy_dir: str | None = None,
    allowed: str | None = None,
) -> PolicySource:
    """Decide which policy a project uses.

    Order: an explicit policy directory, then ``<root>/policy`` if it holds
    settings, then an explicit legacy file, then ``<root>/allowedConfig.json``.

    Args:
        root: Project root.
        policy_dir: Policy directory given on the command line.
        allowed: Legacy allowlist path given on the command line.

    Returns:
        PolicySource describing the chosen policy.
    """
    if policy_dir:
        return PolicySource("governed", (root / policy_dir).resolve())

    default_dir = (root / DEFAULT_POLICY_DIR).resolve()
    if find_policy_file(default_dir) is not None:
        return PolicySource("governed", default_dir)

    if allowed:
        return PolicySource("legacy", (root / allowed).resolve())

    default_legacy = (root / LEGACY_CONFIG_NAME).resolve()
    if default_legacy.exists():
        return PolicySource("legacy", default_legacy)

    return PolicySource("none", None)


def load_policy(policy_dir: Path) -> PolicyBundle:
    """Load and validate the governed policy in a directory.

    ``licenses.json`` and ``exceptions.json`` are optional and default to
    empty ledgers.

    Args:
        policy_dir: Directory holding the policy files.

    Returns:
        Validated PolicyBundle with records in canonical order.

    Raises:
        ConfigurationError: If settings are missing or any file is invalid.
    """
    settings_path = find_policy_file(policy_dir)
    if settings_path is None:
        raise ConfigurationError(
            f"Policy settings not found at '{policy_dir / POLICY_FILE_NAME}'"
        )

    settings_raw = read_document(settings_path, "policy settings")
    if settings_raw is None:
        settings_raw = {}
    if not isinstance(settings_raw, dict):
        raise ConfigurationError(
            f"Invalid policy settings in '{settings_path}': "
            f"expected a mapping at root level, got {type(settings_raw).__name__}"
        )

    licenses = _read_ledger(policy_dir / LICENSES_FILE_NAME, "allowed licenses policy")
    exceptions = _read_ledger(policy_dir / EXCEPTIONS_FILE_NAME, "exceptions policy")

    logger.debug(
        "Loaded policy from %s: %d license records, %d exceptions",
        policy_dir,
        len(licenses),
        len(exceptions),
    )
    return validate_policy_bundle(
        settings_raw, licenses, exceptions, source=str(policy_dir)
    )


def _read_ledger(path: Path, description: str) -> list[Any]:
    if not path.exists():
        return []
    data = read_document(path, description)
    if not isinstance(data, list):
        raise ConfigurationError(f"{path} must be a JSON array")
    return data


def validate_policy_bundle(
    settings: Union[Mapping[str, Any], PolicySettings],
    licenses: Iterable[Any],
    exceptions: Iterable[Any],
    source: str | None = None,
) -> PolicyBundle:
    """Validate policy content and build a bundle.

    Args:
        settings: Settings mapping (camelCase keys) or PolicySettings.
        licenses: License records as mappings or models.
        exceptions: Exception records as mappings or models.
        source: Where the policy came from, kept for reporting.

    Returns:
        PolicyBundle with records sorted in canonical order.

    Raises:
        ConfigurationError: If the settings or any record is invalid,
            including unparsable approval or expiry dates.
    """
    try:
        validated_settings = PolicySettings.model_validate(settings)
    except ValidationError as e:
        raise ConfigurationError(
            f"Policy settings schema validation failed: {_format_validation_errors(e)}"
        ) from e

    if not isinstance(licenses, (list, tuple)):
        raise ConfigurationError("licenses must be an array")
    if not isinstance(exceptions, (list, tuple)):
        raise ConfigurationError("exceptions must be an array")

    license_records = [parse_license_record(raw) for raw in licenses]
    exception_records = [parse_exception_record(raw) for raw in exceptions]

    return PolicyBundle(
        settings=validated_settings,
        licenses=tuple(sort_license_records(license_records)),
        exceptions=tuple(sort_exception_records(exception_records)),
        source=source,
    )


def parse_license_record(raw: Any) -> LicenseRecord:
    """Validate one license record, including its dates.

    Raises:
        ConfigurationError: If the record is invalid.
    """
    label = _record_label(raw, "identifier")
    try:
        record = LicenseRecord.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(
            f"License record {label} schema validation failed: "
            f"{_format_validation_errors(e)}"
        ) from e
    _check_record_dates(record, f"License record {record.identifier}")
    return record


def parse_exception_record(raw: Any) -> ExceptionRecord:
    """Validate one exception record, including its dates.

    Raises:
        ConfigurationError: If the record is invalid.
    """
    label = _record_label(raw, "package")
    try:
        record = ExceptionRecord.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(
            f"Exception record {label} schema validation failed: "
            f"{_format_validation_errors(e)}"
        ) from e
    _check_record_dates(record, f"Exception record {record.package}")
    return record


def _record_label(raw: Any, key: str) -> str:
    if isinstance(raw, PolicyRecord):
        return str(getattr(raw, key, "<unknown>"))
    if isinstance(raw, Mapping) and raw.get(key):
        return str(raw[key])
    return "<unknown>"


def _check_record_dates(record: PolicyRecord, description: str) -> None:
    if record.approved_at_time is None:
        raise ConfigurationError(
            f"{description} approvedAt must be a valid ISO 8601 datetime"
        )
    if record.expires_at is not None and record.expires_at_time is None:
        raise ConfigurationError(
            f"{description} expiresAt must be null or a valid ISO 8601 datetime"
        )


def _format_validation_errors(error: ValidationError) -> str:
    """Format Pydantic validation errors into a readable string.

    Args:
        error: The Pydantic ValidationError.

    Returns:
        Formatted error message string.
    """
    messages: list[str] = []
    for err in error.errors():
        loc = ".".join(str(x) for x in err["loc"]) if err["loc"] else "root"
        messages.append(f"{loc}: {err['msg']}")
    return "; ".join(messages)


def load_legacy_policy(path: Path) -> LegacyPolicy:
    """Load a legacy ``allowedConfig.json`` allowlist.

    The file is either a list of license identifiers or an object with
    ``allowedLicenses``, ``allowedCategories`` (letters ``A``/``B``/``C``
    or category names) and ``exceptions`` (package names or
    ``name@version``).

    Raises:
        ConfigurationError: If the file is missing or malformed.
    """
    raw = read_legacy_document(path)
    if isinstance(raw, list):
        raw = {"allowedLicenses": raw}

    allowed_licenses = raw.get("allowedLicenses") or []
    if not isinstance(allowed_licenses, list):
        raise ConfigurationError(
            'Legacy allowed licenses must be an array or contain { "allowedLicenses": [] }'
        )
    categories = raw.get("allowedCategories") or []
    if not isinstance(categories, list):
        raise ConfigurationError(
            'Legacy allowedCategories must be an array like ["A", "B"]'
        )
    exceptions = raw.get("exceptions") or []
    if not isinstance(exceptions, list):
        raise ConfigurationError("Legacy exceptions must be an array")

    mapped = (map_legacy_category(category) for category in categories)
    return LegacyPolicy(
        path=str(path),
        allowed_licenses=frozenset(_clean_strings(allowed_licenses)),
        allowed_categories=frozenset(category for category in mapped if category),
        exceptions=frozenset(_clean_strings(exceptions)),
    )


def read_legacy_document(path: Path) -> Union[dict[str, Any], list[Any]]:
    """Read a legacy allowlist file as a list or mapping.

    Raises:
        ConfigurationError: If the file is missing or not a list or mapping.
    """
    if not path.exists():
        raise ConfigurationError(f"Legacy config not found at {path}")
    raw = read_document(path, "legacy allowed config")
    if raw is None:
        return {}
    if not isinstance(raw, (dict, list)):
        raise ConfigurationError(
            f"Invalid legacy config in '{path}': "
            f"expected an array or a mapping, got {type(raw).__name__}"
        )
    return raw


def _clean_strings(values: Iterable[Any]) -> list[str]:
    cleaned = (str(value).strip() for value in values if value is not None)
    return [value for value in cleaned if value]


def load_spdx_catalog(path: Path) -> SpdxCatalog:
    """Load an SPDX category catalog file.

    The file is a list of ``{identifier, defaultCategory, fullName}``
    objects. Entries whose category cannot be mapped keep their full name
    but get no category.

    Args:
        path: Catalog file.

    Returns:
        SpdxCatalog. A missing file or a non-list document yields an empty
        catalog.
    """
    if not path.exists():
        logger.debug("SPDX catalog %s not found, using an empty catalog", path)
        return SpdxCatalog()

    data = read_document(path, "SPDX licenses")
    categories: dict[str, str] = {}
    full_names: dict[str, str] = {}
    if not isinstance(data, list):
        return SpdxCatalog()

    for item in data:
        if not isinstance(item, Mapping):
            continue
        identifier = str(item.get("identifier") or "").strip()
        if not identifier:
            continue
        category = map_legacy_category(item.get("defaultCategory"))
        if category:
            categories[identifier] = category
        if item.get("fullName"):
            full_names[identifier] = str(item["fullName"])

    return SpdxCatalog(categories=categories, full_names=full_names)


def load_policy_source(
    source: PolicySource,
) -> Union[PolicyBundle, LegacyPolicy, None]:
    """Load whatever policy a PolicySource points at."""
    if source.mode == "governed" and source.path is not None:
        return load_policy(source.path)
    if source.mode == "legacy" and source.path is not None:
        return load_legacy_policy(source.path)
    return None
