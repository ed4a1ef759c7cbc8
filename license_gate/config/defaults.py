"""Default policy values for license-gate."""

from __future__ import annotations

from license_gate.constants import (
    CATEGORY_NAMES,
    DEFAULT_TIMEZONE,
    DEPENDENCY_TYPE_NAMES,
    PERMISSIVE_CATEGORY,
    WEAK_COPYLEFT_CATEGORY,
)
from license_gate.exceptions import ConfigurationError
from license_gate.models.policy import PolicySettings

# Policy directory and files, relative to the project root
DEFAULT_POLICY_DIR = "policy"
POLICY_FILE_NAME = "policy.json"
LICENSES_FILE_NAME = "licenses.json"
EXCEPTIONS_FILE_NAME = "exceptions.json"

# Legacy flat allowlist, relative to the project root
LEGACY_CONFIG_NAME = "allowedConfig.json"

DEFAULT_LOCK_NAME = "package-lock.json"
DEFAULT_SBOM_NAME = "sbom-licenses.json"

# Allowed categories written by `init --preset`
PRESETS: dict[str, list[str]] = {
    "strict": [PERMISSIVE_CATEGORY],
    "standard": [PERMISSIVE_CATEGORY, WEAK_COPYLEFT_CATEGORY],
    "permissive": list(CATEGORY_NAMES),
}
DEFAULT_PRESET = "strict"

# Values recorded on migrated records
MIGRATION_APPROVER = "unknown"
MIGRATION_EVIDENCE_REF = "MIGRATION"


def get_default_settings() -> PolicySettings:
    """Get the settings written to a new ``policy.json``.

    Returns:
        PolicySettings allowing permissive and weak copyleft licenses for
        every dependency type.
    """
    return PolicySettings(
        allowed_categories=(PERMISSIVE_CATEGORY, WEAK_COPYLEFT_CATEGORY),
        fail_on_unknown_license=True,
        timezone=DEFAULT_TIMEZONE,
        dependency_types=tuple(DEPENDENCY_TYPE_NAMES),
    )


def preset_categories(preset: str) -> list[str]:
    """Get the allowed categories for a preset name (case-insensitive).

    Raises:
        ConfigurationError: If the preset is unknown.
    """
    key = str(preset or DEFAULT_PRESET).strip().lower()
    if key not in PRESETS:
        raise ConfigurationError(
            "Invalid preset. Use strict, standard, or permissive."
        )
    return list(PRESETS[key])
