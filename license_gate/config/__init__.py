"""Policy configuration handling for license-gate."""
from __future__ import annotations

from license_gate.config.defaults import (
    DEFAULT_POLICY_DIR,
    LEGACY_CONFIG_NAME,
    PRESETS,
    get_default_settings,
    preset_categories,
)
from license_gate.config.loader import (
    PolicySource,
    detect_policy_source,
    find_policy_file,
    load_legacy_policy,
    load_policy,
    load_policy_source,
    load_spdx_catalog,
    parse_exception_record,
    parse_license_record,
    validate_policy_bundle,
)
from license_gate.config.writer import (
    AppendResult,
    append_exception_record,
    append_license_record,
    ensure_policy_files,
    init_policy,
    migrate_legacy_config,
    migrate_policy,
    write_json,
)

__all__ = [
    "AppendResult",
    "DEFAULT_POLICY_DIR",
    "LEGACY_CONFIG_NAME",
    "PRESETS",
    "PolicySource",
    "append_exception_record",
    "append_license_record",
    "detect_policy_source",
    "ensure_policy_files",
    "find_policy_file",
    "get_default_settings",
    "init_policy",
    "load_legacy_policy",
    "load_policy",
    "load_policy_source",
    "load_spdx_catalog",
    "migrate_legacy_config",
    "migrate_policy",
    "parse_exception_record",
    "parse_license_record",
    "preset_categories",
    "validate_policy_bundle",
    "write_json",
]
