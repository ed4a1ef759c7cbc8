"""Constants for license-gate."""

# Exit codes
EXIT_SUCCESS = 0  # Every dependency complies with policy
EXIT_VIOLATIONS = 1  # At least one policy violation
EXIT_ERROR = 2  # Run aborted on an input or configuration error

# License categories used by policy settings and records
PERMISSIVE_CATEGORY = "Permissive Licenses"
WEAK_COPYLEFT_CATEGORY = "Weak Copyleft Licenses"
STRONG_COPYLEFT_CATEGORY = "Strong Copyleft Licenses"
CATEGORY_NAMES = [
    PERMISSIVE_CATEGORY,
    WEAK_COPYLEFT_CATEGORY,
    STRONG_COPYLEFT_CATEGORY,
]
OTHER_CATEGORY_NAME = "Uncategorized / Needs Review"
ALL_CATEGORY_NAMES = [*CATEGORY_NAMES, OTHER_CATEGORY_NAME]

# Letters used by the legacy allowlist format
LEGACY_CATEGORY_LETTERS = {
    "A": PERMISSIVE_CATEGORY,
    "B": WEAK_COPYLEFT_CATEGORY,
    "C": STRONG_COPYLEFT_CATEGORY,
}

DEPENDENCY_TYPE_NAMES = [
    "dependencies",
    "devDependencies",
    "peerDependencies",
    "optionalDependencies",
    "bundledDependencies",
]

# Token produced for a missing or blank license expression
UNKNOWN_LICENSE = "UNKNOWN"
UNKNOWN_VERSION = "UNKNOWN"

# Synthetic parent for the project's own direct dependencies
ROOT_MARKER = "__root__"

DEFAULT_CHAIN_LIMIT = 30
CHECK_CHAIN_LIMIT = 50

# Informational timezone recorded in policy settings
DEFAULT_TIMEZONE = "UTC"

CLI_NAME = "license-gate"
