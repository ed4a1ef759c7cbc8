"""License categories and the SPDX category catalog.

The catalog maps an SPDX identifier to its default category. The policy
engine only consults it for identifiers that have no explicit license
records.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from license_gate.constants import (
    ALL_CATEGORY_NAMES,
    CATEGORY_NAMES,
    LEGACY_CATEGORY_LETTERS,
    OTHER_CATEGORY_NAME,
    PERMISSIVE_CATEGORY,
    STRONG_COPYLEFT_CATEGORY,
    WEAK_COPYLEFT_CATEGORY,
)
from license_gate.exceptions import ConfigurationError

# Permissive licenses
PERMISSIVE_LICENSES: set[str] = {
    "0BSD",
    "Apache-2.0",
    "BlueOak-1.0.0",
    "BSD-2-Clause",
    "BSD-3-Clause",
    "BSL-1.0",
    "CC0-1.0",
    "ISC",
    "MIT",
    "MIT-0",
    "Python-2.0",
    "Unlicense",
    "WTFPL",
    "Zlib",
}

# Weak copyleft licenses
WEAK_COPYLEFT_LICENSES: set[str] = {
    "CDDL-1.0",
    "CDDL-1.1",
    "EPL-1.0",
    "EPL-2.0",
    "LGPL-2.0",
    "LGPL-2.0-only",
    "LGPL-2.0-or-later",
    "LGPL-2.1",
    "LGPL-2.1-only",
    "LGPL-2.1-or-later",
    "LGPL-3.0",
    "LGPL-3.0-only",
    "LGPL-3.0-or-later",
    "MPL-1.1",
    "MPL-2.0",
}

# Strong copyleft licenses
COPYLEFT_LICENSES: set[str] = {
    "AGPL-3.0",
    "AGPL-3.0-only",
    "AGPL-3.0-or-later",
    "GPL-2.0",
    "GPL-2.0-only",
    "GPL-2.0-or-later",
    "GPL-3.0",
    "GPL-3.0-only",
    "GPL-3.0-or-later",
    "OSL-3.0",
    "SSPL-1.0",
}


def map_legacy_category(value: Any) -> Optional[str]:
    """Map a legacy letter or a category name to a canonical category.

    Args:
        value: ``A``/``B``/``C`` (any case) or a category name compared
            case-insensitively.

    Returns:
        Canonical category name, or None if the value is not recognised.
        The uncategorized bucket is not a legacy category.
    """
    if value is None:
        return None
    raw = str(value).strip()
    if not raw:
        return None
    letter = LEGACY_CATEGORY_LETTERS.get(raw.upper())
    if letter is not None:
        return letter
    for name in CATEGORY_NAMES:
        if name.lower() == raw.lower():
            return name
    return None


def category_or_raise(value: Any) -> str:
    """Normalize a category name, accepting the uncategorized bucket.

    Raises:
        ConfigurationError: If the value is not a known category.
    """
    if str(value or "").strip() == OTHER_CATEGORY_NAME:
        return OTHER_CATEGORY_NAME
    mapped = map_legacy_category(value)
    if mapped is None:
        raise ConfigurationError(
            f'Invalid category "{value}". '
            f"Expected one of: {', '.join(ALL_CATEGORY_NAMES)}"
        )
    return mapped


class SpdxCatalog(BaseModel):
    """Default category and full name per SPDX identifier."""

    model_config = {"extra": "forbid", "frozen": True}

    categories: dict[str, str] = Field(
        default_factory=dict, description="Identifier to default category"
    )
    full_names: dict[str, str] = Field(
        default_factory=dict, description="Identifier to full license name"
    )

    def category_of(self, identifier: str) -> Optional[str]:
        """Get the default category of an identifier, if catalogued."""
        return self.categories.get(identifier)

    def full_name_of(self, identifier: str) -> Optional[str]:
        """Get the full name of an identifier, if catalogued."""
        return self.full_names.get(identifier)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self.categories


def default_catalog() -> SpdxCatalog:
    """Build the bundled catalog of common SPDX identifiers.

    Returns:
        SpdxCatalog covering the permissive, weak copyleft and strong
        copyleft identifier sets above. No full names are bundled.
    """
    categories: dict[str, str] = {}
    for identifier in PERMISSIVE_LICENSES:
        categories[identifier] = PERMISSIVE_CATEGORY
    for identifier in WEAK_COPYLEFT_LICENSES:
        categories[identifier] = WEAK_COPYLEFT_CATEGORY
    for identifier in COPYLEFT_LICENSES:
        categories[identifier] = STRONG_COPYLEFT_CATEGORY
    return SpdxCatalog(categories=categories)


def empty_catalog() -> SpdxCatalog:
    """Catalog with no entries: the category allowlist never matches."""
    return SpdxCatalog()
