"""Tests for license categories and the SPDX catalog."""

import pytest

from license_gate.analysis.categories import (
    SpdxCatalog,
    category_or_raise,
    default_catalog,
    empty_catalog,
    map_legacy_category,
)
from license_gate.constants import (
    OTHER_CATEGORY_NAME,
    PERMISSIVE_CATEGORY,
    STRONG_COPYLEFT_CATEGORY,
    WEAK_COPYLEFT_CATEGORY,
)
from license_gate.exceptions import ConfigurationError


class TestMapLegacyCategory:
    """Tests for map_legacy_category function."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("A", PERMISSIVE_CATEGORY),
            ("b", WEAK_COPYLEFT_CATEGORY),
            (" C ", STRONG_COPYLEFT_CATEGORY),
            ("permissive licenses", PERMISSIVE_CATEGORY),
        ],
    )
    def test_known_values(self, value: str, expected: str) -> None:
        """Test letters and case-insensitive names."""
        assert map_legacy_category(value) == expected

    @pytest.mark.parametrize("value", [None, "", "D", OTHER_CATEGORY_NAME])
    def test_unknown_values(self, value: object) -> None:
        """Test that unrecognised values map to None."""
        assert map_legacy_category(value) is None


class TestCategoryOrRaise:
    """Tests for category_or_raise function."""

    def test_accepts_uncategorized(self) -> None:
        """Test that the review bucket is a valid record category."""
        assert category_or_raise(OTHER_CATEGORY_NAME) == OTHER_CATEGORY_NAME

    def test_rejects_unknown(self) -> None:
        """Test that an unknown category raises."""
        with pytest.raises(ConfigurationError, match='Invalid category "Proprietary"'):
            category_or_raise("Proprietary")


class TestSpdxCatalog:
    """Tests for SpdxCatalog model."""

    def test_default_catalog_categories(self) -> None:
        """Test categories of well-known identifiers."""
        catalog = default_catalog()
        assert catalog.category_of("MIT") == PERMISSIVE_CATEGORY
        assert catalog.category_of("MPL-2.0") == WEAK_COPYLEFT_CATEGORY
        assert catalog.category_of("GPL-3.0-only") == STRONG_COPYLEFT_CATEGORY
        assert catalog.category_of("LicenseRef-foo") is None

    def test_contains(self) -> None:
        """Test membership checks."""
        catalog = default_catalog()
        assert "Apache-2.0" in catalog
        assert "Nope-1.0" not in catalog

    def test_full_name_lookup(self) -> None:
        """Test full name lookup for a custom catalog."""
        catalog = SpdxCatalog(
            categories={"MIT": PERMISSIVE_CATEGORY},
            full_names={"MIT": "MIT License"},
        )
        assert catalog.full_name_of("MIT") == "MIT License"
        assert catalog.full_name_of("ISC") is None

    def test_empty_catalog(self) -> None:
        """Test that the empty catalog knows nothing."""
        assert empty_catalog().category_of("MIT") is None
