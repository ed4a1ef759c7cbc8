"""Tests for license expression tokenization."""

from license_gate.analysis.tokens import ordered_tokens, tokenize_license


class TestTokenizeLicense:
    """Tests for tokenize_license function."""

    def test_single_identifier(self) -> None:
        """Test a plain SPDX identifier."""
        assert tokenize_license("MIT") == frozenset({"MIT"})

    def test_compound_expression(self) -> None:
        """Test that every leaf of an OR/AND expression is returned."""
        tokens = tokenize_license("(MIT OR Apache-2.0) AND BSD-3-Clause")
        assert tokens == frozenset({"MIT", "Apache-2.0", "BSD-3-Clause"})

    def test_with_exception_keeps_license_only(self) -> None:
        """Test that the exception after WITH is not a token."""
        tokens = tokenize_license("Apache-2.0 WITH LLVM-exception")
        assert tokens == frozenset({"Apache-2.0"})

    def test_or_later_suffix_stripped(self) -> None:
        """Test that a trailing plus is removed."""
        assert tokenize_license("GPL-2.0+") == frozenset({"GPL-2.0"})

    def test_none_is_unknown(self) -> None:
        """Test that a missing license is UNKNOWN."""
        assert tokenize_license(None) == frozenset({"UNKNOWN"})

    def test_blank_is_unknown(self) -> None:
        """Test that a blank license is UNKNOWN."""
        assert tokenize_license("   ") == frozenset({"UNKNOWN"})

    def test_slash_separated_fallback(self) -> None:
        """Test the separator split for non-SPDX expressions."""
        assert tokenize_license("MIT/Apache-2.0") == frozenset({"MIT", "Apache-2.0"})

    def test_unbalanced_parentheses_fallback(self) -> None:
        """Test that malformed expressions still yield tokens."""
        tokens = tokenize_license("(MIT OR ISC")
        assert tokens == frozenset({"MIT", "ISC"})

    def test_custom_license_ref(self) -> None:
        """Test that LicenseRef identifiers are kept as written."""
        tokens = tokenize_license("LicenseRef-acme-internal")
        assert tokens == frozenset({"LicenseRef-acme-internal"})

    def test_duplicates_collapse(self) -> None:
        """Test that repeated identifiers appear once."""
        assert tokenize_license("MIT OR MIT") == frozenset({"MIT"})

    def test_empty_parentheses_fall_back(self) -> None:
        """Test that empty parentheses do not raise."""
        assert tokenize_license("()") == frozenset({"UNKNOWN"})
        assert tokenize_license("MIT AND ()") == frozenset({"MIT"})


class TestOrderedTokens:
    """Tests for ordered_tokens function."""

    def test_expression_order(self) -> None:
        """Test that identifiers keep their order of appearance."""
        assert ordered_tokens("MIT OR ISC") == ("MIT", "ISC")
        assert ordered_tokens("ISC OR MIT OR ISC") == ("ISC", "MIT")

    def test_fallback_order(self) -> None:
        """Test order for the separator split."""
        assert ordered_tokens("Zlib/Apache-2.0") == ("Zlib", "Apache-2.0")

    def test_unknown(self) -> None:
        """Test missing input."""
        assert ordered_tokens(None) == ("UNKNOWN",)
