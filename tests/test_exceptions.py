"""Tests for custom exceptions."""

import pytest

from license_gate.exceptions import (
    ConfigurationError,
    LicenseGateError,
    LockfileError,
)


class TestExceptionHierarchy:
    """Tests for exception hierarchy."""

    def test_license_gate_error_is_exception(self) -> None:
        """Test that LicenseGateError inherits from Exception."""
        assert issubclass(LicenseGateError, Exception)

    def test_configuration_error_inherits_from_base(self) -> None:
        """Test that ConfigurationError inherits from LicenseGateError."""
        assert issubclass(ConfigurationError, LicenseGateError)

    def test_lockfile_error_inherits_from_base(self) -> None:
        """Test that LockfileError inherits from LicenseGateError."""
        assert issubclass(LockfileError, LicenseGateError)

    def test_lockfile_error_caught_as_base(self) -> None:
        """Test that LockfileError can be caught as the base class."""
        with pytest.raises(LicenseGateError, match="Lockfile not found"):
            raise LockfileError("Lockfile not found at package-lock.json")
