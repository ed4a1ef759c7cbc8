"""Custom exceptions for license-gate."""


class LicenseGateError(Exception):
    """Base exception for all license-gate errors."""

    pass


class ConfigurationError(LicenseGateError):
    """Exception raised when policy files or settings are invalid."""

    pass


class LockfileError(LicenseGateError):
    """Exception raised when the lock structure is missing or unreadable."""

    pass
