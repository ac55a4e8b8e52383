"""Custom exception types for the athlete benchmark engine."""


class ProbenchError(Exception):
    """Base exception for all recoverable benchmark engine errors."""


class ConfigurationError(ProbenchError):
    """Raised when runtime configuration values are missing or invalid."""


class AuthenticationError(ProbenchError):
    """Raised when warehouse credentials are unavailable or rejected."""


class StoreError(ProbenchError):
    """Raised when a reference-store read or write fails or returns an unexpected response."""


class DataValidationError(ProbenchError):
    """Raised when warehouse payloads or computed ranges do not meet expected constraints."""
