"""
Domain exceptions for the QuickBill application.

Storage failures fall into three kinds:

- ConfigurationError: connection parameters are missing. Expected; the
  caller falls back to the offline store and does not show it as an error.
- BackendUnavailableError: network, auth or I/O failure at call time.
- DataError: a stored payload could not be decoded.
"""

from typing import Any


class QuickBillError(Exception):
    """Base exception for all QuickBill errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Storage Exceptions
class StorageError(QuickBillError):
    """Base exception for storage operations."""

    pass


class ConfigurationError(StorageError):
    """Backend connection parameters are absent."""

    def __init__(self, backend: str, missing: list[str]):
        super().__init__(
            f"Backend '{backend}' is not configured (missing: {', '.join(missing)})",
            code="CONFIGURATION_ERROR",
            details={"backend": backend, "missing": missing},
        )


class BackendUnavailableError(StorageError):
    """Backend could not be reached or refused the request."""

    def __init__(self, backend: str, reason: str | None = None):
        super().__init__(
            f"Storage backend unavailable: {backend}" + (f" - {reason}" if reason else ""),
            code="BACKEND_UNAVAILABLE",
            details={"backend": backend, "reason": reason},
        )


class DataError(StorageError):
    """Stored payload is malformed or unparseable."""

    def __init__(self, backend: str, reason: str, key: str | None = None):
        super().__init__(
            f"Malformed data in {backend}" + (f" at '{key}'" if key else "") + f": {reason}",
            code="DATA_ERROR",
            details={"backend": backend, "reason": reason, "key": key},
        )


class BillNotFoundError(StorageError):
    """Bill not found in the active store."""

    def __init__(self, s_no: str):
        super().__init__(
            f"Bill not found: {s_no}",
            code="BILL_NOT_FOUND",
            details={"s_no": s_no},
        )


# Validation Exceptions
class ValidationError(QuickBillError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value else None,
            },
        )
