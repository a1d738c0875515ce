"""
Custom exceptions for the gateway storage domain.

Storage driver errors are translated into these before they reach the
caller, so callers can branch on them without knowing the store.
"""

from typing import Any, Optional


class GatewayStorageException(Exception):
    """Base exception for all gateway storage errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(GatewayStorageException):
    """Raised when a gateway fails domain validation."""

    def __init__(self, field: str, value: Any, reason: str):
        message = f"Validation failed for {field}: {reason}"
        super().__init__(
            message=message,
            details={"field": field, "value": str(value), "reason": reason},
        )


class NotFoundError(GatewayStorageException):
    """Raised when the targeted gateway does not exist."""

    def __init__(self, gateway_id: Any):
        super().__init__(
            message=f"Gateway does not exist: {gateway_id}",
            details={"gateway_id": str(gateway_id)},
        )


class AlreadyExistsError(GatewayStorageException):
    """Raised when creating a gateway whose id is already stored."""

    def __init__(self, gateway_id: Any):
        super().__init__(
            message=f"Gateway already exists: {gateway_id}",
            details={"gateway_id": str(gateway_id)},
        )


class CountMismatchError(GatewayStorageException):
    """Raised when a batch read returns fewer gateways than requested."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            message=f"Expected {expected} gateways, got {actual}",
            details={"expected": expected, "actual": actual},
        )


class DecodeError(GatewayStorageException):
    """Raised when a stored GPS point cannot be parsed."""

    def __init__(self, raw: Any, reason: str):
        super().__init__(
            message=f"Cannot decode GPS point {raw!r}: {reason}",
            details={"raw": repr(raw), "reason": reason},
        )


class StorageError(GatewayStorageException):
    """Raised when the underlying store fails; wraps the original cause."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.cause = cause
        message = f"Storage {operation} failed"
        if cause is not None:
            message += f": {cause}"
        super().__init__(
            message=message,
            details={"operation": operation, "reason": str(cause) if cause else None},
        )
