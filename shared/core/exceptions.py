"""
Typed errors raised by the ledger core.

Every error carries a machine-readable ``code`` and the structured data
needed to report it. The core never knows about HTTP; the transport layer
maps each class to a status code in ``shared.helpers.exception_handler``.

    LedgerError
    +-- InvalidLeaseParameters
    +-- EntityNotFound
    +-- AccessDenied
    +-- ConcurrentModification
    +-- StorageUnavailable
    +-- OperationCancelled
"""

from typing import Any, Optional


class LedgerError(Exception):
    """Base class for all ledger core errors."""

    code: str = "LEDGER_ERROR"
    retryable: bool = False

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidLeaseParameters(LedgerError):
    """Malformed input to schedule generation or installment creation."""

    code: str = "INVALID_LEASE_PARAMETERS"

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class EntityNotFound(LedgerError):
    """A referenced record does not exist."""

    code: str = "ENTITY_NOT_FOUND"

    def __init__(self, kind: str, entity_id: Any):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} not found: {entity_id}")


class AccessDenied(LedgerError):
    """The caller may not see or change the requested record."""

    code: str = "ACCESS_DENIED"

    def __init__(self, message: str = "Access denied", kind: Optional[str] = None, entity_id: Any = None):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(message)


class ConcurrentModification(LedgerError):
    """Optimistic check failed because another writer changed the row."""

    code: str = "CONCURRENT_MODIFICATION"
    retryable: bool = True

    def __init__(self, kind: str, entity_id: Any):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(
            f"{kind} {entity_id} was modified concurrently, retry the operation")


class StorageUnavailable(LedgerError):
    """The underlying store failed; the caller may retry with backoff."""

    code: str = "STORAGE_UNAVAILABLE"
    retryable: bool = True

    def __init__(self, message: str = "Storage unavailable", cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class OperationCancelled(LedgerError):
    """The caller's deadline passed before the operation could commit."""

    code: str = "OPERATION_CANCELLED"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"{operation} cancelled: deadline exceeded")
