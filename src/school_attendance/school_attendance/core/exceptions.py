class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when an operation targets a record that does not exist."""


class TransientStoreError(Exception):
    """Raised when the ledger or cache backend is unavailable or timed out.

    Callers may retry the operation.
    """

    retryable = True
