class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class InvalidSplitError(ValidationError):
    """Raised when shared percentages do not add up to 100."""


class NotFoundError(DomainError):
    """Raised when a visit, guest, order item or split does not exist."""


class ConflictError(DomainError):
    """Raised when the current state forbids the operation (resolve it first)."""


class StorageError(DomainError):
    """Raised when the storage driver fails."""
