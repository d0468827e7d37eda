from __future__ import annotations

from typing import Any, Optional


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class StructuralError(ValidationError):
    """Raised when an uploaded file cannot be processed at all.

    Carries machine-readable ``details`` echoed back in the 400 response.
    """

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.details = details if details is not None else message


class RowValidationError(ValidationError):
    """Raised when a single input row fails validation; the upload continues."""


class NotFoundError(DomainError):
    """Raised when a referenced upload/batch does not exist."""


class PersistenceError(DomainError):
    """Raised when a single row cannot be written to the store."""


class BatchTransactionError(PersistenceError):
    """Raised when a whole batch transaction fails (timeout, lost connection, ...)."""
