"""Exceptions shared by every domain module."""


class DomainError(Exception):
    """Base class for expected, caller-facing domain failures."""


class ForbiddenError(DomainError):
    """Raised when the caller's role does not allow the operation."""


class ValidationError(DomainError):
    """Raised when an operation receives an argument outside its domain."""


class PersistenceFailureError(DomainError):
    """Raised when the store fails mid-transaction; the unit of work was rolled back."""


class ProviderUnavailableError(DomainError):
    """Raised when the payment provider cannot be reached or rejects the call."""


__all__ = [
    "DomainError",
    "ForbiddenError",
    "ValidationError",
    "PersistenceFailureError",
    "ProviderUnavailableError",
]
