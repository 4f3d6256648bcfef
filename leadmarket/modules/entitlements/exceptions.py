"""Entitlement exceptions."""

from leadmarket.core.exceptions import DomainError, ValidationError


class EntitlementError(DomainError):
    """Base class for entitlement errors."""


class InvalidViewTypeError(EntitlementError, ValidationError):
    """Raised for a view tier outside contact_info, detailed_info and full_access."""


class ViewAlreadyRecordedError(EntitlementError):
    """Raised inside an unlock transaction when a concurrent request recorded the same tier first."""
