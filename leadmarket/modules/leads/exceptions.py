"""Lead domain exceptions."""

from leadmarket.core.exceptions import DomainError


class LeadError(DomainError):
    """Base class for lead errors."""


class LeadNotFoundError(LeadError):
    """Raised when the requested lead does not exist."""
