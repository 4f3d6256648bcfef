"""Account domain specific exceptions."""

from leadmarket.core.exceptions import DomainError


class AccountError(DomainError):
    """Base class for account domain errors."""


class AccountAlreadyExistsError(AccountError):
    """Raised when attempting to create an account with a duplicate email."""


class AccountNotFoundError(AccountError):
    """Raised when the requested account cannot be found."""
