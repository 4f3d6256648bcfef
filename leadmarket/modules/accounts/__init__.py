"""Account module public API."""

from .exceptions import AccountAlreadyExistsError, AccountError, AccountNotFoundError
from .models import Account, AccountCreateInput
from .service import AccountService

__all__ = [
    "Account",
    "AccountCreateInput",
    "AccountService",
    "AccountError",
    "AccountAlreadyExistsError",
    "AccountNotFoundError",
]
