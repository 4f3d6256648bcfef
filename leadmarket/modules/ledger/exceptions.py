"""Ledger domain exceptions."""

from leadmarket.core.exceptions import DomainError


class LedgerError(DomainError):
    """Base class for ledger errors."""


class InsufficientBalanceError(LedgerError):
    """Raised when a debit would take the balance below zero."""

    def __init__(self, required: int, available: int) -> None:
        super().__init__(f"Insufficient LeadCoins: required {required}, available {available}")
        self.required = required
        self.available = available
