"""LeadCoin ledger module."""

from .exceptions import InsufficientBalanceError, LedgerError
from .models import (
    KIND_ADMIN_TOPUP,
    KIND_PURCHASE,
    KIND_REFUND,
    KIND_SPENT,
    BalanceChange,
    CoinHolder,
    LedgerEntry,
    LedgerStats,
)
from .service import LedgerService

__all__ = [
    "LedgerService",
    "LedgerError",
    "InsufficientBalanceError",
    "BalanceChange",
    "CoinHolder",
    "LedgerEntry",
    "LedgerStats",
    "KIND_ADMIN_TOPUP",
    "KIND_PURCHASE",
    "KIND_REFUND",
    "KIND_SPENT",
]
