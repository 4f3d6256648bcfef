"""Ledger domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

KIND_PURCHASE = "purchase"
KIND_ADMIN_TOPUP = "admin_topup"
KIND_SPENT = "spent"
KIND_REFUND = "refund"

TRANSACTION_KINDS = frozenset({KIND_PURCHASE, KIND_ADMIN_TOPUP, KIND_SPENT, KIND_REFUND})


@dataclass(slots=True)
class LedgerEntry:
    id: str
    user_id: str
    amount: int
    kind: str
    description: str
    admin_id: Optional[str] = None
    reference_id: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(slots=True)
class BalanceChange:
    """Result of a single balance mutation and its log row."""

    user_id: str
    amount: int
    previous_balance: int
    new_balance: int
    entry: LedgerEntry


@dataclass(slots=True)
class CoinHolder:
    user_id: str
    email: str
    name: str
    lead_coins: int
    total_spent: int


@dataclass(slots=True)
class LedgerStats:
    total_coins_in_circulation: int
    coins_spent_this_month: int
    lead_views_today: int
    top_users: list[CoinHolder] = field(default_factory=list)
