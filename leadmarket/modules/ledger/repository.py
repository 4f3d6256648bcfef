"""Repository protocol for the LeadCoin ledger."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from .models import CoinHolder, LedgerEntry


class LedgerRepository(Protocol):
    async def increment(self, user_id: str, amount: int) -> int | None:
        """Add ``amount`` to the balance and return the new value, ``None`` if the user is unknown."""
        ...

    async def decrement_if_sufficient(self, user_id: str, amount: int) -> int | None:
        """Subtract ``amount`` only when the balance covers it; ``None`` when no row changed."""
        ...

    async def get_balance(self, user_id: str) -> int | None:
        ...

    async def append(
        self,
        *,
        user_id: str,
        amount: int,
        kind: str,
        description: str,
        admin_id: str | None = None,
        reference_id: str | None = None,
    ) -> LedgerEntry:
        ...

    async def list_transactions(self, user_id: str, limit: int, offset: int) -> Sequence[LedgerEntry]:
        ...

    async def sum_spent_since(self, since: datetime, user_id: str | None = None) -> int:
        ...

    async def total_in_circulation(self) -> int:
        ...

    async def count_views_since(self, since: datetime) -> int:
        ...

    async def top_holders(self, limit: int) -> Sequence[CoinHolder]:
        ...
