"""Repository protocols for purchases and the coin catalog."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from .models import CatalogItem, Purchase


class PurchaseRepository(Protocol):
    async def get_by_session(self, session_id: str) -> Purchase | None:
        ...

    async def find_open(self, user_id: str, kind: str, item_id: str, now: datetime) -> Purchase | None:
        ...

    async def create(
        self,
        *,
        user_id: str,
        kind: str,
        item_id: str,
        payment_session_id: str,
        checkout_url: str | None,
        lead_coins: int,
        amount_cents: int,
        expires_at: datetime | None,
    ) -> Purchase:
        ...

    async def transition(
        self,
        purchase_id: str,
        *,
        status: str,
        verified: bool = False,
        completed_at: datetime | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> bool:
        """Move a pending, unverified purchase to ``status``; ``False`` if it already left pending."""
        ...

    async def list_for_user(self, user_id: str, limit: int, offset: int) -> Sequence[Purchase]:
        ...

    async def list_stale_pending(self, cutoff: datetime, limit: int) -> Sequence[Purchase]:
        """Pending checkouts whose ``expires_at`` lies before ``cutoff``."""
        ...

    async def expire_subscriptions(self, now: datetime, user_id: str | None = None) -> int:
        ...

    async def get_active_subscription(self, user_id: str, now: datetime) -> Purchase | None:
        ...


class CatalogRepository(Protocol):
    async def get_item(self, kind: str, item_id: str) -> CatalogItem | None:
        ...

    async def list_items(self, kind: str, active_only: bool = True) -> Sequence[CatalogItem]:
        ...

    async def create_item(
        self,
        kind: str,
        *,
        name: str,
        lead_coins: int,
        price_cents: int,
        description: str | None = None,
        duration_days: int | None = None,
        active: bool = True,
    ) -> CatalogItem:
        ...
