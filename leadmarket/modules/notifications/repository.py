"""Repository protocol for notifications."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol, Sequence

from .models import Notification


class NotificationRepository(Protocol):
    async def create(
        self,
        *,
        user_id: str,
        type: str,
        title: str,
        message: str,
        metadata: dict[str, Any] | None = None,
        threshold: int | None = None,
        dedupe_key: str | None = None,
    ) -> Notification:
        ...

    async def has_active(self, user_id: str, dedupe_key: str) -> bool:
        ...

    async def supersede_low_balance(self, user_id: str, balance: int, at: datetime) -> int:
        ...

    async def list_for_user(self, user_id: str, limit: int, unread_only: bool = False) -> Sequence[Notification]:
        ...

    async def mark_read(self, user_id: str, notification_id: str) -> bool:
        ...

    async def mark_all_read(self, user_id: str) -> int:
        ...
