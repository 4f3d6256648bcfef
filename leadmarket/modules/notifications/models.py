"""Notification domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

TYPE_COIN_RECEIVED = "coin_received"
TYPE_LOW_BALANCE = "low_balance"
TYPE_SUBSCRIPTION_UPDATE = "subscription_update"
TYPE_SYSTEM = "system"

NOTIFICATION_TYPES = frozenset({TYPE_COIN_RECEIVED, TYPE_LOW_BALANCE, TYPE_SUBSCRIPTION_UPDATE, TYPE_SYSTEM})


def low_balance_key(threshold: int) -> str:
    return f"low_balance:{threshold}"


@dataclass(slots=True)
class Notification:
    id: str
    user_id: str
    type: str
    title: str
    message: str
    read: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)
    threshold: Optional[int] = None
    superseded_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


def crossed_threshold(
    thresholds: list[int] | tuple[int, ...],
    new_balance: int,
    previous_balance: Optional[int] = None,
) -> Optional[int]:
    """Return the lowest threshold the balance moved onto or below, if any.

    Without a previous balance every threshold at or above ``new_balance``
    counts as crossed.
    """
    crossed = [
        threshold
        for threshold in thresholds
        if new_balance <= threshold and (previous_balance is None or previous_balance > threshold)
    ]
    return min(crossed) if crossed else None
