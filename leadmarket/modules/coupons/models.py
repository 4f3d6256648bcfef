"""Coupon domain models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
CODE_GROUPS = 3
CODE_GROUP_LENGTH = 4


def normalize_code(code: str) -> str:
    return code.strip().upper()


@dataclass(slots=True)
class Coupon:
    id: str
    code: str
    max_uses: int
    current_uses: int
    coin_amount: int
    active: bool
    created_by_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def exhausted(self) -> bool:
        return self.current_uses >= self.max_uses


@dataclass(slots=True)
class CouponClaim:
    id: str
    coupon_id: str
    user_id: str
    coins_received: int
    claimed_at: Optional[datetime] = None


@dataclass(slots=True)
class ClaimResult:
    code: str
    coins_received: int
    new_balance: int
