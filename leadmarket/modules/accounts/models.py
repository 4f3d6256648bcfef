"""Domain models for accounts."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

ADMIN_ROLES = frozenset({"admin"})


@dataclass(slots=True)
class Account:
    id: str
    email: str
    name: str
    role: str
    is_active: bool
    lead_coins: int
    password_hash: str = field(repr=False)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES


@dataclass(slots=True)
class AccountCreateInput:
    email: str
    password: str
    name: str = ""
    role: str = "user"
    is_active: bool = True
    lead_coins: Optional[int] = None
