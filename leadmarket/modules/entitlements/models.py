"""Entitlement domain models: per-tier costs, view records and unlock results."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

VIEW_CONTACT_INFO = "contact_info"
VIEW_DETAILED_INFO = "detailed_info"
VIEW_FULL_ACCESS = "full_access"

VIEW_TYPES = (VIEW_CONTACT_INFO, VIEW_DETAILED_INFO, VIEW_FULL_ACCESS)

VIEW_LABELS = {
    VIEW_CONTACT_INFO: "contact info",
    VIEW_DETAILED_INFO: "detailed info",
    VIEW_FULL_ACCESS: "full access",
}


@dataclass(slots=True)
class CostSettings:
    contact_info_cost: int = 5
    detailed_info_cost: int = 10
    full_access_cost: int = 15
    updated_at: Optional[datetime] = None

    def cost_for(self, view_type: str) -> int:
        return {
            VIEW_CONTACT_INFO: self.contact_info_cost,
            VIEW_DETAILED_INFO: self.detailed_info_cost,
            VIEW_FULL_ACCESS: self.full_access_cost,
        }[view_type]


@dataclass(slots=True)
class CostSettingsUpdate:
    contact_info_cost: Optional[int] = None
    detailed_info_cost: Optional[int] = None
    full_access_cost: Optional[int] = None


@dataclass(slots=True)
class LeadViewRecord:
    id: str
    user_id: str
    lead_id: str
    coins_spent: int
    view_type: str
    viewed_at: Optional[datetime] = None
    lead_title: Optional[str] = None


@dataclass(slots=True)
class UnlockResult:
    lead_id: str
    view_type: str
    coins_spent: int
    remaining_coins: int
    already_unlocked: bool = False
