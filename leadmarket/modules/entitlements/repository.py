"""Repository protocols for entitlements."""

from __future__ import annotations

from typing import Protocol, Sequence

from .models import CostSettings, LeadViewRecord


class CostSettingsRepository(Protocol):
    async def get(self) -> CostSettings | None:
        ...

    async def save(self, settings: CostSettings) -> CostSettings:
        ...


class LeadViewRepository(Protocol):
    async def unlocked_tiers(self, user_id: str, lead_id: str) -> set[str]:
        ...

    async def record(self, *, user_id: str, lead_id: str, view_type: str, coins_spent: int) -> LeadViewRecord:
        ...

    async def list_for_user(self, user_id: str, limit: int, offset: int) -> Sequence[LeadViewRecord]:
        ...
