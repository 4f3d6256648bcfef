"""Repository protocol for leads."""

from __future__ import annotations

from typing import Protocol

from .models import Lead, LeadCreateInput


class LeadRepository(Protocol):
    async def get(self, lead_id: str) -> Lead | None:
        ...

    async def create(self, creator_id: str, payload: LeadCreateInput) -> Lead:
        ...
