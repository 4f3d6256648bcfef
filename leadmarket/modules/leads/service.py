"""Lead lookups used by the entitlement engine."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from leadmarket.infrastructure.database.transaction import atomic

from .exceptions import LeadNotFoundError
from .models import Lead, LeadCreateInput
from .repository import LeadRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LeadService:
    repository: LeadRepository
    session: AsyncSession

    @classmethod
    def with_session(cls, session: AsyncSession) -> "LeadService":
        from leadmarket.infrastructure.database.repositories.lead_repository import SqlLeadRepository

        return cls(SqlLeadRepository(session), session)

    async def get_lead(self, lead_id: str) -> Lead:
        lead = await self.repository.get(lead_id)
        if lead is None:
            raise LeadNotFoundError(lead_id)
        return lead

    async def create_lead(self, creator_id: str, payload: LeadCreateInput) -> Lead:
        async with atomic(self.session):
            lead = await self.repository.create(creator_id, payload)
        logger.info("Lead %s created by %s", lead.id, creator_id)
        return lead
