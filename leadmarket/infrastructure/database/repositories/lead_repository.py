"""SQLAlchemy implementation of the lead repository."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leadmarket.db.models import Lead as LeadModel
from leadmarket.modules.leads.models import Lead, LeadCreateInput
from leadmarket.modules.leads.repository import LeadRepository


class SqlLeadRepository(LeadRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, lead_id: str) -> Lead | None:
        result = await self.session.execute(select(LeadModel).where(LeadModel.id == lead_id))
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def create(self, creator_id: str, payload: LeadCreateInput) -> Lead:
        model = LeadModel(
            title=payload.title,
            description=payload.description,
            location=payload.location,
            category_name=payload.category_name,
            email=payload.email,
            contact_number=payload.contact_number,
            creator_id=creator_id,
        )
        self.session.add(model)
        await self.session.flush()
        await self.session.refresh(model)
        return self._to_domain(model)

    @staticmethod
    def _to_domain(model: LeadModel) -> Lead:
        return Lead(
            id=model.id,
            title=model.title,
            description=model.description or "",
            location=model.location or "",
            creator_id=model.creator_id,
            email=model.email,
            contact_number=model.contact_number,
            category_name=model.category_name,
            created_at=model.created_at,
        )
