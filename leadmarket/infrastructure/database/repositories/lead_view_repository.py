"""SQLAlchemy implementation of the lead view repository."""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from leadmarket.db.models import Lead as LeadModel
from leadmarket.db.models import LeadView as LeadViewModel
from leadmarket.modules.entitlements.models import LeadViewRecord
from leadmarket.modules.entitlements.repository import LeadViewRepository


class SqlLeadViewRepository(LeadViewRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def unlocked_tiers(self, user_id: str, lead_id: str) -> set[str]:
        stmt = select(LeadViewModel.view_type).where(
            LeadViewModel.user_id == user_id,
            LeadViewModel.lead_id == lead_id,
        )
        result = await self.session.execute(stmt)
        return set(result.scalars().all())

    async def record(self, *, user_id: str, lead_id: str, view_type: str, coins_spent: int) -> LeadViewRecord:
        model = LeadViewModel(
            user_id=user_id,
            lead_id=lead_id,
            view_type=view_type,
            coins_spent=coins_spent,
        )
        self.session.add(model)
        await self.session.flush()
        return LeadViewRecord(
            id=model.id,
            user_id=model.user_id,
            lead_id=model.lead_id,
            coins_spent=model.coins_spent,
            view_type=model.view_type,
            viewed_at=model.viewed_at,
        )

    async def list_for_user(self, user_id: str, limit: int, offset: int) -> Sequence[LeadViewRecord]:
        stmt = (
            select(LeadViewModel, LeadModel.title)
            .join(LeadModel, LeadModel.id == LeadViewModel.lead_id)
            .where(LeadViewModel.user_id == user_id)
            .order_by(desc(LeadViewModel.viewed_at), desc(LeadViewModel.id))
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [
            LeadViewRecord(
                id=view.id,
                user_id=view.user_id,
                lead_id=view.lead_id,
                coins_spent=view.coins_spent,
                view_type=view.view_type,
                viewed_at=view.viewed_at,
                lead_title=title,
            )
            for view, title in result.all()
        ]
