"""Singleton LeadCoin cost settings row."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from leadmarket.db.models import LeadCoinSettings as LeadCoinSettingsModel
from leadmarket.modules.entitlements.models import CostSettings
from leadmarket.modules.entitlements.repository import CostSettingsRepository

SETTINGS_ROW_ID = 1


class SqlCostSettingsRepository(CostSettingsRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self) -> CostSettings | None:
        model = await self.session.get(LeadCoinSettingsModel, SETTINGS_ROW_ID, populate_existing=True)
        return self._to_domain(model) if model else None

    async def save(self, settings: CostSettings) -> CostSettings:
        model = await self.session.get(LeadCoinSettingsModel, SETTINGS_ROW_ID)
        if model is None:
            model = LeadCoinSettingsModel(id=SETTINGS_ROW_ID)
            self.session.add(model)
        model.contact_info_cost = settings.contact_info_cost
        model.detailed_info_cost = settings.detailed_info_cost
        model.full_access_cost = settings.full_access_cost
        await self.session.flush()
        await self.session.refresh(model)
        return self._to_domain(model)

    @staticmethod
    def _to_domain(model: LeadCoinSettingsModel) -> CostSettings:
        return CostSettings(
            contact_info_cost=model.contact_info_cost,
            detailed_info_cost=model.detailed_info_cost,
            full_access_cost=model.full_access_cost,
            updated_at=model.updated_at,
        )
