"""SQLAlchemy implementation of the coin catalog."""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leadmarket.db.models import CoinPackage as CoinPackageModel
from leadmarket.db.models import SubscriptionPlan as SubscriptionPlanModel
from leadmarket.modules.purchases.models import KIND_PACKAGE, KIND_SUBSCRIPTION, CatalogItem
from leadmarket.modules.purchases.repository import CatalogRepository

_MODELS = {
    KIND_PACKAGE: CoinPackageModel,
    KIND_SUBSCRIPTION: SubscriptionPlanModel,
}


class SqlCatalogRepository(CatalogRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_item(self, kind: str, item_id: str) -> CatalogItem | None:
        model_cls = _MODELS.get(kind)
        if model_cls is None:
            return None
        model = await self.session.get(model_cls, item_id)
        return self._to_domain(kind, model) if model else None

    async def list_items(self, kind: str, active_only: bool = True) -> Sequence[CatalogItem]:
        model_cls = _MODELS[kind]
        stmt = select(model_cls)
        if active_only:
            stmt = stmt.where(model_cls.active.is_(True))
        stmt = stmt.order_by(model_cls.price_cents)
        result = await self.session.execute(stmt)
        return [self._to_domain(kind, model) for model in result.scalars().all()]

    async def create_item(
        self,
        kind: str,
        *,
        name: str,
        lead_coins: int,
        price_cents: int,
        description: str | None = None,
        duration_days: int | None = None,
        active: bool = True,
    ) -> CatalogItem:
        if kind == KIND_SUBSCRIPTION:
            model = SubscriptionPlanModel(
                name=name,
                description=description,
                lead_coins=lead_coins,
                price_cents=price_cents,
                duration_days=duration_days,
                active=active,
            )
        else:
            model = CoinPackageModel(
                name=name,
                description=description,
                lead_coins=lead_coins,
                price_cents=price_cents,
                active=active,
            )
        self.session.add(model)
        await self.session.flush()
        await self.session.refresh(model)
        return self._to_domain(kind, model)

    @staticmethod
    def _to_domain(kind: str, model: CoinPackageModel | SubscriptionPlanModel) -> CatalogItem:
        return CatalogItem(
            id=model.id,
            kind=kind,
            name=model.name,
            lead_coins=model.lead_coins,
            price_cents=model.price_cents,
            active=bool(model.active),
            description=model.description,
            duration_days=getattr(model, "duration_days", None),
            created_at=model.created_at,
        )
