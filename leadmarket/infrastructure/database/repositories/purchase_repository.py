"""SQLAlchemy implementation of the purchase repository."""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from sqlalchemy import desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from leadmarket.db.models import Purchase as PurchaseModel
from leadmarket.modules.purchases.models import (
    KIND_SUBSCRIPTION,
    STATUS_ACTIVE,
    STATUS_EXPIRED,
    STATUS_PENDING,
    Purchase,
)
from leadmarket.modules.purchases.repository import PurchaseRepository


class SqlPurchaseRepository(PurchaseRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_session(self, session_id: str) -> Purchase | None:
        stmt = (
            select(PurchaseModel)
            .where(PurchaseModel.payment_session_id == session_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def find_open(self, user_id: str, kind: str, item_id: str, now: datetime) -> Purchase | None:
        stmt = (
            select(PurchaseModel)
            .where(
                PurchaseModel.user_id == user_id,
                PurchaseModel.kind == kind,
                PurchaseModel.item_id == item_id,
                PurchaseModel.status == STATUS_PENDING,
                PurchaseModel.expires_at > now,
            )
            .order_by(desc(PurchaseModel.created_at))
            .limit(1)
        )
        result = await self.session.execute(stmt)
        model = result.scalars().first()
        return self._to_domain(model) if model else None

    async def create(
        self,
        *,
        user_id: str,
        kind: str,
        item_id: str,
        payment_session_id: str,
        checkout_url: str | None,
        lead_coins: int,
        amount_cents: int,
        expires_at: datetime | None,
    ) -> Purchase:
        model = PurchaseModel(
            user_id=user_id,
            kind=kind,
            item_id=item_id,
            payment_session_id=payment_session_id,
            checkout_url=checkout_url,
            status=STATUS_PENDING,
            payment_verified=False,
            lead_coins=lead_coins,
            amount_cents=amount_cents,
            expires_at=expires_at,
        )
        self.session.add(model)
        await self.session.flush()
        return self._to_domain(model)

    async def transition(
        self,
        purchase_id: str,
        *,
        status: str,
        verified: bool = False,
        completed_at: datetime | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> bool:
        values = {"status": status, "payment_verified": verified}
        if completed_at is not None:
            values["completed_at"] = completed_at
        if start_date is not None:
            values["start_date"] = start_date
        if end_date is not None:
            values["end_date"] = end_date
        stmt = (
            update(PurchaseModel)
            .where(
                PurchaseModel.id == purchase_id,
                PurchaseModel.status == STATUS_PENDING,
                PurchaseModel.payment_verified.is_(False),
            )
            .values(**values)
            .returning(PurchaseModel.id)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def list_for_user(self, user_id: str, limit: int, offset: int) -> Sequence[Purchase]:
        stmt = (
            select(PurchaseModel)
            .where(PurchaseModel.user_id == user_id)
            .order_by(desc(PurchaseModel.created_at))
            .offset(offset)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    async def list_stale_pending(self, cutoff: datetime, limit: int) -> Sequence[Purchase]:
        stmt = (
            select(PurchaseModel)
            .where(
                PurchaseModel.status == STATUS_PENDING,
                PurchaseModel.payment_verified.is_(False),
                PurchaseModel.payment_session_id.is_not(None),
                PurchaseModel.expires_at.is_not(None),
                PurchaseModel.expires_at < cutoff,
            )
            .order_by(PurchaseModel.expires_at)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    async def expire_subscriptions(self, now: datetime, user_id: str | None = None) -> int:
        stmt = update(PurchaseModel).where(
            PurchaseModel.kind == KIND_SUBSCRIPTION,
            PurchaseModel.status == STATUS_ACTIVE,
            PurchaseModel.end_date.is_not(None),
            PurchaseModel.end_date <= now,
        )
        if user_id is not None:
            stmt = stmt.where(PurchaseModel.user_id == user_id)
        stmt = stmt.values(status=STATUS_EXPIRED).execution_options(synchronize_session=False)
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def get_active_subscription(self, user_id: str, now: datetime) -> Purchase | None:
        stmt = (
            select(PurchaseModel)
            .where(
                PurchaseModel.user_id == user_id,
                PurchaseModel.kind == KIND_SUBSCRIPTION,
                PurchaseModel.status == STATUS_ACTIVE,
                PurchaseModel.end_date > now,
            )
            .order_by(desc(PurchaseModel.end_date))
            .limit(1)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        model = result.scalars().first()
        return self._to_domain(model) if model else None

    @staticmethod
    def _to_domain(model: PurchaseModel) -> Purchase:
        return Purchase(
            id=model.id,
            user_id=model.user_id,
            kind=model.kind,
            item_id=model.item_id,
            status=model.status,
            lead_coins=model.lead_coins,
            amount_cents=model.amount_cents,
            payment_verified=bool(model.payment_verified),
            payment_session_id=model.payment_session_id,
            checkout_url=model.checkout_url,
            expires_at=model.expires_at,
            start_date=model.start_date,
            end_date=model.end_date,
            created_at=model.created_at,
            completed_at=model.completed_at,
        )
