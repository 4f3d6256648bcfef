"""SQLAlchemy implementation of the coupon repository."""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from leadmarket.db.models import Coupon as CouponModel
from leadmarket.db.models import CouponClaim as CouponClaimModel
from leadmarket.modules.coupons.models import Coupon, CouponClaim
from leadmarket.modules.coupons.repository import CouponRepository


class SqlCouponRepository(CouponRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_code(self, code: str) -> Coupon | None:
        stmt = (
            select(CouponModel)
            .where(CouponModel.code == code)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def get(self, coupon_id: str) -> Coupon | None:
        model = await self.session.get(CouponModel, coupon_id, populate_existing=True)
        return self._to_domain(model) if model else None

    async def has_claimed(self, coupon_id: str, user_id: str) -> bool:
        stmt = select(CouponClaimModel.id).where(
            CouponClaimModel.coupon_id == coupon_id,
            CouponClaimModel.user_id == user_id,
        )
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def add_claim(self, *, coupon_id: str, user_id: str, coins_received: int) -> CouponClaim:
        model = CouponClaimModel(coupon_id=coupon_id, user_id=user_id, coins_received=coins_received)
        self.session.add(model)
        await self.session.flush()
        return CouponClaim(
            id=model.id,
            coupon_id=model.coupon_id,
            user_id=model.user_id,
            coins_received=model.coins_received,
            claimed_at=model.claimed_at,
        )

    async def consume_use(self, coupon_id: str) -> bool:
        stmt = (
            update(CouponModel)
            .where(
                CouponModel.id == coupon_id,
                CouponModel.active.is_(True),
                CouponModel.current_uses < CouponModel.max_uses,
            )
            .values(current_uses=CouponModel.current_uses + 1)
            .returning(CouponModel.current_uses)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def create(
        self,
        *,
        code: str,
        max_uses: int,
        coin_amount: int,
        active: bool,
        created_by_id: str,
    ) -> Coupon:
        model = CouponModel(
            code=code,
            max_uses=max_uses,
            current_uses=0,
            coin_amount=coin_amount,
            active=active,
            created_by_id=created_by_id,
        )
        self.session.add(model)
        await self.session.flush()
        await self.session.refresh(model)
        return self._to_domain(model)

    async def list_all(self) -> Sequence[Coupon]:
        stmt = (
            select(CouponModel)
            .order_by(desc(CouponModel.created_at))
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    async def set_active(self, coupon_id: str, active: bool) -> Coupon | None:
        model = await self.session.get(CouponModel, coupon_id)
        if model is None:
            return None
        model.active = active
        await self.session.flush()
        await self.session.refresh(model)
        return self._to_domain(model)

    @staticmethod
    def _to_domain(model: CouponModel) -> Coupon:
        return Coupon(
            id=model.id,
            code=model.code,
            max_uses=model.max_uses,
            current_uses=model.current_uses,
            coin_amount=model.coin_amount,
            active=bool(model.active),
            created_by_id=model.created_by_id,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
