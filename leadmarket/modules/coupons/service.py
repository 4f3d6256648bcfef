"""Coupon redemption and coupon administration."""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from leadmarket.core.exceptions import ForbiddenError, ValidationError
from leadmarket.infrastructure.database.transaction import atomic
from leadmarket.modules.accounts.models import Account
from leadmarket.modules.ledger.models import KIND_ADMIN_TOPUP
from leadmarket.modules.ledger.service import LedgerService
from leadmarket.modules.notifications.models import TYPE_COIN_RECEIVED
from leadmarket.modules.notifications.service import NotificationService

from .exceptions import (
    AlreadyClaimedError,
    CouponCodeGenerationError,
    CouponExhaustedError,
    CouponInactiveError,
    CouponNotFoundError,
)
from .models import CODE_ALPHABET, CODE_GROUP_LENGTH, CODE_GROUPS, ClaimResult, Coupon, normalize_code
from .repository import CouponRepository

logger = logging.getLogger(__name__)

MAX_CODE_ATTEMPTS = 10


def generate_code() -> str:
    return "-".join(
        "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_GROUP_LENGTH))
        for _ in range(CODE_GROUPS)
    )


class _CodeTaken(Exception):
    pass


@dataclass(slots=True)
class CouponService:
    repository: CouponRepository
    ledger: LedgerService
    notifications: NotificationService
    session: AsyncSession

    @classmethod
    def with_session(cls, session: AsyncSession) -> "CouponService":
        from leadmarket.infrastructure.database.repositories.coupon_repository import SqlCouponRepository

        return cls(
            SqlCouponRepository(session),
            LedgerService.with_session(session),
            NotificationService.with_session(session),
            session,
        )

    async def claim(self, user_id: str, code: str) -> ClaimResult:
        code = normalize_code(code)
        if not code:
            raise ValidationError("Coupon code is required")
        coupon = await self.repository.get_by_code(code)
        if coupon is None:
            raise CouponNotFoundError(code)
        if not coupon.active:
            raise CouponInactiveError(code)
        if coupon.exhausted:
            raise CouponExhaustedError(code)
        if await self.repository.has_claimed(coupon.id, user_id):
            raise AlreadyClaimedError(code)

        async with atomic(self.session):
            try:
                await self.repository.add_claim(
                    coupon_id=coupon.id,
                    user_id=user_id,
                    coins_received=coupon.coin_amount,
                )
            except IntegrityError as exc:
                raise AlreadyClaimedError(code) from exc

            if not await self.repository.consume_use(coupon.id):
                current = await self.repository.get(coupon.id)
                if current is not None and not current.active:
                    raise CouponInactiveError(code)
                raise CouponExhaustedError(code)

            change = await self.ledger.credit(
                user_id,
                coupon.coin_amount,
                kind=KIND_ADMIN_TOPUP,
                description=f"Coupon claimed: {code}",
                reference_id=coupon.id,
            )
            await self.notifications.record_credit(
                user_id=user_id,
                new_balance=change.new_balance,
                type=TYPE_COIN_RECEIVED,
                title="Coupon Redeemed",
                message=f"You received {coupon.coin_amount} LeadCoins from coupon {code}.",
                metadata={"couponCode": code, "amount": coupon.coin_amount},
            )

        logger.info("User %s claimed coupon %s for %d LeadCoins", user_id, code, coupon.coin_amount)
        return ClaimResult(code=code, coins_received=coupon.coin_amount, new_balance=change.new_balance)

    async def create_coupon(self, admin: Account, *, max_uses: int, coin_amount: int, active: bool = True) -> Coupon:
        if not admin.is_admin():
            raise ForbiddenError("Only administrators can create coupons")
        if max_uses < 1:
            raise ValidationError("max_uses must be at least 1")
        if coin_amount < 1:
            raise ValidationError("coin_amount must be at least 1")

        for _ in range(MAX_CODE_ATTEMPTS):
            code = generate_code()
            try:
                async with atomic(self.session):
                    try:
                        coupon = await self.repository.create(
                            code=code,
                            max_uses=max_uses,
                            coin_amount=coin_amount,
                            active=active,
                            created_by_id=admin.id,
                        )
                    except IntegrityError as exc:
                        raise _CodeTaken(code) from exc
            except _CodeTaken:
                logger.debug("Coupon code %s already taken, retrying", code)
                continue
            logger.info("Coupon %s created by %s (%d x %d LeadCoins)", code, admin.id, max_uses, coin_amount)
            return coupon
        raise CouponCodeGenerationError("Could not generate a unique coupon code")

    async def list_coupons(self, admin: Account) -> list[Coupon]:
        if not admin.is_admin():
            raise ForbiddenError("Only administrators can list coupons")
        return list(await self.repository.list_all())

    async def set_active(self, admin: Account, coupon_id: str, active: bool) -> Coupon:
        if not admin.is_admin():
            raise ForbiddenError("Only administrators can update coupons")
        async with atomic(self.session):
            coupon = await self.repository.set_active(coupon_id, active)
            if coupon is None:
                raise CouponNotFoundError(coupon_id)
        logger.info("Coupon %s %s by %s", coupon.code, "activated" if active else "deactivated", admin.id)
        return coupon
