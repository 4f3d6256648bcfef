"""Coupon redemption: one claim per user, never past capacity."""

import asyncio
import re

import pytest

from leadmarket.core.exceptions import ForbiddenError, ValidationError
from leadmarket.modules.coupons import (
    AlreadyClaimedError,
    CouponExhaustedError,
    CouponInactiveError,
    CouponNotFoundError,
    CouponService,
    generate_code,
)
from leadmarket.modules.ledger import KIND_ADMIN_TOPUP, LedgerService


def test_generated_codes_have_three_groups():
    assert re.fullmatch(r"[A-Z0-9]{4}-[A-Z0-9]{4}-[A-Z0-9]{4}", generate_code())


async def test_claim_credits_coins(session, admin, user):
    service = CouponService.with_session(session)
    coupon = await service.create_coupon(admin, max_uses=3, coin_amount=25)

    result = await service.claim(user.id, f"  {coupon.code.lower()} ")

    assert result.code == coupon.code
    assert result.coins_received == 25
    assert result.new_balance == 45
    entries = await LedgerService.with_session(session).list_transactions(user.id)
    assert [(e.kind, e.amount, e.description) for e in entries] == [
        (KIND_ADMIN_TOPUP, 25, f"Coupon claimed: {coupon.code}")
    ]
    coupons = await service.list_coupons(admin)
    assert coupons[0].current_uses == 1


async def test_second_claim_by_same_user_is_rejected(session, admin, user):
    service = CouponService.with_session(session)
    coupon = await service.create_coupon(admin, max_uses=3, coin_amount=10)
    await service.claim(user.id, coupon.code)

    with pytest.raises(AlreadyClaimedError):
        await service.claim(user.id, coupon.code)
    assert await LedgerService.with_session(session).get_balance(user.id) == 30


async def test_claim_guards(session, admin, make_account):
    service = CouponService.with_session(session)
    first, second = await make_account(), await make_account()
    single = await service.create_coupon(admin, max_uses=1, coin_amount=10)
    disabled = await service.create_coupon(admin, max_uses=5, coin_amount=10, active=False)

    with pytest.raises(ValidationError):
        await service.claim(first.id, "   ")
    with pytest.raises(CouponNotFoundError):
        await service.claim(first.id, "NOPE-NOPE-NOPE")
    with pytest.raises(CouponInactiveError):
        await service.claim(first.id, disabled.code)

    await service.claim(first.id, single.code)
    with pytest.raises(CouponExhaustedError):
        await service.claim(second.id, single.code)
    assert await LedgerService.with_session(session).get_balance(second.id) == 20


async def test_admin_only_management(session, admin, user):
    service = CouponService.with_session(session)
    with pytest.raises(ForbiddenError):
        await service.create_coupon(user, max_uses=1, coin_amount=5)
    with pytest.raises(ValidationError):
        await service.create_coupon(admin, max_uses=0, coin_amount=5)
    with pytest.raises(ValidationError):
        await service.create_coupon(admin, max_uses=1, coin_amount=0)

    coupon = await service.create_coupon(admin, max_uses=1, coin_amount=5)
    with pytest.raises(ForbiddenError):
        await service.set_active(user, coupon.id, False)
    assert (await service.set_active(admin, coupon.id, False)).active is False
    with pytest.raises(CouponNotFoundError):
        await service.set_active(admin, "missing", True)


async def test_concurrent_claims_by_one_user_credit_once(session, session_factory, admin, user):
    coupon = await CouponService.with_session(session).create_coupon(admin, max_uses=10, coin_amount=10)

    async def claim():
        async with session_factory() as db:
            try:
                await CouponService.with_session(db).claim(user.id, coupon.code)
            except AlreadyClaimedError:
                return False
            return True

    results = await asyncio.gather(*(claim() for _ in range(4)))

    assert results.count(True) == 1
    async with session_factory() as db:
        assert await LedgerService.with_session(db).get_balance(user.id) == 30


async def test_concurrent_claims_never_exceed_capacity(session, session_factory, admin, make_account):
    coupon = await CouponService.with_session(session).create_coupon(admin, max_uses=2, coin_amount=10)
    claimants = [await make_account() for _ in range(5)]

    async def claim(account):
        async with session_factory() as db:
            try:
                await CouponService.with_session(db).claim(account.id, coupon.code)
            except CouponExhaustedError:
                return False
            return True

    results = await asyncio.gather(*(claim(account) for account in claimants))

    assert results.count(True) == 2
    async with session_factory() as db:
        stored = await CouponService.with_session(db).list_coupons(admin)
        assert stored[0].current_uses == 2
        ledger = LedgerService.with_session(db)
        balances = [await ledger.get_balance(account.id) for account in claimants]
    assert sorted(balances) == [20, 20, 20, 30, 30]
