"""Ledger service: balance primitives, admin top-ups and reporting."""

import asyncio

import pytest

from leadmarket.core.exceptions import ForbiddenError, ValidationError
from leadmarket.infrastructure.database.transaction import atomic
from leadmarket.modules.accounts import AccountNotFoundError
from leadmarket.modules.ledger import (
    KIND_ADMIN_TOPUP,
    KIND_SPENT,
    InsufficientBalanceError,
    LedgerService,
)
from leadmarket.modules.coupons import CouponService
from leadmarket.modules.entitlements import EntitlementService
from leadmarket.modules.notifications import TYPE_COIN_RECEIVED, NotificationService
from leadmarket.modules.purchases import PurchaseService
from leadmarket.modules.purchases.models import PAYMENT_PAID


async def test_new_account_starts_with_initial_balance(session, user):
    assert user.lead_coins == 20
    assert await LedgerService.with_session(session).get_balance(user.id) == 20


async def test_credit_and_debit_write_one_log_row_each(session, user):
    ledger = LedgerService.with_session(session)
    async with atomic(session):
        credit = await ledger.credit(user.id, 30, kind=KIND_ADMIN_TOPUP, description="bonus")
    async with atomic(session):
        debit = await ledger.debit(user.id, 5, description="unlock")

    assert (credit.previous_balance, credit.new_balance) == (20, 50)
    assert (debit.previous_balance, debit.new_balance) == (50, 45)
    assert await ledger.get_balance(user.id) == 45

    entries = await ledger.list_transactions(user.id)
    assert sorted(entry.amount for entry in entries) == [-5, 30]
    assert {entry.kind for entry in entries} == {KIND_ADMIN_TOPUP, KIND_SPENT}


async def test_debit_never_overdraws(session, user):
    ledger = LedgerService.with_session(session)

    with pytest.raises(InsufficientBalanceError) as exc_info:
        async with atomic(session):
            await ledger.debit(user.id, 25, description="too much")

    assert exc_info.value.required == 25
    assert exc_info.value.available == 20
    assert await ledger.get_balance(user.id) == 20
    assert await ledger.list_transactions(user.id) == []


async def test_debit_of_zero_succeeds_on_empty_balance(session, make_account):
    broke = await make_account(lead_coins=0)
    ledger = LedgerService.with_session(session)
    async with atomic(session):
        change = await ledger.debit(broke.id, 0, description="free tier")
    assert change.new_balance == 0


@pytest.mark.parametrize("amount,kind", [(0, KIND_ADMIN_TOPUP), (-5, KIND_ADMIN_TOPUP), (5, KIND_SPENT), (5, "gift")])
async def test_credit_rejects_bad_amount_or_kind(session, user, amount, kind):
    ledger = LedgerService.with_session(session)
    with pytest.raises(ValidationError):
        await ledger.credit(user.id, amount, kind=kind, description="x")
    assert await ledger.get_balance(user.id) == 20


async def test_unknown_account(session):
    ledger = LedgerService.with_session(session)
    with pytest.raises(AccountNotFoundError):
        async with atomic(session):
            await ledger.credit("missing", 5, kind=KIND_ADMIN_TOPUP, description="x")
    with pytest.raises(AccountNotFoundError):
        await ledger.debit("missing", 5, description="x")


async def test_send_coins_requires_admin(session, user, make_account):
    other = await make_account()
    with pytest.raises(ForbiddenError):
        await LedgerService.with_session(session).send_coins(user, other.id, 10)
    assert await LedgerService.with_session(session).get_balance(other.id) == 20


async def test_send_coins_credits_and_notifies(session, admin, user):
    ledger = LedgerService.with_session(session)
    change = await ledger.send_coins(admin, user.id, 15, "Welcome bonus")

    assert change.new_balance == 35
    assert change.entry.admin_id == admin.id
    assert change.entry.kind == KIND_ADMIN_TOPUP

    notices = await NotificationService.with_session(session).list_for_user(user.id)
    assert [(n.type, n.title) for n in notices] == [(TYPE_COIN_RECEIVED, "LeadCoins Received")]
    assert notices[0].metadata["amount"] == 15


async def test_monthly_spent_counts_only_debits(session, admin, user):
    ledger = LedgerService.with_session(session)
    await ledger.send_coins(admin, user.id, 50)
    async with atomic(session):
        await ledger.debit(user.id, 7, description="a")
    async with atomic(session):
        await ledger.debit(user.id, 3, description="b")

    assert await ledger.monthly_spent(user.id) == 10


async def test_stats(session, admin, user, make_account):
    rich = await make_account(lead_coins=100)
    ledger = LedgerService.with_session(session)
    async with atomic(session):
        await ledger.debit(user.id, 5, description="a")

    stats = await ledger.stats()
    assert stats.total_coins_in_circulation == 0 + 15 + 100
    assert stats.coins_spent_this_month == 5
    assert stats.top_users[0].user_id == rich.id
    holder = next(h for h in stats.top_users if h.user_id == user.id)
    assert holder.total_spent == 5


async def test_concurrent_debits_never_overdraw(session_factory, user):
    async def spend():
        async with session_factory() as db:
            ledger = LedgerService.with_session(db)
            try:
                async with atomic(db):
                    await ledger.debit(user.id, 10, description="race")
            except InsufficientBalanceError:
                return False
            return True

    results = await asyncio.gather(*(spend() for _ in range(4)))

    assert results.count(True) == 2
    async with session_factory() as db:
        ledger = LedgerService.with_session(db)
        assert await ledger.get_balance(user.id) == 0
        assert len(await ledger.list_transactions(user.id)) == 2


async def _assert_conserved(ledger, user_id):
    balance = await ledger.get_balance(user_id)
    entries = await ledger.list_transactions(user_id, limit=200)
    assert balance == 20 + sum(entry.amount for entry in entries)
    assert balance >= 0
    return balance


async def test_balance_matches_log_after_mixed_operations(session, provider, admin, user, lead, package):
    ledger = LedgerService.with_session(session)
    entitlements = EntitlementService.with_session(session)
    coupon = await CouponService.with_session(session).create_coupon(admin, max_uses=5, coin_amount=25)

    await entitlements.unlock_lead(user.id, lead.id, "contact_info")
    await entitlements.unlock_lead(user.id, lead.id, "detailed_info")
    with pytest.raises(InsufficientBalanceError):
        await entitlements.unlock_lead(user.id, lead.id, "full_access")
    await CouponService.with_session(session).claim(user.id, coupon.code)

    purchases = PurchaseService.with_session(session, provider)
    checkout = await purchases.initiate_checkout(user, "package", package.id)
    provider.sessions[checkout.session_id] = PAYMENT_PAID
    await purchases.reconcile(checkout.session_id)
    await ledger.send_coins(admin, user.id, 15)
    await entitlements.unlock_lead(user.id, lead.id, "full_access")

    assert await _assert_conserved(ledger, user.id) == 20 - 5 - 10 + 25 + 100 + 15 - 15


async def test_balance_matches_log_under_concurrent_operations(
    session, session_factory, provider, admin, user, lead, package
):
    coupon = await CouponService.with_session(session).create_coupon(admin, max_uses=5, coin_amount=25)
    checkout = await PurchaseService.with_session(session, provider).initiate_checkout(user, "package", package.id)
    provider.sessions[checkout.session_id] = PAYMENT_PAID

    async def unlock(view_type):
        async with session_factory() as db:
            try:
                await EntitlementService.with_session(db).unlock_lead(user.id, lead.id, view_type)
            except InsufficientBalanceError:
                return False
            return True

    async def claim():
        async with session_factory() as db:
            await CouponService.with_session(db).claim(user.id, coupon.code)

    async def reconcile():
        async with session_factory() as db:
            await PurchaseService.with_session(db, provider).reconcile(checkout.session_id)

    async def top_up():
        async with session_factory() as db:
            await LedgerService.with_session(db).send_coins(admin, user.id, 10)

    await asyncio.gather(
        unlock("contact_info"),
        unlock("detailed_info"),
        unlock("full_access"),
        claim(),
        reconcile(),
        reconcile(),
        top_up(),
    )

    async with session_factory() as db:
        ledger = LedgerService.with_session(db)
        balance = await _assert_conserved(ledger, user.id)
        views = await EntitlementService.with_session(db).list_views(user.id)
        spent = sum(view.coins_spent for view in views)
        assert balance == 20 + 25 + 100 + 10 - spent
