"""Purchase reconciler: checkout, polling, webhooks and exactly-once crediting."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from leadmarket.core.config import StripeSettings
from leadmarket.core.exceptions import ForbiddenError, ProviderUnavailableError
from leadmarket.modules.ledger import KIND_PURCHASE, LedgerService
from leadmarket.modules.notifications import NotificationService
from leadmarket.modules.purchases import (
    CatalogItemNotFoundError,
    InvalidWebhookSignatureError,
    PurchaseNotFoundError,
    PurchaseService,
)
from leadmarket.modules.purchases.models import PAYMENT_EXPIRED, PAYMENT_FAILED, PAYMENT_PAID, WebhookEvent
from leadmarket.modules.purchases.provider import (
    EVENT_ASYNC_FAILED,
    EVENT_COMPLETED,
    StripePaymentProvider,
    session_payment_status,
)

from conftest import VALID_SIGNATURE


def _as_utc(value):
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


async def _balance(session, user_id):
    return await LedgerService.with_session(session).get_balance(user_id)


async def _purchase_entries(session, user_id):
    entries = await LedgerService.with_session(session).list_transactions(user_id)
    return [entry for entry in entries if entry.kind == KIND_PURCHASE]


async def test_checkout_records_pending_purchase(session, provider, user, package):
    service = PurchaseService.with_session(session, provider)

    result = await service.initiate_checkout(user, "package", package.id)

    assert result.session_id == "cs_test_1"
    assert result.redirect_url.endswith("cs_test_1")
    assert result.reused is False
    assert result.purchase.status == "pending"
    assert result.purchase.lead_coins == 100
    assert result.purchase.amount_cents == 1999
    assert provider.created[0].customer_email == user.email
    assert provider.created[0].item.id == package.id


async def test_open_checkout_is_reused(session, provider, user, package):
    service = PurchaseService.with_session(session, provider)
    first = await service.initiate_checkout(user, "package", package.id)

    second = await service.initiate_checkout(user, "package", package.id)

    assert second.reused is True
    assert second.session_id == first.session_id
    assert len(provider.created) == 1


async def test_checkout_for_unknown_item(session, provider, user, package):
    service = PurchaseService.with_session(session, provider)
    with pytest.raises(CatalogItemNotFoundError):
        await service.initiate_checkout(user, "subscription", package.id)
    assert provider.created == []


async def test_checkout_with_provider_down_records_nothing(session, provider, user, package):
    provider.unavailable = True
    service = PurchaseService.with_session(session, provider)

    with pytest.raises(ProviderUnavailableError):
        await service.initiate_checkout(user, "package", package.id)

    assert await service.list_history(user.id) == []


async def test_unpaid_session_stays_pending(session, provider, user, package):
    service = PurchaseService.with_session(session, provider)
    checkout = await service.initiate_checkout(user, "package", package.id)

    result = await service.reconcile(checkout.session_id)

    assert result.outcome == "pending"
    assert result.purchase.status == "pending"
    assert await _balance(session, user.id) == 20


async def test_paid_session_is_credited_once(session, provider, user, package):
    service = PurchaseService.with_session(session, provider)
    checkout = await service.initiate_checkout(user, "package", package.id)
    provider.sessions[checkout.session_id] = PAYMENT_PAID

    first = await service.reconcile(checkout.session_id)
    second = await service.reconcile(checkout.session_id)

    assert first.outcome == "credited"
    assert first.coins_credited == 100
    assert first.balance == 120
    assert first.purchase.status == "completed"
    assert first.purchase.payment_verified is True
    assert second.outcome == "already_processed"
    assert second.coins_credited == 0
    assert await _balance(session, user.id) == 120
    entries = await _purchase_entries(session, user.id)
    assert [(e.amount, e.reference_id) for e in entries] == [(100, checkout.purchase.id)]

    notices = await NotificationService.with_session(session).list_for_user(user.id)
    assert [n.title for n in notices] == ["Purchase Completed"]


async def test_subscription_becomes_active_for_plan_duration(session, provider, user, plan):
    service = PurchaseService.with_session(session, provider)
    checkout = await service.initiate_checkout(user, "subscription", plan.id)
    provider.sessions[checkout.session_id] = PAYMENT_PAID

    result = await service.reconcile(checkout.session_id)

    assert result.outcome == "credited"
    assert result.purchase.status == "active"
    assert _as_utc(result.purchase.end_date) - _as_utc(result.purchase.start_date) == timedelta(days=30)
    assert await _balance(session, user.id) == 320


async def test_unknown_session(session, provider):
    with pytest.raises(PurchaseNotFoundError):
        await PurchaseService.with_session(session, provider).reconcile("cs_unknown")


async def test_provider_outage_leaves_purchase_pending(session, provider, user, package):
    service = PurchaseService.with_session(session, provider)
    checkout = await service.initiate_checkout(user, "package", package.id)
    provider.sessions[checkout.session_id] = PAYMENT_PAID
    provider.unavailable = True

    with pytest.raises(ProviderUnavailableError):
        await service.reconcile(checkout.session_id)
    assert (await service.list_history(user.id))[0].status == "pending"
    assert await _balance(session, user.id) == 20

    provider.unavailable = False
    assert (await service.reconcile(checkout.session_id)).outcome == "credited"


@pytest.mark.parametrize("reported,status", [(PAYMENT_FAILED, "failed"), (PAYMENT_EXPIRED, "cancelled")])
async def test_closed_session_is_never_credited(session, provider, user, package, reported, status):
    service = PurchaseService.with_session(session, provider)
    checkout = await service.initiate_checkout(user, "package", package.id)

    closed = await service.reconcile(checkout.session_id, reported)
    late = await service.reconcile(checkout.session_id, PAYMENT_PAID)

    assert closed.purchase.status == status
    assert late.outcome == "already_processed"
    assert await _balance(session, user.id) == 20


async def test_webhook_uses_reported_status(session, provider, user, package):
    service = PurchaseService.with_session(session, provider)
    checkout = await service.initiate_checkout(user, "package", package.id)
    provider.event = WebhookEvent(type=EVENT_COMPLETED, session_id=checkout.session_id, status=PAYMENT_PAID)

    result = await service.handle_webhook(b"{}", VALID_SIGNATURE)

    assert result.outcome == "credited"
    assert provider.status_calls == 0
    assert await _balance(session, user.id) == 120


async def test_webhook_async_failure_closes_purchase(session, provider, user, package):
    service = PurchaseService.with_session(session, provider)
    checkout = await service.initiate_checkout(user, "package", package.id)
    provider.event = WebhookEvent(type=EVENT_ASYNC_FAILED, session_id=checkout.session_id, status=PAYMENT_FAILED)

    result = await service.handle_webhook(b"{}", VALID_SIGNATURE)

    assert result.outcome == "failed"
    assert (await service.list_history(user.id))[0].status == "failed"


async def test_webhook_signature_is_checked(session, provider):
    service = PurchaseService.with_session(session, provider)
    provider.event = WebhookEvent(type=EVENT_COMPLETED, session_id="cs_x", status=PAYMENT_PAID)
    with pytest.raises(InvalidWebhookSignatureError):
        await service.handle_webhook(b"{}", "t=1,v1=forged")


async def test_unhandled_webhook_event_is_ignored(session, provider):
    provider.event = WebhookEvent(type="customer.created")
    result = await PurchaseService.with_session(session, provider).handle_webhook(b"{}", VALID_SIGNATURE)
    assert result.outcome == "ignored"


async def test_webhook_adopts_session_from_metadata(session, provider, user, package):
    provider.event = WebhookEvent(
        type=EVENT_COMPLETED,
        session_id="cs_from_elsewhere",
        status=PAYMENT_PAID,
        metadata={"user_id": user.id, "kind": "package", "item_id": package.id},
    )
    service = PurchaseService.with_session(session, provider)

    result = await service.handle_webhook(b"{}", VALID_SIGNATURE)

    assert result.outcome == "credited"
    history = await service.list_history(user.id)
    assert [(p.payment_session_id, p.status) for p in history] == [("cs_from_elsewhere", "completed")]
    assert await _balance(session, user.id) == 120


async def test_webhook_for_unknown_session_without_metadata(session, provider):
    provider.event = WebhookEvent(type=EVENT_COMPLETED, session_id="cs_nobody", status=PAYMENT_PAID)
    result = await PurchaseService.with_session(session, provider).handle_webhook(b"{}", VALID_SIGNATURE)
    assert result.outcome == "not_found"


async def test_webhook_and_polling_race_credits_once(session, session_factory, provider, user, package):
    checkout = await PurchaseService.with_session(session, provider).initiate_checkout(user, "package", package.id)
    provider.sessions[checkout.session_id] = PAYMENT_PAID
    provider.event = WebhookEvent(type=EVENT_COMPLETED, session_id=checkout.session_id, status=PAYMENT_PAID)

    async def poll():
        async with session_factory() as db:
            return (await PurchaseService.with_session(db, provider).reconcile(checkout.session_id)).outcome

    async def webhook():
        async with session_factory() as db:
            return (await PurchaseService.with_session(db, provider).handle_webhook(b"{}", VALID_SIGNATURE)).outcome

    outcomes = await asyncio.gather(poll(), webhook(), poll(), webhook())

    assert outcomes.count("credited") == 1
    assert set(outcomes) == {"credited", "already_processed"}
    async with session_factory() as db:
        assert await _balance(db, user.id) == 120
        assert len(await _purchase_entries(db, user.id)) == 1


def _past_grace():
    return datetime.now(timezone.utc) + timedelta(hours=3)


async def test_expire_stale_pending_cancels_unpaid_sessions(session, provider, admin, user, package):
    service = PurchaseService.with_session(session, provider)
    await service.initiate_checkout(user, "package", package.id)

    with pytest.raises(ForbiddenError):
        await service.expire_stale_pending(user)
    assert (await service.expire_stale_pending(admin)).cancelled == 0
    assert provider.status_calls == 0

    sweep = await service.expire_stale_pending(admin, now=_past_grace())

    assert (sweep.cancelled, sweep.failed, sweep.credited, sweep.skipped) == (1, 0, 0, 0)
    assert provider.status_calls == 1
    assert (await service.list_history(user.id))[0].status == "cancelled"


async def test_expire_stale_pending_credits_late_payment(session, provider, admin, user, package):
    service = PurchaseService.with_session(session, provider)
    checkout = await service.initiate_checkout(user, "package", package.id)
    provider.sessions[checkout.session_id] = PAYMENT_PAID

    sweep = await service.expire_stale_pending(admin, now=_past_grace())

    assert (sweep.cancelled, sweep.credited) == (0, 1)
    assert (await service.list_history(user.id))[0].status == "completed"
    assert await _balance(session, user.id) == 120

    provider.event = WebhookEvent(type=EVENT_COMPLETED, session_id=checkout.session_id, status=PAYMENT_PAID)
    result = await service.handle_webhook(b"{}", VALID_SIGNATURE)
    assert result.outcome == "already_processed"
    assert await _balance(session, user.id) == 120


async def test_expire_stale_pending_closes_failed_payment(session, provider, admin, user, package):
    service = PurchaseService.with_session(session, provider)
    checkout = await service.initiate_checkout(user, "package", package.id)
    provider.sessions[checkout.session_id] = PAYMENT_FAILED

    sweep = await service.expire_stale_pending(admin, now=_past_grace())

    assert (sweep.cancelled, sweep.failed) == (0, 1)
    assert (await service.list_history(user.id))[0].status == "failed"


async def test_delayed_webhook_after_sweep_outage_still_credits(session, provider, admin, user, package):
    service = PurchaseService.with_session(session, provider)
    checkout = await service.initiate_checkout(user, "package", package.id)
    provider.sessions[checkout.session_id] = PAYMENT_PAID
    provider.unavailable = True

    sweep = await service.expire_stale_pending(admin, now=_past_grace())

    assert (sweep.cancelled, sweep.skipped) == (0, 1)
    assert (await service.list_history(user.id))[0].status == "pending"

    provider.event = WebhookEvent(type=EVENT_COMPLETED, session_id=checkout.session_id, status=PAYMENT_PAID)
    result = await service.handle_webhook(b"{}", VALID_SIGNATURE)

    assert result.outcome == "credited"
    assert await _balance(session, user.id) == 120


async def test_verify_payment_checks_owner_before_reconciling(session, provider, make_account, user, admin, package):
    service = PurchaseService.with_session(session, provider)
    checkout = await service.initiate_checkout(user, "package", package.id)
    provider.sessions[checkout.session_id] = PAYMENT_PAID
    stranger = await make_account()

    with pytest.raises(PurchaseNotFoundError):
        await service.verify_payment(stranger, checkout.session_id)
    assert provider.status_calls == 0
    assert (await service.list_history(user.id))[0].status == "pending"

    with pytest.raises(PurchaseNotFoundError):
        await service.verify_payment(user, "cs_unknown")

    assert (await service.verify_payment(admin, checkout.session_id)).outcome == "credited"
    assert (await service.verify_payment(user, checkout.session_id)).outcome == "already_processed"


async def test_current_subscription_expires_after_end_date(session, provider, user, plan):
    service = PurchaseService.with_session(session, provider)
    assert await service.current_subscription(user.id) is None

    checkout = await service.initiate_checkout(user, "subscription", plan.id)
    provider.sessions[checkout.session_id] = PAYMENT_PAID
    await service.reconcile(checkout.session_id)

    current = await service.current_subscription(user.id)
    assert current is not None
    assert current.id == checkout.purchase.id
    assert current.status == "active"

    after_end = datetime.now(timezone.utc) + timedelta(days=31)
    assert await service.current_subscription(user.id, now=after_end) is None
    assert (await service.list_history(user.id))[0].status == "expired"
    assert (await service.reconcile(checkout.session_id)).outcome == "already_processed"
    assert await _balance(session, user.id) == 320


async def test_expire_ended_subscriptions(session, provider, admin, make_account, plan, package):
    service = PurchaseService.with_session(session, provider)
    buyers = [await make_account(), await make_account()]
    for buyer in buyers:
        checkout = await service.initiate_checkout(buyer, "subscription", plan.id)
        provider.sessions[checkout.session_id] = PAYMENT_PAID
        await service.reconcile(checkout.session_id)
    package_checkout = await service.initiate_checkout(buyers[0], "package", package.id)
    provider.sessions[package_checkout.session_id] = PAYMENT_PAID
    await service.reconcile(package_checkout.session_id)

    with pytest.raises(ForbiddenError):
        await service.expire_ended_subscriptions(buyers[0])
    assert await service.expire_ended_subscriptions(admin) == 0

    after_end = datetime.now(timezone.utc) + timedelta(days=31)
    assert await service.expire_ended_subscriptions(admin, now=after_end) == 2
    statuses = sorted(p.status for p in await service.list_history(buyers[0].id))
    assert statuses == ["completed", "expired"]


@pytest.mark.parametrize(
    "checkout_session,expected",
    [
        ({"payment_status": "paid", "status": "complete"}, PAYMENT_PAID),
        ({"payment_status": "no_payment_required"}, PAYMENT_PAID),
        ({"payment_status": "unpaid", "status": "expired"}, PAYMENT_EXPIRED),
        ({"payment_status": "unpaid", "status": "open"}, "unpaid"),
    ],
)
def test_session_payment_status(checkout_session, expected):
    assert session_payment_status(checkout_session) == expected


def test_stripe_webhook_requires_secret_and_signature():
    unconfigured = StripePaymentProvider(StripeSettings(webhook_secret=""))
    with pytest.raises(InvalidWebhookSignatureError):
        unconfigured.parse_webhook(b"{}", "t=1,v1=abc")

    configured = StripePaymentProvider(StripeSettings(webhook_secret="whsec_test"))
    with pytest.raises(InvalidWebhookSignatureError):
        configured.parse_webhook(b"{}", None)
    with pytest.raises(InvalidWebhookSignatureError):
        configured.parse_webhook(b"{}", "t=1,v1=forged")


async def test_stripe_without_key_is_unavailable():
    with pytest.raises(ProviderUnavailableError):
        await StripePaymentProvider(StripeSettings(secret_key="")).get_session_status("cs_x")
