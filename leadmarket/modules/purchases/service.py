"""Purchase reconciler.

One state machine for coin packages and subscriptions::

    pending -> completed (package) | active (subscription)
    pending -> failed | cancelled
    active -> expired (once end_date passes)

Polling (``reconcile``) and the provider webhook share the same path. The
pending-to-terminal move is a compare-and-set inside the crediting
transaction, so a session is credited at most once however many times and
from however many workers it is reconciled.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from leadmarket.core.config import get_settings
from leadmarket.core.exceptions import ForbiddenError, ProviderUnavailableError
from leadmarket.infrastructure.database.transaction import atomic
from leadmarket.modules.accounts.models import Account
from leadmarket.modules.ledger.models import KIND_PURCHASE
from leadmarket.modules.ledger.service import LedgerService
from leadmarket.modules.notifications.models import TYPE_COIN_RECEIVED, TYPE_SUBSCRIPTION_UPDATE
from leadmarket.modules.notifications.service import NotificationService

from .catalog import CatalogService
from .exceptions import PurchaseNotFoundError
from .models import (
    KIND_PACKAGE,
    OUTCOME_ALREADY_PROCESSED,
    OUTCOME_CANCELLED,
    OUTCOME_CREDITED,
    OUTCOME_FAILED,
    OUTCOME_PENDING,
    PAYMENT_EXPIRED,
    PAYMENT_FAILED,
    PAYMENT_PAID,
    PURCHASE_KINDS,
    STATUS_ACTIVE,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_FAILED,
    CheckoutRequest,
    CheckoutResult,
    ExpirySweep,
    Purchase,
    ReconcileResult,
    WebhookEvent,
    WebhookResult,
)
from .provider import HANDLED_EVENTS, PaymentProvider
from .repository import PurchaseRepository

logger = logging.getLogger(__name__)

DEFAULT_SUBSCRIPTION_DAYS = 30
WEBHOOK_IGNORED = "ignored"
WEBHOOK_NOT_FOUND = "not_found"
STALE_SWEEP_LIMIT = 200


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(slots=True)
class PurchaseService:
    repository: PurchaseRepository
    catalog: CatalogService
    ledger: LedgerService
    notifications: NotificationService
    provider: PaymentProvider
    session: AsyncSession

    @classmethod
    def with_session(cls, session: AsyncSession, provider: PaymentProvider) -> "PurchaseService":
        from leadmarket.infrastructure.database.repositories.purchase_repository import SqlPurchaseRepository

        return cls(
            repository=SqlPurchaseRepository(session),
            catalog=CatalogService.with_session(session),
            ledger=LedgerService.with_session(session),
            notifications=NotificationService.with_session(session),
            provider=provider,
            session=session,
        )

    async def initiate_checkout(self, user: Account, kind: str, item_id: str) -> CheckoutResult:
        item = await self.catalog.get_active_item(kind, item_id)
        now = _utcnow()

        existing = await self.repository.find_open(user.id, kind, item_id, now)
        if existing is not None and existing.payment_session_id and existing.checkout_url:
            logger.info("Reusing pending checkout %s for %s", existing.payment_session_id, user.id)
            return CheckoutResult(
                purchase=existing,
                session_id=existing.payment_session_id,
                redirect_url=existing.checkout_url,
                expires_at=_as_utc(existing.expires_at),
                reused=True,
            )

        expires_at = now + timedelta(minutes=get_settings().stripe.checkout_expiry_minutes)
        checkout = await self.provider.create_checkout_session(
            CheckoutRequest(
                user_id=user.id,
                kind=kind,
                item=item,
                expires_at=expires_at,
                customer_email=user.email,
            )
        )
        async with atomic(self.session):
            purchase = await self.repository.create(
                user_id=user.id,
                kind=kind,
                item_id=item.id,
                payment_session_id=checkout.session_id,
                checkout_url=checkout.redirect_url,
                lead_coins=item.lead_coins,
                amount_cents=item.price_cents,
                expires_at=checkout.expires_at or expires_at,
            )
        logger.info("Checkout %s opened for %s %s by %s", checkout.session_id, kind, item.id, user.id)
        return CheckoutResult(
            purchase=purchase,
            session_id=checkout.session_id,
            redirect_url=checkout.redirect_url,
            expires_at=_as_utc(purchase.expires_at),
        )

    async def reconcile(self, session_id: str, reported_status: Optional[str] = None) -> ReconcileResult:
        """Drive the purchase behind ``session_id`` towards a terminal state.

        ``reported_status`` comes from a verified webhook; without it the
        provider is asked. Provider failures leave the purchase pending.
        """
        purchase = await self.repository.get_by_session(session_id)
        if purchase is None:
            raise PurchaseNotFoundError(session_id)
        if purchase.is_terminal:
            logger.info("Session %s already processed (%s)", session_id, purchase.status)
            return ReconcileResult(outcome=OUTCOME_ALREADY_PROCESSED, purchase=purchase)

        status = reported_status
        if status is None:
            status = (await self.provider.get_session_status(session_id)).status

        if status == PAYMENT_PAID:
            return await self._complete(purchase)
        if status == PAYMENT_FAILED:
            return await self._close(purchase, STATUS_FAILED, OUTCOME_FAILED)
        if status == PAYMENT_EXPIRED:
            return await self._close(purchase, STATUS_CANCELLED, OUTCOME_CANCELLED)
        logger.debug("Session %s still unpaid", session_id)
        return ReconcileResult(outcome=OUTCOME_PENDING, purchase=purchase)

    async def verify_payment(self, account: Account, session_id: str) -> ReconcileResult:
        """Reconcile a session on behalf of its buyer; other users see it as unknown."""
        purchase = await self.repository.get_by_session(session_id)
        if purchase is None or (purchase.user_id != account.id and not account.is_admin()):
            raise PurchaseNotFoundError(session_id)
        return await self.reconcile(session_id)

    async def _complete(self, purchase: Purchase) -> ReconcileResult:
        now = _utcnow()
        if purchase.kind == KIND_PACKAGE:
            status = STATUS_COMPLETED
            start_date = end_date = None
        else:
            status = STATUS_ACTIVE
            plan = await self.catalog.get_item(purchase.kind, purchase.item_id)
            days = plan.duration_days if plan and plan.duration_days else DEFAULT_SUBSCRIPTION_DAYS
            start_date, end_date = now, now + timedelta(days=days)

        async with atomic(self.session):
            won = await self.repository.transition(
                purchase.id,
                status=status,
                verified=True,
                completed_at=now,
                start_date=start_date,
                end_date=end_date,
            )
            if won:
                change = await self.ledger.credit(
                    purchase.user_id,
                    purchase.lead_coins,
                    kind=KIND_PURCHASE,
                    description=self._describe(purchase),
                    reference_id=purchase.id,
                )
                await self.notifications.record_credit(
                    user_id=purchase.user_id,
                    new_balance=change.new_balance,
                    type=TYPE_COIN_RECEIVED if purchase.kind == KIND_PACKAGE else TYPE_SUBSCRIPTION_UPDATE,
                    title="Purchase Completed" if purchase.kind == KIND_PACKAGE else "Subscription Activated",
                    message=f"{purchase.lead_coins} LeadCoins have been added to your account.",
                    metadata={
                        "purchaseId": purchase.id,
                        "kind": purchase.kind,
                        "amount": purchase.lead_coins,
                    },
                )

        if not won:
            logger.info("Purchase %s was reconciled concurrently", purchase.id)
            return ReconcileResult(
                outcome=OUTCOME_ALREADY_PROCESSED,
                purchase=await self.repository.get_by_session(purchase.payment_session_id) or purchase,
            )

        logger.info(
            "Purchase %s %s: credited %d LeadCoins to %s",
            purchase.id,
            status,
            purchase.lead_coins,
            purchase.user_id,
        )
        purchase.status = status
        purchase.payment_verified = True
        purchase.completed_at = now
        purchase.start_date = start_date
        purchase.end_date = end_date
        return ReconcileResult(
            outcome=OUTCOME_CREDITED,
            purchase=purchase,
            coins_credited=purchase.lead_coins,
            balance=change.new_balance,
        )

    async def _close(self, purchase: Purchase, status: str, outcome: str) -> ReconcileResult:
        async with atomic(self.session):
            won = await self.repository.transition(purchase.id, status=status)
        if not won:
            return ReconcileResult(outcome=OUTCOME_ALREADY_PROCESSED, purchase=purchase)
        logger.info("Purchase %s closed as %s", purchase.id, status)
        purchase.status = status
        return ReconcileResult(outcome=outcome, purchase=purchase)

    @staticmethod
    def _describe(purchase: Purchase) -> str:
        if purchase.kind == KIND_PACKAGE:
            return f"Purchased coin package ({purchase.lead_coins} LeadCoins)"
        return f"Subscription activated ({purchase.lead_coins} LeadCoins)"

    async def handle_webhook(self, payload: bytes, signature: str | None) -> WebhookResult:
        event = self.provider.parse_webhook(payload, signature)
        if event.type not in HANDLED_EVENTS or not event.session_id:
            logger.info("Ignoring webhook event %s", event.type)
            return WebhookResult(event_type=event.type, outcome=WEBHOOK_IGNORED)

        try:
            result = await self.reconcile(event.session_id, event.status)
        except PurchaseNotFoundError:
            if not await self._adopt_session(event):
                logger.warning("Webhook %s for unknown session %s", event.type, event.session_id)
                return WebhookResult(event_type=event.type, outcome=WEBHOOK_NOT_FOUND, session_id=event.session_id)
            result = await self.reconcile(event.session_id, event.status)
        return WebhookResult(event_type=event.type, outcome=result.outcome, session_id=event.session_id)

    async def _adopt_session(self, event: WebhookEvent) -> bool:
        """Record a pending purchase for a session only the provider knows about."""
        user_id = event.metadata.get("user_id")
        kind = event.metadata.get("kind")
        item_id = event.metadata.get("item_id")
        if not user_id or kind not in PURCHASE_KINDS or not item_id:
            return False
        item = await self.catalog.get_item(kind, item_id)
        if item is None:
            return False
        try:
            async with atomic(self.session):
                try:
                    await self.repository.create(
                        user_id=user_id,
                        kind=kind,
                        item_id=item_id,
                        payment_session_id=event.session_id,
                        checkout_url=None,
                        lead_coins=item.lead_coins,
                        amount_cents=item.price_cents,
                        expires_at=None,
                    )
                except IntegrityError as exc:
                    raise _SessionAlreadyRecorded(event.session_id) from exc
        except _SessionAlreadyRecorded:
            logger.info("Session %s recorded concurrently", event.session_id)
            return True
        logger.info("Recorded purchase for session %s from webhook metadata", event.session_id)
        return True

    async def list_history(self, user_id: str, limit: int = 50, offset: int = 0) -> list[Purchase]:
        return list(await self.repository.list_for_user(user_id, limit, offset))

    async def expire_stale_pending(self, admin: Account, now: datetime | None = None) -> ExpirySweep:
        """Settle pending checkouts whose expiry plus the grace period has passed.

        Each stale row is checked with the provider first: a late payment is
        credited, a failure is closed as failed and only an expired or unpaid
        session is cancelled. Rows the provider cannot answer for stay pending.
        """
        if not admin.is_admin():
            raise ForbiddenError("Only administrators can expire purchases")
        now = now or _utcnow()
        cutoff = now - timedelta(minutes=get_settings().ledger.pending_grace_minutes)
        sweep = ExpirySweep()
        for purchase in await self.repository.list_stale_pending(cutoff, STALE_SWEEP_LIMIT):
            try:
                status = (await self.provider.get_session_status(purchase.payment_session_id)).status
            except ProviderUnavailableError as exc:
                logger.warning("Leaving stale session %s pending: %s", purchase.payment_session_id, exc)
                sweep.skipped += 1
                continue

            if status == PAYMENT_PAID:
                result = await self._complete(purchase)
            elif status == PAYMENT_FAILED:
                result = await self._close(purchase, STATUS_FAILED, OUTCOME_FAILED)
            else:
                result = await self._close(purchase, STATUS_CANCELLED, OUTCOME_CANCELLED)

            if result.outcome == OUTCOME_CREDITED:
                sweep.credited += 1
            elif result.outcome == OUTCOME_FAILED:
                sweep.failed += 1
            elif result.outcome == OUTCOME_CANCELLED:
                sweep.cancelled += 1
        logger.info(
            "Stale pending sweep: %d cancelled, %d failed, %d credited, %d skipped",
            sweep.cancelled,
            sweep.failed,
            sweep.credited,
            sweep.skipped,
        )
        return sweep

    async def current_subscription(self, user_id: str, now: datetime | None = None) -> Purchase | None:
        """The user's running subscription; lapsed ones are expired on the way."""
        now = now or _utcnow()
        async with atomic(self.session):
            expired = await self.repository.expire_subscriptions(now, user_id=user_id)
        if expired:
            logger.info("Expired %d subscriptions of %s", expired, user_id)
        return await self.repository.get_active_subscription(user_id, now)

    async def expire_ended_subscriptions(self, admin: Account, now: datetime | None = None) -> int:
        if not admin.is_admin():
            raise ForbiddenError("Only administrators can expire subscriptions")
        now = now or _utcnow()
        async with atomic(self.session):
            count = await self.repository.expire_subscriptions(now)
        logger.info("Expired %d ended subscriptions", count)
        return count


class _SessionAlreadyRecorded(Exception):
    pass
