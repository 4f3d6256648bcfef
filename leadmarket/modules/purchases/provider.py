"""Payment provider collaborator and its Stripe Checkout implementation."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Protocol

import stripe

from leadmarket.core.config import StripeSettings
from leadmarket.core.exceptions import ProviderUnavailableError

from .exceptions import InvalidWebhookSignatureError
from .models import (
    KIND_SUBSCRIPTION,
    PAYMENT_EXPIRED,
    PAYMENT_FAILED,
    PAYMENT_PAID,
    PAYMENT_UNPAID,
    CheckoutRequest,
    CheckoutSession,
    SessionStatus,
    WebhookEvent,
)

logger = logging.getLogger(__name__)

EVENT_COMPLETED = "checkout.session.completed"
EVENT_ASYNC_SUCCEEDED = "checkout.session.async_payment_succeeded"
EVENT_ASYNC_FAILED = "checkout.session.async_payment_failed"
EVENT_EXPIRED = "checkout.session.expired"
HANDLED_EVENTS = frozenset({EVENT_COMPLETED, EVENT_ASYNC_SUCCEEDED, EVENT_ASYNC_FAILED, EVENT_EXPIRED})


class PaymentProvider(Protocol):
    async def create_checkout_session(self, request: CheckoutRequest) -> CheckoutSession:
        ...

    async def get_session_status(self, session_id: str) -> SessionStatus:
        ...

    def parse_webhook(self, payload: bytes, signature: str | None) -> WebhookEvent:
        ...


def _field(obj: Any, key: str, default: Any = None) -> Any:
    try:
        value = obj[key]
    except (KeyError, TypeError):
        return default
    return default if value is None else value


def _metadata(obj: Any) -> dict[str, Any]:
    metadata = _field(obj, "metadata", {})
    return {key: metadata[key] for key in metadata}


def session_payment_status(session: Any) -> str:
    """Collapse a Checkout Session into paid, unpaid or expired."""
    if _field(session, "payment_status") in {"paid", "no_payment_required"}:
        return PAYMENT_PAID
    if _field(session, "status") == "expired":
        return PAYMENT_EXPIRED
    return PAYMENT_UNPAID


def event_payment_status(event_type: str, session: Any) -> str:
    if event_type == EVENT_ASYNC_FAILED:
        return PAYMENT_FAILED
    if event_type == EVENT_EXPIRED:
        return PAYMENT_EXPIRED
    return session_payment_status(session)


class StripePaymentProvider:
    """Stripe Checkout in ``payment`` mode, one line item per purchase."""

    def __init__(self, settings: StripeSettings) -> None:
        self.settings = settings

    def _require_key(self) -> str:
        if not self.settings.secret_key:
            raise ProviderUnavailableError("Stripe is not configured")
        return self.settings.secret_key

    async def create_checkout_session(self, request: CheckoutRequest) -> CheckoutSession:
        api_key = self._require_key()
        item = request.item
        product_name = item.name if request.kind != KIND_SUBSCRIPTION else f"{item.name} subscription"
        params: dict[str, Any] = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": [
                {
                    "price_data": {
                        "currency": self.settings.currency,
                        "product_data": {
                            "name": product_name,
                            "description": item.description or f"{item.lead_coins} LeadCoins",
                        },
                        "unit_amount": item.price_cents,
                    },
                    "quantity": 1,
                }
            ],
            "metadata": {
                "user_id": request.user_id,
                "kind": request.kind,
                "item_id": item.id,
            },
            "success_url": self.settings.success_url,
            "cancel_url": self.settings.cancel_url,
            "expires_at": int(request.expires_at.timestamp()),
        }
        if request.customer_email:
            params["customer_email"] = request.customer_email

        try:
            session = await asyncio.to_thread(stripe.checkout.Session.create, api_key=api_key, **params)
        except stripe.StripeError as exc:
            logger.warning("Stripe checkout creation failed for %s: %s", request.user_id, exc)
            raise ProviderUnavailableError(str(exc)) from exc

        expires_at = _field(session, "expires_at")
        return CheckoutSession(
            session_id=session["id"],
            redirect_url=session["url"],
            expires_at=datetime.fromtimestamp(expires_at, tz=timezone.utc) if expires_at else request.expires_at,
        )

    async def get_session_status(self, session_id: str) -> SessionStatus:
        api_key = self._require_key()
        try:
            session = await asyncio.to_thread(stripe.checkout.Session.retrieve, session_id, api_key=api_key)
        except stripe.StripeError as exc:
            logger.warning("Stripe session lookup failed for %s: %s", session_id, exc)
            raise ProviderUnavailableError(str(exc)) from exc
        return SessionStatus(
            session_id=session_id,
            status=session_payment_status(session),
            metadata=_metadata(session),
        )

    def parse_webhook(self, payload: bytes, signature: str | None) -> WebhookEvent:
        if not self.settings.webhook_secret:
            raise InvalidWebhookSignatureError("Webhook secret is not configured")
        if not signature:
            raise InvalidWebhookSignatureError("Missing Stripe-Signature header")
        try:
            event = stripe.Webhook.construct_event(payload, signature, self.settings.webhook_secret)
        except ValueError as exc:
            raise InvalidWebhookSignatureError("Malformed webhook payload") from exc
        except stripe.SignatureVerificationError as exc:
            raise InvalidWebhookSignatureError("Invalid webhook signature") from exc

        event_type = event["type"]
        if event_type not in HANDLED_EVENTS:
            return WebhookEvent(type=event_type)
        session = event["data"]["object"]
        return WebhookEvent(
            type=event_type,
            session_id=_field(session, "id"),
            status=event_payment_status(event_type, session),
            metadata=_metadata(session),
        )


__all__ = [
    "PaymentProvider",
    "StripePaymentProvider",
    "HANDLED_EVENTS",
    "EVENT_COMPLETED",
    "EVENT_ASYNC_SUCCEEDED",
    "EVENT_ASYNC_FAILED",
    "EVENT_EXPIRED",
    "session_payment_status",
    "event_payment_status",
]
