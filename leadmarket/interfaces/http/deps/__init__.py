"""Reusable FastAPI dependencies."""

from .database import get_db_session
from .account import get_account_service
from .services import (
    get_catalog_service,
    get_coupon_service,
    get_entitlement_service,
    get_lead_service,
    get_ledger_service,
    get_mailer,
    get_notification_service,
    get_payment_provider,
    get_purchase_service,
)

__all__ = [
    "get_db_session",
    "get_account_service",
    "get_catalog_service",
    "get_coupon_service",
    "get_entitlement_service",
    "get_lead_service",
    "get_ledger_service",
    "get_mailer",
    "get_notification_service",
    "get_payment_provider",
    "get_purchase_service",
]
