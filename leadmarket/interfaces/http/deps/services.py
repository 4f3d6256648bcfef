"""Service providers bound to the request session and the application container."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from leadmarket.core.container import get_container
from leadmarket.modules.coupons import CouponService
from leadmarket.modules.entitlements import EntitlementService
from leadmarket.modules.leads import LeadService
from leadmarket.modules.ledger import LedgerService
from leadmarket.modules.notifications import LowBalanceMailer, NotificationService
from leadmarket.modules.purchases import CatalogService, PaymentProvider, PurchaseService

from .database import get_db_session


def get_payment_provider() -> PaymentProvider:
    return get_container().payment_provider


def get_mailer() -> LowBalanceMailer:
    return get_container().mailer


def get_ledger_service(db: AsyncSession = Depends(get_db_session)) -> LedgerService:
    return LedgerService.with_session(db)


def get_lead_service(db: AsyncSession = Depends(get_db_session)) -> LeadService:
    return LeadService.with_session(db)


def get_entitlement_service(
    db: AsyncSession = Depends(get_db_session),
    mailer: LowBalanceMailer = Depends(get_mailer),
) -> EntitlementService:
    return EntitlementService.with_session(db, mailer)


def get_catalog_service(db: AsyncSession = Depends(get_db_session)) -> CatalogService:
    return CatalogService.with_session(db)


def get_purchase_service(
    db: AsyncSession = Depends(get_db_session),
    provider: PaymentProvider = Depends(get_payment_provider),
) -> PurchaseService:
    return PurchaseService.with_session(db, provider)


def get_coupon_service(db: AsyncSession = Depends(get_db_session)) -> CouponService:
    return CouponService.with_session(db)


def get_notification_service(db: AsyncSession = Depends(get_db_session)) -> NotificationService:
    return NotificationService.with_session(db)


__all__ = [
    "get_payment_provider",
    "get_mailer",
    "get_ledger_service",
    "get_lead_service",
    "get_entitlement_service",
    "get_catalog_service",
    "get_purchase_service",
    "get_coupon_service",
    "get_notification_service",
]
