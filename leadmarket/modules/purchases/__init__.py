"""Purchase reconciler public API."""

from .catalog import CatalogService
from .exceptions import (
    CatalogItemNotFoundError,
    InvalidWebhookSignatureError,
    PurchaseError,
    PurchaseNotFoundError,
)
from .models import CatalogItem, CheckoutResult, Purchase, ReconcileResult, WebhookResult
from .provider import PaymentProvider, StripePaymentProvider
from .service import PurchaseService

__all__ = [
    "CatalogService",
    "PurchaseService",
    "PaymentProvider",
    "StripePaymentProvider",
    "CatalogItem",
    "CheckoutResult",
    "Purchase",
    "ReconcileResult",
    "WebhookResult",
    "PurchaseError",
    "PurchaseNotFoundError",
    "CatalogItemNotFoundError",
    "InvalidWebhookSignatureError",
]
