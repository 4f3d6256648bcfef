"""Purchase reconciler exceptions."""

from leadmarket.core.exceptions import DomainError, ProviderUnavailableError


class PurchaseError(DomainError):
    """Base class for purchase errors."""


class PurchaseNotFoundError(PurchaseError):
    """Raised when no purchase is recorded for a payment session."""


class CatalogItemNotFoundError(PurchaseError):
    """Raised when a coin package or subscription plan is missing or inactive."""


class InvalidWebhookSignatureError(PurchaseError):
    """Raised when an inbound webhook fails signature verification."""


__all__ = [
    "PurchaseError",
    "PurchaseNotFoundError",
    "CatalogItemNotFoundError",
    "InvalidWebhookSignatureError",
    "ProviderUnavailableError",
]
