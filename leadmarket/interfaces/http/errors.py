"""Translate domain exceptions raised by services into HTTP errors."""

from __future__ import annotations

import logging

from fastapi import HTTPException, status

from leadmarket.core.exceptions import (
    DomainError,
    ForbiddenError,
    PersistenceFailureError,
    ProviderUnavailableError,
    ValidationError,
)
from leadmarket.modules.accounts import AccountAlreadyExistsError, AccountNotFoundError
from leadmarket.modules.coupons import (
    AlreadyClaimedError,
    CouponExhaustedError,
    CouponInactiveError,
    CouponNotFoundError,
)
from leadmarket.modules.entitlements import InvalidViewTypeError
from leadmarket.modules.leads import LeadNotFoundError
from leadmarket.modules.ledger import InsufficientBalanceError
from leadmarket.modules.notifications import NotificationNotFoundError
from leadmarket.modules.purchases import (
    CatalogItemNotFoundError,
    InvalidWebhookSignatureError,
    PurchaseNotFoundError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (AccountNotFoundError, status.HTTP_404_NOT_FOUND),
    (LeadNotFoundError, status.HTTP_404_NOT_FOUND),
    (PurchaseNotFoundError, status.HTTP_404_NOT_FOUND),
    (CouponNotFoundError, status.HTTP_404_NOT_FOUND),
    (CatalogItemNotFoundError, status.HTTP_404_NOT_FOUND),
    (NotificationNotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidViewTypeError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (AccountAlreadyExistsError, status.HTTP_409_CONFLICT),
    (AlreadyClaimedError, status.HTTP_409_CONFLICT),
    (CouponExhaustedError, status.HTTP_400_BAD_REQUEST),
    (CouponInactiveError, status.HTTP_400_BAD_REQUEST),
    (InvalidWebhookSignatureError, status.HTTP_400_BAD_REQUEST),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (ProviderUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (PersistenceFailureError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def to_http_exception(exc: DomainError) -> HTTPException:
    if isinstance(exc, InsufficientBalanceError):
        return HTTPException(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail={
                "message": "Insufficient LeadCoins",
                "required": exc.required,
                "available": exc.available,
            },
        )
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            if status_code >= 500:
                logger.error("Request failed with %s: %s", type(exc).__name__, exc)
                detail = "Payment provider unavailable" if status_code == 503 else "Internal error, nothing was changed"
            else:
                detail = str(exc) or type(exc).__name__
            return HTTPException(status_code=status_code, detail=detail)
    logger.error("Unmapped domain error %s: %s", type(exc).__name__, exc)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


__all__ = ["to_http_exception"]
