"""Notification module public API."""

from .exceptions import NotificationError, NotificationNotFoundError
from .mailer import LowBalanceMailer, SmtpMailer
from .models import (
    TYPE_COIN_RECEIVED,
    TYPE_LOW_BALANCE,
    TYPE_SUBSCRIPTION_UPDATE,
    TYPE_SYSTEM,
    Notification,
    crossed_threshold,
)
from .service import NotificationService

__all__ = [
    "Notification",
    "NotificationService",
    "NotificationError",
    "NotificationNotFoundError",
    "LowBalanceMailer",
    "SmtpMailer",
    "crossed_threshold",
    "TYPE_COIN_RECEIVED",
    "TYPE_LOW_BALANCE",
    "TYPE_SUBSCRIPTION_UPDATE",
    "TYPE_SYSTEM",
]
