"""Notification domain exceptions."""

from leadmarket.core.exceptions import DomainError


class NotificationError(DomainError):
    """Base class for notification errors."""


class NotificationNotFoundError(NotificationError):
    """Raised when a notification does not exist or belongs to another user."""


class DuplicateLowBalanceNoticeError(NotificationError):
    """Raised when an active notice for the same threshold already exists."""
