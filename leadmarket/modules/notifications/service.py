"""Balance notifications and the low-balance trigger."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from leadmarket.core.config import LedgerSettings, get_settings
from leadmarket.infrastructure.database.transaction import atomic
from leadmarket.modules.accounts.repository import AccountRepository

from .exceptions import DuplicateLowBalanceNoticeError, NotificationNotFoundError
from .mailer import LowBalanceMailer
from .models import TYPE_LOW_BALANCE, Notification, crossed_threshold, low_balance_key
from .repository import NotificationRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class NotificationService:
    repository: NotificationRepository
    accounts: AccountRepository
    session: AsyncSession
    mailer: Optional[LowBalanceMailer] = None
    settings: LedgerSettings = field(default_factory=lambda: get_settings().ledger)

    @classmethod
    def with_session(cls, session: AsyncSession, mailer: LowBalanceMailer | None = None) -> "NotificationService":
        from leadmarket.infrastructure.database.repositories.account_repository import SqlAccountRepository
        from leadmarket.infrastructure.database.repositories.notification_repository import SqlNotificationRepository

        return cls(SqlNotificationRepository(session), SqlAccountRepository(session), session, mailer)

    async def check_low_balance(
        self,
        user_id: str,
        new_balance: int,
        previous_balance: int | None = None,
    ) -> Notification | None:
        """Create a low-balance notice when the balance crossed a threshold.

        Runs after the balance change has committed. Failures are logged and
        never propagate to the caller.
        """
        try:
            return await self._check_low_balance(user_id, new_balance, previous_balance)
        except Exception:
            logger.exception("Low balance check failed for user %s", user_id)
            return None

    async def _check_low_balance(
        self,
        user_id: str,
        new_balance: int,
        previous_balance: int | None,
    ) -> Notification | None:
        threshold = crossed_threshold(self.settings.low_balance_thresholds, new_balance, previous_balance)
        if threshold is None:
            return None

        dedupe_key = low_balance_key(threshold)
        if await self.repository.has_active(user_id, dedupe_key):
            logger.debug("Low balance notice %s already active for %s", dedupe_key, user_id)
            return None

        if threshold == 0:
            title = "No Coins Remaining"
            message = (
                "Your LeadCoin balance has reached zero. "
                "Purchase more coins to continue viewing lead details."
            )
        else:
            title = "Low Coin Balance Alert"
            message = (
                f"Your LeadCoin balance is running low ({new_balance} coins remaining). "
                "Consider purchasing more coins to continue viewing leads."
            )

        try:
            async with atomic(self.session):
                try:
                    notification = await self.repository.create(
                        user_id=user_id,
                        type=TYPE_LOW_BALANCE,
                        title=title,
                        message=message,
                        metadata={"threshold": threshold, "currentBalance": new_balance},
                        threshold=threshold,
                        dedupe_key=dedupe_key,
                    )
                except IntegrityError as exc:
                    raise DuplicateLowBalanceNoticeError(dedupe_key) from exc
        except DuplicateLowBalanceNoticeError:
            logger.debug("Concurrent low balance notice %s for %s", dedupe_key, user_id)
            return None

        logger.info("Low balance notice at threshold %d for user %s (balance %d)", threshold, user_id, new_balance)

        if threshold <= self.settings.email_threshold and self.mailer is not None:
            await self._send_alert(user_id, new_balance)
        return notification

    async def _send_alert(self, user_id: str, balance: int) -> None:
        try:
            account = await self.accounts.get_by_id(user_id)
            if account is None:
                return
            await self.mailer.send_low_balance_alert(account.email, account.name, balance)
        except Exception:
            logger.exception("Failed to send low balance email to user %s", user_id)

    async def record_credit(
        self,
        *,
        user_id: str,
        new_balance: int,
        type: str,
        title: str,
        message: str,
        metadata: dict[str, Any] | None = None,
    ) -> Notification:
        """Record a credit notice inside the caller's transaction.

        Low-balance notices whose threshold is now below the balance are
        superseded so that a later drop notifies again.
        """
        notification = await self.repository.create(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            metadata=metadata or {},
        )
        superseded = await self.repository.supersede_low_balance(user_id, new_balance, datetime.now(timezone.utc))
        if superseded:
            logger.debug("Superseded %d low balance notices for %s", superseded, user_id)
        return notification

    async def list_for_user(self, user_id: str, limit: int = 20, unread_only: bool = False) -> list[Notification]:
        return list(await self.repository.list_for_user(user_id, limit, unread_only))

    async def mark_read(self, user_id: str, notification_id: str) -> None:
        async with atomic(self.session):
            updated = await self.repository.mark_read(user_id, notification_id)
            if not updated:
                raise NotificationNotFoundError(notification_id)

    async def mark_all_read(self, user_id: str) -> int:
        async with atomic(self.session):
            return await self.repository.mark_all_read(user_id)
