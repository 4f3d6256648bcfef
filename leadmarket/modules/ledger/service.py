"""LeadCoin ledger service.

``credit`` and ``debit`` are the only two balance primitives. Neither commits:
callers wrap them in ``atomic(session)`` together with whatever else belongs
to the same unit of work.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from leadmarket.core.exceptions import ForbiddenError, ValidationError
from leadmarket.infrastructure.database.transaction import atomic
from leadmarket.modules.accounts.exceptions import AccountNotFoundError
from leadmarket.modules.accounts.models import Account
from leadmarket.modules.notifications.models import TYPE_COIN_RECEIVED
from leadmarket.modules.notifications.service import NotificationService

from .exceptions import InsufficientBalanceError
from .models import KIND_ADMIN_TOPUP, KIND_SPENT, TRANSACTION_KINDS, BalanceChange, LedgerEntry, LedgerStats
from .repository import LedgerRepository

logger = logging.getLogger(__name__)

TOP_HOLDERS_LIMIT = 10


def month_start(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def day_start(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


@dataclass(slots=True)
class LedgerService:
    repository: LedgerRepository
    session: AsyncSession

    @classmethod
    def with_session(cls, session: AsyncSession) -> "LedgerService":
        from leadmarket.infrastructure.database.repositories.ledger_repository import SqlLedgerRepository

        return cls(SqlLedgerRepository(session), session)

    async def credit(
        self,
        user_id: str,
        amount: int,
        *,
        kind: str,
        description: str,
        admin_id: Optional[str] = None,
        reference_id: Optional[str] = None,
    ) -> BalanceChange:
        if amount <= 0:
            raise ValidationError("Credit amount must be positive")
        if kind not in TRANSACTION_KINDS or kind == KIND_SPENT:
            raise ValidationError(f"Invalid credit kind: {kind}")

        new_balance = await self.repository.increment(user_id, amount)
        if new_balance is None:
            raise AccountNotFoundError(user_id)
        entry = await self.repository.append(
            user_id=user_id,
            amount=amount,
            kind=kind,
            description=description,
            admin_id=admin_id,
            reference_id=reference_id,
        )
        logger.info("Credited %d LeadCoins to %s (%s), balance %d", amount, user_id, kind, new_balance)
        return BalanceChange(
            user_id=user_id,
            amount=amount,
            previous_balance=new_balance - amount,
            new_balance=new_balance,
            entry=entry,
        )

    async def debit(
        self,
        user_id: str,
        amount: int,
        *,
        description: str,
        reference_id: Optional[str] = None,
    ) -> BalanceChange:
        if amount < 0:
            raise ValidationError("Debit amount must not be negative")

        new_balance = await self.repository.decrement_if_sufficient(user_id, amount)
        if new_balance is None:
            available = await self.repository.get_balance(user_id)
            if available is None:
                raise AccountNotFoundError(user_id)
            raise InsufficientBalanceError(required=amount, available=available)
        entry = await self.repository.append(
            user_id=user_id,
            amount=-amount,
            kind=KIND_SPENT,
            description=description,
            reference_id=reference_id,
        )
        logger.info("Debited %d LeadCoins from %s, balance %d", amount, user_id, new_balance)
        return BalanceChange(
            user_id=user_id,
            amount=-amount,
            previous_balance=new_balance + amount,
            new_balance=new_balance,
            entry=entry,
        )

    async def get_balance(self, user_id: str) -> int:
        balance = await self.repository.get_balance(user_id)
        if balance is None:
            raise AccountNotFoundError(user_id)
        return balance

    async def list_transactions(self, user_id: str, limit: int = 50, offset: int = 0) -> list[LedgerEntry]:
        return list(await self.repository.list_transactions(user_id, limit, offset))

    async def monthly_spent(self, user_id: str, now: datetime | None = None) -> int:
        now = now or datetime.now(timezone.utc)
        return await self.repository.sum_spent_since(month_start(now), user_id=user_id)

    async def send_coins(
        self,
        admin: Account,
        user_id: str,
        amount: int,
        description: str | None = None,
    ) -> BalanceChange:
        """Admin top-up: credit, log row and notice in one commit."""
        if not admin.is_admin():
            raise ForbiddenError("Only administrators can send LeadCoins")
        if amount <= 0:
            raise ValidationError("Amount must be positive")

        description = description or f"Admin top-up of {amount} LeadCoins"
        notifications = NotificationService.with_session(self.session)
        async with atomic(self.session):
            change = await self.credit(
                user_id,
                amount,
                kind=KIND_ADMIN_TOPUP,
                description=description,
                admin_id=admin.id,
            )
            await notifications.record_credit(
                user_id=user_id,
                new_balance=change.new_balance,
                type=TYPE_COIN_RECEIVED,
                title="LeadCoins Received",
                message=f"You received {amount} LeadCoins from an administrator.",
                metadata={"amount": amount, "adminId": admin.id, "description": description},
            )
        logger.info("Admin %s sent %d LeadCoins to %s", admin.id, amount, user_id)
        return change

    async def stats(self, now: datetime | None = None) -> LedgerStats:
        now = now or datetime.now(timezone.utc)
        return LedgerStats(
            total_coins_in_circulation=await self.repository.total_in_circulation(),
            coins_spent_this_month=await self.repository.sum_spent_since(month_start(now)),
            lead_views_today=await self.repository.count_views_since(day_start(now)),
            top_users=list(await self.repository.top_holders(TOP_HOLDERS_LIMIT)),
        )
