"""Entitlement engine: pay LeadCoins to unlock a lead tier."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from leadmarket.core.exceptions import ForbiddenError, ValidationError
from leadmarket.infrastructure.database.transaction import atomic
from leadmarket.modules.accounts.models import Account
from leadmarket.modules.leads.service import LeadService
from leadmarket.modules.ledger.exceptions import InsufficientBalanceError
from leadmarket.modules.ledger.service import LedgerService
from leadmarket.modules.notifications.mailer import LowBalanceMailer
from leadmarket.modules.notifications.service import NotificationService

from .exceptions import InvalidViewTypeError, ViewAlreadyRecordedError
from .models import VIEW_LABELS, VIEW_TYPES, CostSettings, CostSettingsUpdate, LeadViewRecord, UnlockResult
from .repository import CostSettingsRepository, LeadViewRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EntitlementService:
    views: LeadViewRepository
    costs: CostSettingsRepository
    leads: LeadService
    ledger: LedgerService
    notifications: NotificationService
    session: AsyncSession

    @classmethod
    def with_session(cls, session: AsyncSession, mailer: Optional[LowBalanceMailer] = None) -> "EntitlementService":
        from leadmarket.infrastructure.database.repositories.lead_view_repository import SqlLeadViewRepository
        from leadmarket.infrastructure.database.repositories.settings_repository import SqlCostSettingsRepository

        return cls(
            views=SqlLeadViewRepository(session),
            costs=SqlCostSettingsRepository(session),
            leads=LeadService.with_session(session),
            ledger=LedgerService.with_session(session),
            notifications=NotificationService.with_session(session, mailer),
            session=session,
        )

    async def unlock_lead(self, user_id: str, lead_id: str, view_type: str) -> UnlockResult:
        if view_type not in VIEW_TYPES:
            raise InvalidViewTypeError(f"Unsupported view type: {view_type}")

        lead = await self.leads.get_lead(lead_id)
        if view_type in await self.views.unlocked_tiers(user_id, lead_id):
            return await self._already_unlocked(user_id, lead_id, view_type)

        cost = (await self.get_settings()).cost_for(view_type)
        try:
            async with atomic(self.session):
                change = await self.ledger.debit(
                    user_id,
                    cost,
                    description=f"Viewed {VIEW_LABELS[view_type]} for lead: {lead.title}",
                    reference_id=lead_id,
                )
                try:
                    await self.views.record(
                        user_id=user_id,
                        lead_id=lead_id,
                        view_type=view_type,
                        coins_spent=cost,
                    )
                except IntegrityError as exc:
                    raise ViewAlreadyRecordedError(lead_id) from exc
        except ViewAlreadyRecordedError:
            logger.info("Concurrent unlock of %s/%s by %s rolled back", lead_id, view_type, user_id)
            return await self._already_unlocked(user_id, lead_id, view_type)
        except InsufficientBalanceError:
            # a concurrent request for the same tier may have spent the coins
            if view_type in await self.views.unlocked_tiers(user_id, lead_id):
                return await self._already_unlocked(user_id, lead_id, view_type)
            raise

        logger.info("User %s unlocked %s of lead %s for %d LeadCoins", user_id, view_type, lead_id, cost)
        await self.notifications.check_low_balance(user_id, change.new_balance, change.previous_balance)
        return UnlockResult(
            lead_id=lead_id,
            view_type=view_type,
            coins_spent=cost,
            remaining_coins=change.new_balance,
        )

    async def _already_unlocked(self, user_id: str, lead_id: str, view_type: str) -> UnlockResult:
        return UnlockResult(
            lead_id=lead_id,
            view_type=view_type,
            coins_spent=0,
            remaining_coins=await self.ledger.get_balance(user_id),
            already_unlocked=True,
        )

    async def has_viewed(self, user_id: str, lead_id: str) -> set[str]:
        """Tiers of ``lead_id`` the user has already paid for."""
        return await self.views.unlocked_tiers(user_id, lead_id)

    async def list_views(self, user_id: str, limit: int = 50, offset: int = 0) -> list[LeadViewRecord]:
        return list(await self.views.list_for_user(user_id, limit, offset))

    async def get_settings(self) -> CostSettings:
        return await self.costs.get() or CostSettings()

    async def update_settings(self, admin: Account, update: CostSettingsUpdate) -> CostSettings:
        if not admin.is_admin():
            raise ForbiddenError("Only administrators can change LeadCoin costs")
        current = await self.get_settings()
        for name in ("contact_info_cost", "detailed_info_cost", "full_access_cost"):
            value = getattr(update, name)
            if value is None:
                continue
            if value < 0:
                raise ValidationError(f"{name} must not be negative")
            setattr(current, name, value)
        async with atomic(self.session):
            saved = await self.costs.save(current)
        logger.info(
            "LeadCoin costs updated by %s: contact=%d detailed=%d full=%d",
            admin.id,
            saved.contact_info_cost,
            saved.detailed_info_cost,
            saved.full_access_cost,
        )
        return saved
