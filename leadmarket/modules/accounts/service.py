"""Domain services for account management."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from leadmarket.core.config import get_settings
from leadmarket.core.crypto import hash_password, verify_password
from leadmarket.infrastructure.database.transaction import atomic

from .exceptions import AccountAlreadyExistsError
from .models import Account, AccountCreateInput
from .repository import AccountRepository

logger = logging.getLogger(__name__)


class AccountService:
    """Encapsulates core account use cases."""

    def __init__(self, repository: AccountRepository, session: AsyncSession) -> None:
        self._repository = repository
        self._session = session

    @classmethod
    def with_session(cls, session: AsyncSession) -> "AccountService":
        from leadmarket.infrastructure.database.repositories.account_repository import SqlAccountRepository

        return cls(SqlAccountRepository(session), session)

    async def get_by_id(self, account_id: str) -> Account | None:
        return await self._repository.get_by_id(account_id)

    async def get_by_email(self, email: str) -> Account | None:
        return await self._repository.get_by_email(_normalize_email(email))

    async def authenticate(self, email: str, password: str) -> Account | None:
        account = await self._repository.get_by_email(_normalize_email(email))
        if account is None or not account.is_active:
            return None
        if not verify_password(password, account.password_hash):
            return None
        return account

    async def create_account(self, payload: AccountCreateInput) -> Account:
        email = _normalize_email(payload.email)
        existing = await self._repository.get_by_email(email)
        if existing is not None:
            raise AccountAlreadyExistsError(f"Email already registered: {email}")

        lead_coins = payload.lead_coins
        if lead_coins is None:
            lead_coins = get_settings().ledger.initial_lead_coins

        async with atomic(self._session):
            try:
                account = await self._repository.create_account(
                    email=email,
                    name=payload.name,
                    password_hash=hash_password(payload.password),
                    role=payload.role,
                    is_active=payload.is_active,
                    lead_coins=lead_coins,
                )
            except IntegrityError as exc:
                raise AccountAlreadyExistsError(f"Email already registered: {email}") from exc
        logger.info("Account %s created for %s with %d LeadCoins", account.id, email, lead_coins)
        return account

    async def set_last_login(self, account_id: str) -> None:
        async with atomic(self._session):
            await self._repository.set_last_login(account_id, datetime.now(timezone.utc))


def _normalize_email(email: str) -> str:
    return email.strip().lower()
