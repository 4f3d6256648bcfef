"""SQLAlchemy implementation of the account repository."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from leadmarket.db.models import Account as AccountModel
from leadmarket.modules.accounts.models import Account
from leadmarket.modules.accounts.repository import AccountRepository


class SqlAccountRepository(AccountRepository):
    """Account repository backed by SQLAlchemy models."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, account_id: str) -> Account | None:
        stmt = (
            select(AccountModel)
            .where(AccountModel.id == account_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return self._to_domain(result.scalar_one_or_none())

    async def get_by_email(self, email: str) -> Account | None:
        stmt = (
            select(AccountModel)
            .where(AccountModel.email == email)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return self._to_domain(result.scalar_one_or_none())

    async def create_account(
        self,
        *,
        email: str,
        name: str,
        password_hash: str,
        role: str,
        is_active: bool,
        lead_coins: int,
    ) -> Account:
        model = AccountModel(
            email=email,
            name=name,
            password_hash=password_hash,
            role=role,
            is_active=is_active,
            lead_coins=lead_coins,
        )
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_domain(model)

    async def set_last_login(self, account_id: str, timestamp: datetime) -> None:
        stmt = (
            update(AccountModel)
            .where(AccountModel.id == account_id)
            .values(last_login_at=timestamp)
            .execution_options(synchronize_session=False)
        )
        await self._session.execute(stmt)

    @staticmethod
    def _to_domain(model: AccountModel | None) -> Account | None:
        if model is None:
            return None
        return Account(
            id=str(model.id),
            email=model.email,
            name=model.name or "",
            role=model.role or "user",
            is_active=bool(model.is_active),
            lead_coins=int(model.lead_coins or 0),
            password_hash=model.password_hash,
            created_at=model.created_at,
            updated_at=model.updated_at,
            last_login_at=model.last_login_at,
        )
