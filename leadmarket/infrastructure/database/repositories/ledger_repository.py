"""SQLAlchemy implementation of the LeadCoin ledger."""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from sqlalchemy import desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from leadmarket.db.models import Account as AccountModel
from leadmarket.db.models import CoinTransaction as CoinTransactionModel
from leadmarket.db.models import LeadView as LeadViewModel
from leadmarket.modules.ledger.models import KIND_SPENT, CoinHolder, LedgerEntry
from leadmarket.modules.ledger.repository import LedgerRepository


class SqlLedgerRepository(LedgerRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def increment(self, user_id: str, amount: int) -> int | None:
        stmt = (
            update(AccountModel)
            .where(AccountModel.id == user_id)
            .values(lead_coins=AccountModel.lead_coins + amount)
            .returning(AccountModel.lead_coins)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def decrement_if_sufficient(self, user_id: str, amount: int) -> int | None:
        stmt = (
            update(AccountModel)
            .where(AccountModel.id == user_id, AccountModel.lead_coins >= amount)
            .values(lead_coins=AccountModel.lead_coins - amount)
            .returning(AccountModel.lead_coins)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_balance(self, user_id: str) -> int | None:
        stmt = select(AccountModel.lead_coins).where(AccountModel.id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def append(
        self,
        *,
        user_id: str,
        amount: int,
        kind: str,
        description: str,
        admin_id: str | None = None,
        reference_id: str | None = None,
    ) -> LedgerEntry:
        tx = CoinTransactionModel(
            user_id=user_id,
            admin_id=admin_id,
            amount=amount,
            kind=kind,
            description=description,
            reference_id=reference_id,
        )
        self.session.add(tx)
        await self.session.flush()
        return self._to_entry(tx)

    async def list_transactions(self, user_id: str, limit: int, offset: int) -> Sequence[LedgerEntry]:
        stmt = (
            select(CoinTransactionModel)
            .where(CoinTransactionModel.user_id == user_id)
            .order_by(desc(CoinTransactionModel.created_at), desc(CoinTransactionModel.id))
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [self._to_entry(row) for row in result.scalars().all()]

    async def sum_spent_since(self, since: datetime, user_id: str | None = None) -> int:
        stmt = select(func.coalesce(func.sum(CoinTransactionModel.amount), 0)).where(
            CoinTransactionModel.kind == KIND_SPENT,
            CoinTransactionModel.created_at >= since,
        )
        if user_id is not None:
            stmt = stmt.where(CoinTransactionModel.user_id == user_id)
        result = await self.session.execute(stmt)
        # spent rows are stored negative
        return -int(result.scalar_one())

    async def total_in_circulation(self) -> int:
        result = await self.session.execute(select(func.coalesce(func.sum(AccountModel.lead_coins), 0)))
        return int(result.scalar_one())

    async def count_views_since(self, since: datetime) -> int:
        stmt = select(func.count(LeadViewModel.id)).where(LeadViewModel.viewed_at >= since)
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def top_holders(self, limit: int) -> Sequence[CoinHolder]:
        spent = (
            select(
                CoinTransactionModel.user_id.label("user_id"),
                func.sum(CoinTransactionModel.amount).label("spent"),
            )
            .where(CoinTransactionModel.kind == KIND_SPENT)
            .group_by(CoinTransactionModel.user_id)
            .subquery()
        )
        stmt = (
            select(
                AccountModel.id,
                AccountModel.email,
                AccountModel.name,
                AccountModel.lead_coins,
                func.coalesce(spent.c.spent, 0),
            )
            .outerjoin(spent, spent.c.user_id == AccountModel.id)
            .order_by(desc(AccountModel.lead_coins), AccountModel.email)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [
            CoinHolder(
                user_id=row[0],
                email=row[1],
                name=row[2] or "",
                lead_coins=int(row[3]),
                total_spent=-int(row[4]),
            )
            for row in result.all()
        ]

    @staticmethod
    def _to_entry(model: CoinTransactionModel) -> LedgerEntry:
        return LedgerEntry(
            id=model.id,
            user_id=model.user_id,
            amount=model.amount,
            kind=model.kind,
            description=model.description,
            admin_id=model.admin_id,
            reference_id=model.reference_id,
            created_at=model.created_at,
        )
