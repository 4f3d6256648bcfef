"""SQLAlchemy implementation of the notification repository."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Sequence

from sqlalchemy import desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from leadmarket.db.models import Notification as NotificationModel
from leadmarket.modules.notifications.models import TYPE_LOW_BALANCE, Notification
from leadmarket.modules.notifications.repository import NotificationRepository


class SqlNotificationRepository(NotificationRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(
        self,
        *,
        user_id: str,
        type: str,
        title: str,
        message: str,
        metadata: dict[str, Any] | None = None,
        threshold: int | None = None,
        dedupe_key: str | None = None,
    ) -> Notification:
        model = NotificationModel(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            meta=metadata or {},
            threshold=threshold,
            dedupe_key=dedupe_key,
        )
        self.session.add(model)
        await self.session.flush()
        return self._to_domain(model)

    async def has_active(self, user_id: str, dedupe_key: str) -> bool:
        stmt = select(NotificationModel.id).where(
            NotificationModel.user_id == user_id,
            NotificationModel.dedupe_key == dedupe_key,
        )
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def supersede_low_balance(self, user_id: str, balance: int, at: datetime) -> int:
        stmt = (
            update(NotificationModel)
            .where(
                NotificationModel.user_id == user_id,
                NotificationModel.type == TYPE_LOW_BALANCE,
                NotificationModel.dedupe_key.is_not(None),
                NotificationModel.threshold < balance,
            )
            .values(dedupe_key=None, superseded_at=at)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def list_for_user(self, user_id: str, limit: int, unread_only: bool = False) -> Sequence[Notification]:
        stmt = select(NotificationModel).where(NotificationModel.user_id == user_id)
        if unread_only:
            stmt = stmt.where(NotificationModel.read.is_(False))
        stmt = (
            stmt.order_by(desc(NotificationModel.created_at), desc(NotificationModel.id))
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return [self._to_domain(row) for row in result.scalars().all()]

    async def mark_read(self, user_id: str, notification_id: str) -> bool:
        stmt = (
            update(NotificationModel)
            .where(NotificationModel.id == notification_id, NotificationModel.user_id == user_id)
            .values(read=True)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return bool(result.rowcount)

    async def mark_all_read(self, user_id: str) -> int:
        stmt = (
            update(NotificationModel)
            .where(NotificationModel.user_id == user_id, NotificationModel.read.is_(False))
            .values(read=True)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    @staticmethod
    def _to_domain(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            user_id=model.user_id,
            type=model.type,
            title=model.title,
            message=model.message,
            read=bool(model.read),
            metadata=dict(model.meta or {}),
            threshold=model.threshold,
            superseded_at=model.superseded_at,
            created_at=model.created_at,
        )
