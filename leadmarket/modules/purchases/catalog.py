"""Coin packages and subscription plans offered for purchase."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from leadmarket.core.exceptions import ForbiddenError, ValidationError
from leadmarket.infrastructure.database.transaction import atomic
from leadmarket.modules.accounts.models import Account

from .exceptions import CatalogItemNotFoundError
from .models import KIND_PACKAGE, KIND_SUBSCRIPTION, PURCHASE_KINDS, CatalogItem
from .repository import CatalogRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CatalogService:
    repository: CatalogRepository
    session: AsyncSession

    @classmethod
    def with_session(cls, session: AsyncSession) -> "CatalogService":
        from leadmarket.infrastructure.database.repositories.catalog_repository import SqlCatalogRepository

        return cls(SqlCatalogRepository(session), session)

    async def get_active_item(self, kind: str, item_id: str) -> CatalogItem:
        if kind not in PURCHASE_KINDS:
            raise ValidationError(f"Unknown purchase kind: {kind}")
        item = await self.repository.get_item(kind, item_id)
        if item is None or not item.active:
            raise CatalogItemNotFoundError(f"{kind} {item_id}")
        return item

    async def get_item(self, kind: str, item_id: str) -> CatalogItem | None:
        return await self.repository.get_item(kind, item_id)

    async def list_packages(self) -> list[CatalogItem]:
        return list(await self.repository.list_items(KIND_PACKAGE))

    async def list_plans(self) -> list[CatalogItem]:
        return list(await self.repository.list_items(KIND_SUBSCRIPTION))

    async def create_package(
        self,
        admin: Account,
        *,
        name: str,
        lead_coins: int,
        price_cents: int,
        description: str | None = None,
        active: bool = True,
    ) -> CatalogItem:
        return await self._create(
            admin,
            KIND_PACKAGE,
            name=name,
            lead_coins=lead_coins,
            price_cents=price_cents,
            description=description,
            active=active,
        )

    async def create_plan(
        self,
        admin: Account,
        *,
        name: str,
        lead_coins: int,
        price_cents: int,
        duration_days: int,
        description: str | None = None,
        active: bool = True,
    ) -> CatalogItem:
        if duration_days <= 0:
            raise ValidationError("duration_days must be positive")
        return await self._create(
            admin,
            KIND_SUBSCRIPTION,
            name=name,
            lead_coins=lead_coins,
            price_cents=price_cents,
            description=description,
            duration_days=duration_days,
            active=active,
        )

    async def _create(self, admin: Account, kind: str, **values) -> CatalogItem:
        if not admin.is_admin():
            raise ForbiddenError("Only administrators can manage the catalog")
        if values["lead_coins"] <= 0:
            raise ValidationError("lead_coins must be positive")
        if values["price_cents"] <= 0:
            raise ValidationError("price_cents must be positive")
        async with atomic(self.session):
            item = await self.repository.create_item(kind, **values)
        logger.info("Catalog %s %s created by %s", kind, item.id, admin.id)
        return item
