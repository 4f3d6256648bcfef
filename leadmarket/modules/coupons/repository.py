"""Repository protocol for coupons and claims."""

from __future__ import annotations

from typing import Protocol, Sequence

from .models import Coupon, CouponClaim


class CouponRepository(Protocol):
    async def get_by_code(self, code: str) -> Coupon | None:
        ...

    async def get(self, coupon_id: str) -> Coupon | None:
        ...

    async def has_claimed(self, coupon_id: str, user_id: str) -> bool:
        ...

    async def add_claim(self, *, coupon_id: str, user_id: str, coins_received: int) -> CouponClaim:
        ...

    async def consume_use(self, coupon_id: str) -> bool:
        """Increment ``current_uses`` only while the coupon is active and below ``max_uses``."""
        ...

    async def create(
        self,
        *,
        code: str,
        max_uses: int,
        coin_amount: int,
        active: bool,
        created_by_id: str,
    ) -> Coupon:
        ...

    async def list_all(self) -> Sequence[Coupon]:
        ...

    async def set_active(self, coupon_id: str, active: bool) -> Coupon | None:
        ...
