"""Coupon redemption public API."""

from .exceptions import (
    AlreadyClaimedError,
    CouponError,
    CouponExhaustedError,
    CouponInactiveError,
    CouponNotFoundError,
)
from .models import ClaimResult, Coupon, CouponClaim
from .service import CouponService, generate_code

__all__ = [
    "CouponService",
    "Coupon",
    "CouponClaim",
    "ClaimResult",
    "generate_code",
    "CouponError",
    "CouponNotFoundError",
    "CouponInactiveError",
    "CouponExhaustedError",
    "AlreadyClaimedError",
]
