"""Coupon redemption exceptions."""

from leadmarket.core.exceptions import DomainError


class CouponError(DomainError):
    """Base class for coupon errors."""


class CouponNotFoundError(CouponError):
    """Raised when no coupon matches the code or id."""


class CouponInactiveError(CouponError):
    """Raised when the coupon has been deactivated."""


class CouponExhaustedError(CouponError):
    """Raised when every use of the coupon has been claimed."""


class AlreadyClaimedError(CouponError):
    """Raised when the user has already claimed this coupon."""


class CouponCodeGenerationError(CouponError):
    """Raised when no unused code could be generated."""
