"""Domain modules and their public exports."""

from . import accounts, notifications, ledger, leads, entitlements, purchases, coupons

__all__ = [
    "accounts",
    "notifications",
    "ledger",
    "leads",
    "entitlements",
    "purchases",
    "coupons",
]
