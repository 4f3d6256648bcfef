"""Entitlement engine public API."""

from .exceptions import EntitlementError, InvalidViewTypeError
from .models import VIEW_TYPES, CostSettings, CostSettingsUpdate, LeadViewRecord, UnlockResult
from .service import EntitlementService

__all__ = [
    "EntitlementService",
    "EntitlementError",
    "InvalidViewTypeError",
    "CostSettings",
    "CostSettingsUpdate",
    "LeadViewRecord",
    "UnlockResult",
    "VIEW_TYPES",
]
