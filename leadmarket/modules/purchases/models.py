"""Purchase domain models: catalog items, purchases and provider views of a checkout."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

KIND_PACKAGE = "package"
KIND_SUBSCRIPTION = "subscription"
PURCHASE_KINDS = frozenset({KIND_PACKAGE, KIND_SUBSCRIPTION})

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"
STATUS_ACTIVE = "active"
STATUS_FAILED = "failed"
STATUS_CANCELLED = "cancelled"
# Only an active subscription reaches this, once its end_date passes
STATUS_EXPIRED = "expired"
TERMINAL_STATUSES = frozenset({STATUS_COMPLETED, STATUS_ACTIVE, STATUS_FAILED, STATUS_CANCELLED, STATUS_EXPIRED})

# Provider-side checkout states
PAYMENT_PAID = "paid"
PAYMENT_UNPAID = "unpaid"
PAYMENT_FAILED = "failed"
PAYMENT_EXPIRED = "expired"

OUTCOME_CREDITED = "credited"
OUTCOME_ALREADY_PROCESSED = "already_processed"
OUTCOME_PENDING = "pending"
OUTCOME_FAILED = "failed"
OUTCOME_CANCELLED = "cancelled"


@dataclass(slots=True)
class CatalogItem:
    id: str
    kind: str
    name: str
    lead_coins: int
    price_cents: int
    active: bool = True
    description: Optional[str] = None
    duration_days: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass(slots=True)
class Purchase:
    id: str
    user_id: str
    kind: str
    item_id: str
    status: str
    lead_coins: int
    amount_cents: int
    payment_verified: bool = False
    payment_session_id: Optional[str] = None
    checkout_url: Optional[str] = None
    expires_at: Optional[datetime] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


@dataclass(slots=True)
class CheckoutRequest:
    user_id: str
    kind: str
    item: CatalogItem
    expires_at: datetime
    customer_email: Optional[str] = None


@dataclass(slots=True)
class CheckoutSession:
    session_id: str
    redirect_url: str
    expires_at: Optional[datetime] = None


@dataclass(slots=True)
class SessionStatus:
    session_id: str
    status: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class WebhookEvent:
    type: str
    session_id: Optional[str] = None
    status: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class CheckoutResult:
    purchase: Purchase
    session_id: str
    redirect_url: str
    expires_at: Optional[datetime]
    reused: bool = False


@dataclass(slots=True)
class ReconcileResult:
    outcome: str
    purchase: Purchase
    coins_credited: int = 0
    balance: Optional[int] = None


@dataclass(slots=True)
class WebhookResult:
    event_type: str
    outcome: str
    session_id: Optional[str] = None


@dataclass(slots=True)
class ExpirySweep:
    """Outcome counts of one stale-pending sweep."""

    cancelled: int = 0
    failed: int = 0
    credited: int = 0
    skipped: int = 0
