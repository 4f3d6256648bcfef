"""Pydantic schemas used across the HTTP API.

Payloads use camelCase on the wire; snake_case names are accepted on input too.
"""
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

ViewType = Literal["contact_info", "detailed_info", "full_access"]
PurchaseKind = Literal["package", "subscription"]


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class TokenData(BaseModel):
    account_id: str
    email: str
    role: str


class RegisterRequest(ApiModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str = Field(default="", max_length=100)


class LoginRequest(ApiModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class AccountResponse(ApiModel):
    id: str
    email: str
    name: str
    role: str
    is_active: bool
    lead_coins: int
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None


class AccountLoginResponse(ApiModel):
    access_token: str
    token_type: str = "bearer"
    account: AccountResponse


# Leads and entitlements


class LeadCreate(ApiModel):
    title: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    contact_number: str = Field(..., min_length=3, max_length=50)
    description: str = ""
    location: str = ""
    category_name: Optional[str] = None


class LeadResponse(ApiModel):
    id: str
    title: str
    description: str
    location: str
    category_name: Optional[str] = None
    email: Optional[str] = None
    contact_number: Optional[str] = None
    created_at: Optional[datetime] = None
    unlocked_view_types: list[str] = Field(default_factory=list)


class UnlockRequest(ApiModel):
    view_type: ViewType = "contact_info"


class UnlockResponse(ApiModel):
    lead_id: str
    view_type: str
    coins_spent: int
    remaining_coins: int
    already_unlocked: bool = False


class ViewStatusResponse(ApiModel):
    lead_id: str
    viewed: bool
    view_types: list[str]


class LeadViewResponse(ApiModel):
    id: str
    lead_id: str
    lead_title: Optional[str] = None
    view_type: str
    coins_spent: int
    viewed_at: Optional[datetime] = None


class CostSettingsResponse(ApiModel):
    contact_info_cost: int
    detailed_info_cost: int
    full_access_cost: int
    updated_at: Optional[datetime] = None


class CostSettingsUpdateRequest(ApiModel):
    contact_info_cost: Optional[int] = Field(default=None, ge=0)
    detailed_info_cost: Optional[int] = Field(default=None, ge=0)
    full_access_cost: Optional[int] = Field(default=None, ge=0)


# Ledger


class BalanceResponse(ApiModel):
    lead_coins: int


class TransactionResponse(ApiModel):
    id: str
    amount: int
    kind: str
    description: str
    admin_id: Optional[str] = None
    reference_id: Optional[str] = None
    created_at: Optional[datetime] = None


class TransactionListResponse(ApiModel):
    transactions: list[TransactionResponse]


class MonthlySpentResponse(ApiModel):
    monthly_spent: int


class SendCoinsRequest(ApiModel):
    amount: int = Field(..., gt=0)
    description: Optional[str] = Field(default=None, max_length=255)


class SendCoinsResponse(ApiModel):
    user_id: str
    amount: int
    new_balance: int


class CoinHolderResponse(ApiModel):
    user_id: str
    email: str
    name: str
    lead_coins: int
    total_spent: int


class LedgerStatsResponse(ApiModel):
    total_coins_in_circulation: int
    coins_spent_this_month: int
    lead_views_today: int
    top_users: list[CoinHolderResponse]


# Catalog and purchases


class CatalogItemResponse(ApiModel):
    id: str
    kind: str
    name: str
    description: Optional[str] = None
    lead_coins: int
    price_cents: int
    duration_days: Optional[int] = None
    active: bool


class PackageCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    lead_coins: int = Field(..., gt=0)
    price_cents: int = Field(..., gt=0)
    active: bool = True


class PlanCreate(PackageCreate):
    duration_days: int = Field(..., gt=0)


class PurchaseRequest(ApiModel):
    kind: PurchaseKind
    item_id: str


class CheckoutResponse(ApiModel):
    session_id: str
    redirect_url: str
    expires_at: Optional[datetime] = None
    purchase_id: str
    reused: bool = False


class PurchaseResponse(ApiModel):
    id: str
    kind: str
    item_id: str
    status: str
    lead_coins: int
    amount_cents: int
    payment_verified: bool
    payment_session_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class ReconcileResponse(ApiModel):
    outcome: str
    status: str
    coins_credited: int = 0
    balance: Optional[int] = None
    purchase: PurchaseResponse


class WebhookResponse(ApiModel):
    received: bool = True
    event_type: str
    outcome: str


class ExpirePendingResponse(ApiModel):
    cancelled: int
    failed: int
    credited: int
    skipped: int


class ExpireSubscriptionsResponse(ApiModel):
    expired: int


class CurrentSubscriptionResponse(ApiModel):
    subscription: Optional[PurchaseResponse] = None


# Coupons


class CouponClaimRequest(ApiModel):
    code: str = Field(..., min_length=1, max_length=32)


class CouponClaimResponse(ApiModel):
    code: str
    coins_received: int
    new_balance: int


class CouponCreate(ApiModel):
    max_uses: int = Field(..., ge=1)
    coin_amount: int = Field(..., ge=1)
    active: bool = True


class CouponUpdate(ApiModel):
    active: bool


class CouponResponse(ApiModel):
    id: str
    code: str
    max_uses: int
    current_uses: int
    coin_amount: int
    active: bool
    created_at: Optional[datetime] = None


# Notifications


class NotificationResponse(ApiModel):
    id: str
    type: str
    title: str
    message: str
    read: bool
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None


class NotificationListResponse(ApiModel):
    notifications: list[NotificationResponse]
    unread: int


class MarkAllReadResponse(ApiModel):
    updated: int
