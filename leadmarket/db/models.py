"""SQLAlchemy ORM models."""
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from leadmarket.infrastructure.database.base import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Account(Base):
    __tablename__ = "accounts"
    __table_args__ = (CheckConstraint("lead_coins >= 0", name="ck_accounts_lead_coins_non_negative"),)

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False, default="")
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="user")  # user, subadmin, admin
    is_active = Column(Boolean, nullable=False, default=True)
    lead_coins = Column(Integer, nullable=False, default=20)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    last_login_at = Column(DateTime(timezone=True))

    transactions = relationship("CoinTransaction", back_populates="account", foreign_keys="CoinTransaction.user_id")


class Lead(Base):
    __tablename__ = "leads"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    location = Column(String(255), nullable=False, default="")
    category_name = Column(String(100))
    email = Column(String(255), nullable=False)
    contact_number = Column(String(50), nullable=False)
    creator_id = Column(String(36), ForeignKey("accounts.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class LeadCoinSettings(Base):
    __tablename__ = "lead_coin_settings"

    id = Column(Integer, primary_key=True, default=1)
    contact_info_cost = Column(Integer, nullable=False, default=5)
    detailed_info_cost = Column(Integer, nullable=False, default=10)
    full_access_cost = Column(Integer, nullable=False, default=15)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class CoinTransaction(Base):
    __tablename__ = "coin_transactions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    admin_id = Column(String(36), ForeignKey("accounts.id"), nullable=True)
    amount = Column(Integer, nullable=False)  # signed: credit > 0, debit < 0
    kind = Column(String(20), nullable=False)  # purchase, admin_topup, spent, refund
    description = Column(String(255), nullable=False)
    reference_id = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    account = relationship("Account", back_populates="transactions", foreign_keys=[user_id])


class LeadView(Base):
    __tablename__ = "lead_views"
    __table_args__ = (UniqueConstraint("user_id", "lead_id", "view_type", name="uq_lead_views_user_lead_tier"),)

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    lead_id = Column(String(36), ForeignKey("leads.id", ondelete="CASCADE"), nullable=False, index=True)
    coins_spent = Column(Integer, nullable=False)
    view_type = Column(String(20), nullable=False)  # contact_info, detailed_info, full_access
    viewed_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    lead = relationship("Lead")


class CoinPackage(Base):
    __tablename__ = "coin_packages"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    lead_coins = Column(Integer, nullable=False)
    price_cents = Column(Integer, nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class SubscriptionPlan(Base):
    __tablename__ = "subscription_plans"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    lead_coins = Column(Integer, nullable=False)
    price_cents = Column(Integer, nullable=False)
    duration_days = Column(Integer, nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Purchase(Base):
    __tablename__ = "purchases"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    kind = Column(String(20), nullable=False)  # package, subscription
    item_id = Column(String(36), nullable=False)
    payment_session_id = Column(String(255), unique=True, nullable=True)
    checkout_url = Column(Text)
    status = Column(String(20), nullable=False, default="pending")  # pending, completed, active, failed, cancelled, expired
    payment_verified = Column(Boolean, nullable=False, default=False)
    lead_coins = Column(Integer, nullable=False)
    amount_cents = Column(Integer, nullable=False)
    expires_at = Column(DateTime(timezone=True))
    start_date = Column(DateTime(timezone=True))
    end_date = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    completed_at = Column(DateTime(timezone=True))


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (UniqueConstraint("user_id", "dedupe_key", name="uq_notifications_user_dedupe"),)

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(30), nullable=False)  # coin_received, low_balance, subscription_update, system
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    meta = Column("metadata", JSON, nullable=False, default=dict)
    threshold = Column(Integer, nullable=True)
    dedupe_key = Column(String(64), nullable=True)
    superseded_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class Coupon(Base):
    __tablename__ = "coupons"
    __table_args__ = (
        CheckConstraint("current_uses <= max_uses", name="ck_coupons_uses_within_capacity"),
        CheckConstraint("max_uses >= 1", name="ck_coupons_max_uses_positive"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    code = Column(String(32), unique=True, nullable=False, index=True)
    max_uses = Column(Integer, nullable=False)
    current_uses = Column(Integer, nullable=False, default=0)
    coin_amount = Column(Integer, nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    created_by_id = Column(String(36), ForeignKey("accounts.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    claims = relationship("CouponClaim", back_populates="coupon", cascade="all, delete-orphan")


class CouponClaim(Base):
    __tablename__ = "coupon_claims"
    __table_args__ = (UniqueConstraint("coupon_id", "user_id", name="uq_coupon_claims_coupon_user"),)

    id = Column(String(36), primary_key=True, default=generate_uuid)
    coupon_id = Column(String(36), ForeignKey("coupons.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    coins_received = Column(Integer, nullable=False)
    claimed_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    coupon = relationship("Coupon", back_populates="claims")
