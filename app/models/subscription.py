"""Subscription models - plan catalogue and merchant subscriptions."""

import uuid as uuid_pkg
from datetime import datetime
from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Uuid, text
from sqlmodel import Field, SQLModel

from app.models.base import MerchantOwnedMixin, TimestampMixin, UUIDMixin


class BillingPeriod(str, Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


class SubscriptionStatus(str, Enum):
    """Subscription lifecycle states."""

    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class SubscriptionPlanBase(SQLModel):
    """Base fields for SubscriptionPlan."""

    name: str = Field(max_length=100)
    description: str | None = Field(default=None, max_length=500)
    price: int = Field(default=0, ge=0)  # minor units (halalas)
    currency: str = Field(default="SAR", max_length=3)
    billing_period: str = Field(default=BillingPeriod.MONTHLY.value, max_length=20)
    offer_limit: int | None = Field(default=None, gt=0)  # None = unlimited
    is_active: bool = Field(default=True)
    sort_order: int = Field(default=0)
    is_popular: bool = Field(default=False)


class SubscriptionPlan(SubscriptionPlanBase, UUIDMixin, TimestampMixin, table=True):
    """A purchasable plan. ``offer_limit`` caps a merchant's published offers."""

    __tablename__ = "subscription_plans"

    tier: str = Field(
        sa_column=Column(String(50), nullable=False, unique=True),
    )


class SubscriptionPlanCreate(SubscriptionPlanBase):
    """Schema for creating a plan."""

    tier: str = Field(min_length=1, max_length=50)


class SubscriptionPlanUpdate(SQLModel):
    """Schema for updating a plan. Existing subscriptions keep referencing it."""

    name: str | None = None
    description: str | None = None
    price: int | None = Field(default=None, ge=0)
    offer_limit: int | None = Field(default=None, gt=0)
    is_active: bool | None = None
    sort_order: int | None = None
    is_popular: bool | None = None


class MerchantSubscription(MerchantOwnedMixin, UUIDMixin, TimestampMixin, SQLModel, table=True):
    """
    A merchant's subscription to a plan.

    Records are never re-pointed at another plan: a plan change closes the
    current record and creates a new one, keeping a billing history.
    At most one record per merchant may have stored status ACTIVE.
    """

    __tablename__ = "merchant_subscriptions"
    __table_args__ = (
        Index(
            "uq_merchant_subscriptions_one_active",
            "merchant_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )

    plan_id: uuid_pkg.UUID = Field(
        sa_column=Column(
            Uuid(),
            ForeignKey("subscription_plans.id", ondelete="RESTRICT"),
            nullable=False,
            index=True,
        ),
    )
    status: str = Field(
        default=SubscriptionStatus.ACTIVE.value,
        sa_column=Column(
            String(20),
            nullable=False,
            server_default=SubscriptionStatus.ACTIVE.value,
        ),
    )
    start_date: datetime = Field(  # type: ignore[call-overload]
        nullable=False, sa_type=DateTime(timezone=True)
    )
    end_date: datetime | None = Field(  # type: ignore[call-overload]
        default=None, nullable=True, sa_type=DateTime(timezone=True)
    )
    auto_renew: bool = Field(default=True, nullable=False)
    payment_method: str | None = Field(default=None, max_length=50)
    cancelled_at: datetime | None = Field(  # type: ignore[call-overload]
        default=None, nullable=True, sa_type=DateTime(timezone=True)
    )
    cancel_reason: str | None = Field(default=None, max_length=500)
