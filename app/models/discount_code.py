"""Discount code models - codes and redemption audit trail."""

import uuid as uuid_pkg
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import field_validator, model_validator
from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, String, Uuid, func
from sqlmodel import Field, Relationship, SQLModel

from app.models.base import MerchantOwnedMixin, TimestampMixin, UUIDMixin


class DiscountType(str, Enum):
    """How a code reduces the order value."""

    FIXED = "fixed"
    PERCENTAGE = "percentage"


def normalize_code(code: str) -> str:
    """Codes are compared case-insensitively and stored upper-cased."""
    return code.strip().upper()


class DiscountRules(SQLModel):
    """Rule fields validated on create and update."""

    @model_validator(mode="after")
    def _check_rules(self):
        discount_type = getattr(self, "discount_type", None)
        value = getattr(self, "discount_value", None)
        if discount_type == DiscountType.PERCENTAGE and value is not None and value > 100:
            raise ValueError("percentage discounts cannot exceed 100")
        start_date = getattr(self, "start_date", None)
        end_date = getattr(self, "end_date", None)
        if start_date and end_date and end_date <= start_date:
            raise ValueError("end_date must be after start_date")
        return self


class DiscountCodeCreate(DiscountRules):
    """Schema for creating a discount code."""

    code: str = Field(min_length=3, max_length=50)
    description: str | None = Field(default=None, max_length=500)
    offer_id: uuid_pkg.UUID | None = None
    discount_type: DiscountType
    discount_value: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    minimum_order_value: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    max_uses: int | None = Field(default=None, gt=0)
    start_date: datetime | None = None
    end_date: datetime | None = None
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def _normalize(cls, value: str) -> str:
        return normalize_code(value)


class DiscountCodeUpdate(DiscountRules):
    """Schema for editing rule fields. Counters are not editable."""

    description: str | None = Field(default=None, max_length=500)
    discount_type: DiscountType | None = None
    discount_value: Decimal | None = Field(default=None, gt=0, max_digits=12, decimal_places=2)
    minimum_order_value: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    max_uses: int | None = Field(default=None, gt=0)
    end_date: datetime | None = None
    is_active: bool | None = None

    @field_validator("discount_type", "discount_value", "minimum_order_value", "is_active")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("cannot be null")
        return value


class DiscountCode(MerchantOwnedMixin, UUIDMixin, TimestampMixin, SQLModel, table=True):
    """
    Merchant-owned discount codes, optionally scoped to a single offer.

    Counters (usage_count, total_savings) are written only by
    DiscountOperations.redeem through a conditional UPDATE.
    """

    __tablename__ = "discount_codes"
    __table_args__ = (
        Index("ix_discount_codes_code", "code", unique=True),
        CheckConstraint("usage_count >= 0", name="ck_discount_codes_usage_count_non_negative"),
        CheckConstraint(
            "max_uses IS NULL OR usage_count <= max_uses",
            name="ck_discount_codes_usage_within_max",
        ),
    )

    code: str = Field(
        sa_column=Column(String(50), nullable=False),
    )
    description: str | None = Field(default=None, max_length=500, nullable=True)
    offer_id: uuid_pkg.UUID | None = Field(
        default=None,
        sa_column=Column(
            Uuid(),
            ForeignKey("offers.id", ondelete="SET NULL"),
            nullable=True,
            index=True,
        ),
    )

    # Rules
    discount_type: str = Field(sa_column=Column(String(20), nullable=False))
    discount_value: Decimal = Field(max_digits=12, decimal_places=2, nullable=False)
    minimum_order_value: Decimal = Field(
        default=Decimal("0"), max_digits=12, decimal_places=2, nullable=False
    )
    max_uses: int | None = Field(default=None, nullable=True)
    start_date: datetime = Field(  # type: ignore[call-overload]
        default_factory=lambda: datetime.now(UTC),
        nullable=False,
        sa_type=DateTime(timezone=True),
    )
    end_date: datetime | None = Field(  # type: ignore[call-overload]
        default=None, nullable=True, sa_type=DateTime(timezone=True)
    )
    is_active: bool = Field(default=True, nullable=False)

    # Counters
    usage_count: int = Field(default=0, nullable=False)
    total_savings: Decimal = Field(
        default=Decimal("0"), max_digits=14, decimal_places=2, nullable=False
    )

    created_by: uuid_pkg.UUID | None = Field(default=None, nullable=True)

    @property
    def remaining_uses(self) -> int | None:
        if self.max_uses is None:
            return None
        return max(0, self.max_uses - self.usage_count)


class DiscountCodeUsage(UUIDMixin, SQLModel, table=True):
    """
    Audit trail for discount code redemptions.

    One record per successful redemption.
    """

    __tablename__ = "discount_code_usages"
    __table_args__ = (Index("ix_discount_code_usages_code", "discount_code_id"),)

    discount_code_id: uuid_pkg.UUID = Field(
        sa_column=Column(
            Uuid(),
            ForeignKey("discount_codes.id", ondelete="CASCADE"),
            nullable=False,
        ),
    )
    offer_id: uuid_pkg.UUID | None = Field(default=None, nullable=True)
    order_value: Decimal = Field(max_digits=12, decimal_places=2, nullable=False)
    discount_amount: Decimal = Field(max_digits=12, decimal_places=2, nullable=False)
    redeemed_by: uuid_pkg.UUID | None = Field(default=None, nullable=True)
    redeemed_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=lambda: datetime.now(UTC),
        nullable=False,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"server_default": func.now()},
    )

    # Relationships
    discount_code: Optional["DiscountCode"] = Relationship()
