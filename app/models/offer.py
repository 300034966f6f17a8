"""Offer model - merchant-published deals with a validity window and moderation flags."""

import uuid as uuid_pkg
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from pydantic import field_validator, model_validator
from sqlalchemy import DateTime, Index, Text
from sqlmodel import Field, SQLModel

from app.models.base import MerchantOwnedMixin, TimestampMixin, UUIDMixin


class LinkType(str, Enum):
    """How customers reach the merchant from an offer."""

    WHATSAPP = "whatsapp"
    WEBSITE = "website"
    PHONE = "phone"


class OfferPricing(SQLModel):
    """Pricing fields shared by create/update schemas.

    When explicit prices are given they are authoritative and
    ``discount_percentage`` is informational only.
    """

    original_price: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    discounted_price: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    discount_percentage: int | None = Field(default=None, ge=0, le=100)

    @model_validator(mode="after")
    def _check_prices(self):
        if (
            self.original_price is not None
            and self.discounted_price is not None
            and self.discounted_price > self.original_price
        ):
            raise ValueError("discounted_price cannot exceed original_price")
        return self


class OfferBase(SQLModel):
    """Base fields for Offer."""

    title: str = Field(max_length=200, index=True)
    description: str = Field(sa_type=Text)
    category_id: uuid_pkg.UUID = Field(nullable=False, index=True)
    image_url: str | None = Field(default=None, max_length=1000)
    city: str | None = Field(default=None, max_length=100)
    link: str | None = Field(default=None, max_length=500)
    link_type: str = Field(default=LinkType.WHATSAPP.value, max_length=20)


class OfferCreate(OfferPricing):
    """Schema for a merchant creating an offer. Offers always start pending."""

    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    category_id: uuid_pkg.UUID
    image_url: str | None = None
    city: str | None = None
    link: str | None = None
    link_type: LinkType = LinkType.WHATSAPP
    start_date: datetime | None = None
    end_date: datetime | None = None

    @model_validator(mode="after")
    def _check_window(self):
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class OfferUpdate(OfferPricing):
    """Schema for a merchant editing offer content.

    Moderation flags are deliberately absent; they change only through
    the lifecycle operations.
    """

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    image_url: str | None = None
    city: str | None = None
    link: str | None = None
    link_type: LinkType | None = None
    end_date: datetime | None = None

    @field_validator("title", "description", "link_type")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("cannot be null")
        return value


class Offer(OfferBase, MerchantOwnedMixin, UUIDMixin, TimestampMixin, table=True):
    """A merchant-published offer.

    Status is never stored. ``app.domain.offer_lifecycle.derive_state``
    computes it from the flags below, ``rejected_at`` and the current time.
    """

    __tablename__ = "offers"
    __table_args__ = (Index("ix_offers_merchant_rejected", "merchant_id", "rejected_at"),)

    # Pricing
    original_price: Decimal | None = Field(default=None, max_digits=12, decimal_places=2)
    discounted_price: Decimal | None = Field(default=None, max_digits=12, decimal_places=2)
    discount_percentage: int | None = Field(default=None)

    # Validity window (end_date NULL = runs indefinitely)
    start_date: datetime = Field(  # type: ignore[call-overload]
        default_factory=lambda: datetime.now(UTC),
        nullable=False,
        sa_type=DateTime(timezone=True),
    )
    end_date: datetime | None = Field(  # type: ignore[call-overload]
        default=None, nullable=True, sa_type=DateTime(timezone=True)
    )

    # Moderation flags
    is_approved: bool = Field(default=False, nullable=False)
    is_active: bool = Field(default=True, nullable=False)
    is_featured: bool = Field(default=False, nullable=False)

    # Rejection record - terminal once set
    rejected_at: datetime | None = Field(  # type: ignore[call-overload]
        default=None, nullable=True, sa_type=DateTime(timezone=True)
    )
    rejection_reason: str | None = Field(default=None, max_length=500)
    reviewed_by: uuid_pkg.UUID | None = Field(default=None, nullable=True)
    reviewed_at: datetime | None = Field(  # type: ignore[call-overload]
        default=None, nullable=True, sa_type=DateTime(timezone=True)
    )
