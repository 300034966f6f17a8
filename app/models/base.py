import uuid as uuid_pkg
from datetime import UTC, datetime

from sqlalchemy import DateTime, func
from sqlmodel import Field, SQLModel


class UUIDMixin(SQLModel):
    """Mixin providing UUID primary key."""

    id: uuid_pkg.UUID = Field(
        default_factory=uuid_pkg.uuid4,
        primary_key=True,
        index=True,
        nullable=False,
    )


class TimestampMixin(SQLModel):
    """Mixin providing created_at and updated_at timestamps.

    Columns are TIMESTAMP WITH TIME ZONE; values are always written in UTC.
    SQLModel Field uses sa_type to override the default DateTime mapping.
    """

    created_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=lambda: datetime.now(UTC),
        nullable=False,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"server_default": func.now()},
    )
    updated_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=lambda: datetime.now(UTC),
        nullable=False,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"server_default": func.now()},
    )


class MerchantOwnedMixin(SQLModel):
    """Mixin for entities owned by a merchant account.

    Merchant accounts live in the identity service; the id is opaque here.
    """

    merchant_id: uuid_pkg.UUID = Field(nullable=False, index=True)
