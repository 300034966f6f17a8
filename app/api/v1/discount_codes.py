"""Discount code endpoints - merchant management and checkout."""

import uuid as uuid_pkg
from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import CurrentActor, DbSession, MerchantActor, Now
from app.api.v1.offers import iso, money
from app.core.exceptions import CodeRejectedError, DuplicateError, NotFoundError
from app.domain import discount_ops, offer_ops
from app.domain.discount_rules import Accepted, OrderContext, round2
from app.models.discount_code import DiscountCode, DiscountCodeCreate, DiscountCodeUsage

router = APIRouter(prefix="/discount-codes", tags=["discount codes"])


class CodeApplication(BaseModel):
    """A code applied to an order at checkout."""

    code: str = Field(min_length=1, max_length=50)
    order_value: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    offer_id: uuid_pkg.UUID | None = None


def serialize_code(code: DiscountCode) -> dict:
    return {
        "id": str(code.id),
        "code": code.code,
        "description": code.description,
        "merchant_id": str(code.merchant_id),
        "offer_id": str(code.offer_id) if code.offer_id else None,
        "discount_type": code.discount_type,
        "discount_value": money(code.discount_value),
        "minimum_order_value": money(code.minimum_order_value),
        "max_uses": code.max_uses,
        "usage_count": code.usage_count,
        "remaining_uses": code.remaining_uses,
        "total_savings": money(code.total_savings),
        "start_date": iso(code.start_date),
        "end_date": iso(code.end_date),
        "is_active": code.is_active,
        "created_at": iso(code.created_at),
    }


def serialize_usage(usage: DiscountCodeUsage) -> dict:
    return {
        "id": str(usage.id),
        "discount_code_id": str(usage.discount_code_id),
        "offer_id": str(usage.offer_id) if usage.offer_id else None,
        "order_value": money(usage.order_value),
        "discount_amount": money(usage.discount_amount),
        "redeemed_by": str(usage.redeemed_by) if usage.redeemed_by else None,
        "redeemed_at": iso(usage.redeemed_at),
    }


async def create_code_for_merchant(
    db: AsyncSession,
    data: DiscountCodeCreate,
    merchant_id: uuid_pkg.UUID,
    created_by: uuid_pkg.UUID,
    now: datetime,
) -> DiscountCode:
    """Create a code, checking the scoped offer belongs to the merchant."""
    if data.offer_id is not None:
        offer = await offer_ops.get_by_merchant(db, merchant_id, data.offer_id)
        if not offer:
            raise NotFoundError("Offer")

    code = await discount_ops.create(
        db, data.model_dump(), merchant_id=merchant_id, now=now, created_by=created_by
    )
    if code is None:
        raise DuplicateError("Discount code", "code")
    return code


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_discount_code(
    data: DiscountCodeCreate,
    actor: MerchantActor,
    db: DbSession,
    now: Now,
):
    """Create a discount code for one of the merchant's offers or store-wide."""
    code = await create_code_for_merchant(
        db, data, merchant_id=actor.id, created_by=actor.id, now=now
    )
    return serialize_code(code)


@router.get("", response_model=list[dict])
async def list_my_discount_codes(
    actor: MerchantActor,
    db: DbSession,
    skip: int = 0,
    limit: int = 100,
):
    """List the calling merchant's codes with their counters."""
    codes = await discount_ops.get_multi_by_merchant(db, actor.id, skip=skip, limit=limit)
    return [serialize_code(c) for c in codes]


@router.get("/{code_id}/usages", response_model=list[dict])
async def list_code_usages(
    code_id: uuid_pkg.UUID,
    actor: MerchantActor,
    db: DbSession,
    skip: int = 0,
    limit: int = 100,
):
    """Redemption history for one of the merchant's codes."""
    code = await discount_ops.get_by_merchant(db, actor.id, code_id)
    if not code:
        raise NotFoundError("Discount code")
    usages = await discount_ops.list_usages(db, code.id, skip=skip, limit=limit)
    return [serialize_usage(u) for u in usages]


# ─────────────────────────────────────────────────────────────────────────────
# Checkout
# ─────────────────────────────────────────────────────────────────────────────


@router.post("/validate")
async def validate_discount_code(
    body: CodeApplication,
    _actor: CurrentActor,
    db: DbSession,
    now: Now,
):
    """
    Check a code against an order without using it.

    Always 200; ``valid`` is false with a ``reason`` when the code does not apply.
    """
    order = OrderContext(value=body.order_value, offer_id=body.offer_id)
    result, _code = await discount_ops.validate_code(db, body.code, order, now)

    if isinstance(result, Accepted):
        return {
            "valid": True,
            "code": body.code.strip().upper(),
            "discount_amount": money(result.discount_amount),
            "final_amount": money(round2(body.order_value - result.discount_amount)),
        }
    return {
        "valid": False,
        "code": body.code.strip().upper(),
        "reason": result.reason.value,
        "message": result.message,
    }


@router.post("/redeem")
async def redeem_discount_code(
    body: CodeApplication,
    actor: CurrentActor,
    db: DbSession,
    now: Now,
):
    """
    Apply a code to an order and count the use.

    400 with the rejection reason when the code does not apply. 409 when the
    code stopped applying between validation and recording (for example the
    last use was taken concurrently), with the reason found on re-validation.
    """
    order = OrderContext(value=body.order_value, offer_id=body.offer_id)
    result = await discount_ops.checkout(db, body.code, order, now, redeemed_by=actor.id)

    if not isinstance(result.validation, Accepted):
        raise CodeRejectedError(
            result.validation.reason.value,
            result.validation.message,
            status_code=status.HTTP_409_CONFLICT if result.conflicted else status.HTTP_400_BAD_REQUEST,
        )

    discount_amount = result.validation.discount_amount
    return {
        "redeemed": True,
        "code": result.code.code if result.code else body.code,
        "usage_id": str(result.usage.id) if result.usage else None,
        "discount_amount": money(discount_amount),
        "final_amount": money(round2(body.order_value - discount_amount)),
        "remaining_uses": result.code.remaining_uses if result.code else None,
    }
