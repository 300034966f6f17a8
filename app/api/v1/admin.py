"""Admin API endpoints for moderation and catalogue management."""

import uuid as uuid_pkg

from fastapi import APIRouter, HTTPException, Query, Response, status
from pydantic import BaseModel, Field

from app.api.deps import AdminActor, DbSession, Now
from app.api.v1.discount_codes import create_code_for_merchant, serialize_code, serialize_usage
from app.api.v1.offers import raise_for_transition, serialize_offer
from app.api.v1.subscriptions import serialize_plan
from app.core.clock import as_utc
from app.core.exceptions import DuplicateError, NotFoundError, ValidationError
from app.domain import discount_ops, offer_ops, plan_ops, subscription_ops
from app.domain.offer_lifecycle import OfferState
from app.models.discount_code import DiscountCodeCreate, DiscountCodeUpdate, DiscountType
from app.models.subscription import SubscriptionPlanCreate, SubscriptionPlanUpdate

router = APIRouter(prefix="/admin", tags=["admin"])


class OfferRejection(BaseModel):
    """Schema for rejecting an offer."""

    reason: str | None = Field(default=None, max_length=500)


class OfferFeature(BaseModel):
    is_featured: bool


class AdminDiscountCodeCreate(DiscountCodeCreate):
    """Admins create codes on behalf of a merchant."""

    merchant_id: uuid_pkg.UUID


# ─────────────────────────────────────────────────────────────────────────────
# Offer moderation
# ─────────────────────────────────────────────────────────────────────────────


@router.get("/offers", response_model=list[dict])
async def list_offers(
    _admin: AdminActor,
    db: DbSession,
    now: Now,
    state: OfferState | None = Query(None, description="Filter by derived state"),
    search: str | None = Query(None, description="Match title or description"),
    skip: int = 0,
    limit: int = 50,
):
    """List offers for moderation, newest first."""
    offers = await offer_ops.list_by_state(
        db, now, state=state, search=search, skip=skip, limit=limit
    )
    return [serialize_offer(o, now) for o in offers]


@router.post("/offers/{offer_id}/approve")
async def approve_offer(
    offer_id: uuid_pkg.UUID,
    admin: AdminActor,
    db: DbSession,
    now: Now,
):
    """
    Approve a pending offer.

    Approving an approved offer succeeds without changes. Rejected and
    expired offers return 409 INVALID_TRANSITION.
    """
    offer = await offer_ops.get(db, offer_id)
    if not offer:
        raise NotFoundError("Offer")

    result = await offer_ops.approve(db, offer, admin_id=admin.id, now=now)
    raise_for_transition(result)
    return serialize_offer(offer, now)


@router.post("/offers/{offer_id}/reject")
async def reject_offer(
    offer_id: uuid_pkg.UUID,
    admin: AdminActor,
    db: DbSession,
    now: Now,
    body: OfferRejection | None = None,
):
    """Reject a pending offer. Anything else returns 409 INVALID_TRANSITION."""
    offer = await offer_ops.get(db, offer_id)
    if not offer:
        raise NotFoundError("Offer")

    reason = body.reason if body else None
    result = await offer_ops.reject(db, offer, admin_id=admin.id, now=now, reason=reason)
    raise_for_transition(result)
    return serialize_offer(offer, now)


@router.patch("/offers/{offer_id}/featured")
async def set_offer_featured(
    offer_id: uuid_pkg.UUID,
    body: OfferFeature,
    _admin: AdminActor,
    db: DbSession,
    now: Now,
):
    """Feature or unfeature an offer. Has no effect on its lifecycle."""
    offer = await offer_ops.get(db, offer_id)
    if not offer:
        raise NotFoundError("Offer")

    offer = await offer_ops.update(db, offer, {"is_featured": body.is_featured})
    return serialize_offer(offer, now)


# ─────────────────────────────────────────────────────────────────────────────
# Discount codes
# ─────────────────────────────────────────────────────────────────────────────


@router.get("/discount-codes", response_model=list[dict])
async def list_discount_codes(
    _admin: AdminActor,
    db: DbSession,
    skip: int = 0,
    limit: int = 100,
):
    codes = await discount_ops.list_all(db, skip=skip, limit=limit)
    return [serialize_code(c) for c in codes]


@router.post("/discount-codes", status_code=status.HTTP_201_CREATED)
async def create_discount_code(
    data: AdminDiscountCodeCreate,
    admin: AdminActor,
    db: DbSession,
    now: Now,
):
    """Create a code for a merchant. Duplicate codes return 400."""
    code = await create_code_for_merchant(
        db,
        DiscountCodeCreate.model_validate(data.model_dump(exclude={"merchant_id"})),
        merchant_id=data.merchant_id,
        created_by=admin.id,
        now=now,
    )
    return serialize_code(code)


@router.patch("/discount-codes/{code_id}")
async def update_discount_code(
    code_id: uuid_pkg.UUID,
    data: DiscountCodeUpdate,
    _admin: AdminActor,
    db: DbSession,
):
    """Edit rule fields or deactivate a code. Counters are not editable."""
    code = await discount_ops.get(db, code_id)
    if not code:
        raise NotFoundError("Discount code")

    updates = data.model_dump(exclude_unset=True)
    discount_type = updates.get("discount_type", code.discount_type)
    discount_value = updates.get("discount_value", code.discount_value)
    if (
        discount_type == DiscountType.PERCENTAGE
        and discount_value is not None
        and discount_value > 100
    ):
        raise ValidationError("Percentage discounts cannot exceed 100")
    max_uses = updates.get("max_uses", code.max_uses)
    if max_uses is not None and max_uses < code.usage_count:
        raise ValidationError(f"max_uses cannot be below current usage ({code.usage_count})")
    end_date = updates.get("end_date", code.end_date)
    if end_date is not None and as_utc(end_date) <= as_utc(code.start_date):
        raise ValidationError("end_date must be after start_date")

    code = await discount_ops.update(db, code, updates)
    return serialize_code(code)


@router.delete("/discount-codes/{code_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_discount_code(
    code_id: uuid_pkg.UUID,
    _admin: AdminActor,
    db: DbSession,
):
    """Delete an unused code. Codes with redemptions must be deactivated instead."""
    code = await discount_ops.get(db, code_id)
    if not code:
        raise NotFoundError("Discount code")

    if not await discount_ops.delete(db, code):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Discount code has been used; deactivate it instead",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/discount-codes/{code_id}/usages", response_model=list[dict])
async def list_discount_code_usages(
    code_id: uuid_pkg.UUID,
    _admin: AdminActor,
    db: DbSession,
    skip: int = 0,
    limit: int = 100,
):
    code = await discount_ops.get(db, code_id)
    if not code:
        raise NotFoundError("Discount code")
    usages = await discount_ops.list_usages(db, code.id, skip=skip, limit=limit)
    return [serialize_usage(u) for u in usages]


# ─────────────────────────────────────────────────────────────────────────────
# Subscription plans
# ─────────────────────────────────────────────────────────────────────────────


@router.get("/plans", response_model=list[dict])
async def list_all_plans(_admin: AdminActor, db: DbSession):
    """All plans, including inactive ones."""
    plans = await plan_ops.list_plans(db, include_inactive=True)
    return [serialize_plan(p) for p in plans]


@router.post("/plans", status_code=status.HTTP_201_CREATED)
async def create_plan(data: SubscriptionPlanCreate, _admin: AdminActor, db: DbSession):
    if await plan_ops.get_by_tier(db, data.tier):
        raise DuplicateError("Plan", "tier")
    plan = await plan_ops.create(db, data.model_dump())
    return serialize_plan(plan)


@router.patch("/plans/{plan_id}")
async def update_plan(
    plan_id: uuid_pkg.UUID,
    data: SubscriptionPlanUpdate,
    _admin: AdminActor,
    db: DbSession,
):
    """
    Edit a plan.

    Subscribers see a changed offer_limit on their next quota check;
    offers already over the new limit are left as they are.
    """
    plan = await plan_ops.get(db, plan_id)
    if not plan:
        raise NotFoundError("Plan")
    plan = await plan_ops.update(db, plan, data.model_dump(exclude_unset=True))
    return serialize_plan(plan)


@router.post("/plans/seed", response_model=list[dict])
async def seed_plans(_admin: AdminActor, db: DbSession):
    """Insert any missing catalogue plans. Returns the plans created."""
    plans = await plan_ops.seed_defaults(db)
    return [serialize_plan(p) for p in plans]


@router.post("/subscriptions/expire-lapsed")
async def expire_lapsed_subscriptions(_admin: AdminActor, db: DbSession, now: Now):
    """Persist EXPIRED on subscriptions past their end date."""
    count = await subscription_ops.expire_lapsed(db, now)
    return {"expired": count}
