"""Merchant subscription endpoints."""

from datetime import datetime

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from app.api.deps import DbSession, MerchantActor, Now
from app.api.v1.offers import iso, serialize_quota
from app.core.exceptions import NotFoundError, ValidationError
from app.domain import offer_ops, plan_ops, subscription_ops
from app.domain.quota import derive_subscription_status
from app.models.subscription import MerchantSubscription, SubscriptionPlan

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


class SubscribeRequest(BaseModel):
    """Schema for subscribing to, or switching to, a plan."""

    tier: str = Field(min_length=1, max_length=50)
    payment_method: str | None = Field(default=None, max_length=50)
    auto_renew: bool = True


class CancelRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


def serialize_plan(plan: SubscriptionPlan) -> dict:
    return {
        "id": str(plan.id),
        "tier": plan.tier,
        "name": plan.name,
        "description": plan.description,
        "price": plan.price,
        "currency": plan.currency,
        "billing_period": plan.billing_period,
        "offer_limit": plan.offer_limit,
        "is_active": plan.is_active,
        "sort_order": plan.sort_order,
        "is_popular": plan.is_popular,
    }


def serialize_subscription(
    subscription: MerchantSubscription,
    plan: SubscriptionPlan | None,
    now: datetime,
) -> dict:
    return {
        "id": str(subscription.id),
        "merchant_id": str(subscription.merchant_id),
        "plan": serialize_plan(plan) if plan else None,
        "status": derive_subscription_status(subscription, now).value,
        "start_date": iso(subscription.start_date),
        "end_date": iso(subscription.end_date),
        "auto_renew": subscription.auto_renew,
        "payment_method": subscription.payment_method,
        "cancelled_at": iso(subscription.cancelled_at),
        "cancel_reason": subscription.cancel_reason,
    }


@router.get("/plans", response_model=list[dict])
async def list_plans(db: DbSession):
    """Purchasable plans in display order. Public."""
    plans = await plan_ops.list_plans(db)
    return [serialize_plan(p) for p in plans]


@router.get("/me")
async def get_my_subscription(actor: MerchantActor, db: DbSession, now: Now):
    """
    The merchant's current subscription and offer quota.

    ``subscription`` is null on the free tier.
    """
    subscription, plan = await subscription_ops.get_active_with_plan(db, actor.id)
    quota = await offer_ops.get_quota_status(db, actor.id, now)
    return {
        "subscription": serialize_subscription(subscription, plan, now) if subscription else None,
        "quota": serialize_quota(quota),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def subscribe(
    body: SubscribeRequest,
    actor: MerchantActor,
    db: DbSession,
    now: Now,
):
    """
    Subscribe to a plan, or change plan.

    A plan change closes the current subscription and starts a new one.
    """
    plan = await plan_ops.get_by_tier(db, body.tier)
    if not plan:
        raise NotFoundError("Plan")
    if not plan.is_active:
        raise ValidationError("Plan is not available")

    subscription = await subscription_ops.subscribe(
        db,
        actor.id,
        plan,
        now,
        payment_method=body.payment_method,
        auto_renew=body.auto_renew,
    )
    return serialize_subscription(subscription, plan, now)


@router.post("/cancel")
async def cancel_subscription(
    actor: MerchantActor,
    db: DbSession,
    now: Now,
    body: CancelRequest | None = None,
):
    """Cancel the current subscription. The free tier applies from now on."""
    subscription, plan = await subscription_ops.get_active_with_plan(db, actor.id)
    if not subscription:
        raise NotFoundError("Active subscription")

    subscription = await subscription_ops.cancel(
        db, subscription, now, reason=body.reason if body else None
    )
    return serialize_subscription(subscription, plan, now)
