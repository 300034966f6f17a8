"""Merchant offer endpoints."""

import uuid as uuid_pkg
from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, status
from pydantic import BaseModel

from app.api.deps import CurrentActor, DbSession, MerchantActor, Now
from app.core.clock import as_utc
from app.core.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    QuotaExceededError,
    ValidationError,
)
from app.domain import offer_ops
from app.domain.discount_rules import round2
from app.domain.offer_lifecycle import OfferState, TransitionResult, derive_state, is_redeemable
from app.domain.quota import QuotaStatus
from app.models.offer import Offer, OfferCreate, OfferUpdate

router = APIRouter(prefix="/offers", tags=["offers"])


class OfferActiveUpdate(BaseModel):
    is_active: bool


def money(value: Decimal | None) -> str | None:
    """Serialize money as a two-decimal string."""
    return str(round2(Decimal(value))) if value is not None else None


def iso(value: datetime | None) -> str | None:
    """Serialize a timestamp in UTC with an explicit offset."""
    return as_utc(value).isoformat() if value else None


def serialize_offer(offer: Offer, now: datetime) -> dict:
    """Serialize an offer with its derived state at ``now``."""
    return {
        "id": str(offer.id),
        "merchant_id": str(offer.merchant_id),
        "category_id": str(offer.category_id),
        "title": offer.title,
        "description": offer.description,
        "image_url": offer.image_url,
        "city": offer.city,
        "link": offer.link,
        "link_type": offer.link_type,
        "original_price": money(offer.original_price),
        "discounted_price": money(offer.discounted_price),
        "discount_percentage": offer.discount_percentage,
        "start_date": iso(offer.start_date),
        "end_date": iso(offer.end_date),
        "is_approved": offer.is_approved,
        "is_active": offer.is_active,
        "is_featured": offer.is_featured,
        "rejected_at": iso(offer.rejected_at),
        "rejection_reason": offer.rejection_reason,
        "reviewed_by": str(offer.reviewed_by) if offer.reviewed_by else None,
        "state": derive_state(offer, now).value,
        "is_redeemable": is_redeemable(offer, now),
        "created_at": iso(offer.created_at),
        "updated_at": iso(offer.updated_at),
    }


def serialize_quota(quota: QuotaStatus) -> dict:
    return {
        "allowed": quota.allowed,
        "current_count": quota.current_count,
        "limit": quota.limit,
        "remaining": quota.remaining,
        "plan": quota.plan_name,
    }


def raise_for_transition(result: TransitionResult) -> None:
    """Map a refused lifecycle transition to a 409."""
    if result.error is not None:
        raise InvalidTransitionError(result.error.action, result.error.current_state.value)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_offer(
    data: OfferCreate,
    actor: MerchantActor,
    db: DbSession,
    now: Now,
):
    """
    Publish a new offer. It starts pending until an admin approves it.

    Returns 402 QUOTA_EXCEEDED when the merchant's plan is full.
    """
    result = await offer_ops.publish(db, data.model_dump(), merchant_id=actor.id, now=now)
    if result.offer is None:
        raise QuotaExceededError(
            result.quota.current_count, result.quota.limit, result.quota.plan_name
        )
    return serialize_offer(result.offer, now)


@router.get("", response_model=list[dict])
async def list_my_offers(
    actor: MerchantActor,
    db: DbSession,
    now: Now,
    skip: int = 0,
    limit: int = 100,
):
    """List the calling merchant's offers, newest first."""
    offers = await offer_ops.get_multi_by_merchant(db, actor.id, skip=skip, limit=limit)
    return [serialize_offer(o, now) for o in offers]


@router.get("/quota")
async def get_quota(actor: MerchantActor, db: DbSession, now: Now):
    """How many more offers the merchant's plan allows."""
    quota = await offer_ops.get_quota_status(db, actor.id, now)
    return serialize_quota(quota)


@router.get("/{offer_id}")
async def get_offer(
    offer_id: uuid_pkg.UUID,
    actor: CurrentActor,
    db: DbSession,
    now: Now,
):
    """
    Get an offer.

    Owners and admins see every state; everyone else only sees approved offers.
    """
    offer = await offer_ops.get(db, offer_id)
    if not offer:
        raise NotFoundError("Offer")
    if not actor.is_admin and offer.merchant_id != actor.id:
        if derive_state(offer, now) != OfferState.APPROVED:
            raise NotFoundError("Offer")
    return serialize_offer(offer, now)


@router.patch("/{offer_id}")
async def update_offer(
    offer_id: uuid_pkg.UUID,
    data: OfferUpdate,
    actor: MerchantActor,
    db: DbSession,
    now: Now,
):
    """Edit offer content. Rejected and expired offers cannot be edited."""
    offer = await offer_ops.get_by_merchant(db, actor.id, offer_id)
    if not offer:
        raise NotFoundError("Offer")

    try:
        result = await offer_ops.update_content(
            db, offer, data.model_dump(exclude_unset=True), now
        )
    except ValueError as e:
        raise ValidationError(str(e)) from None
    raise_for_transition(result)
    return serialize_offer(offer, now)


@router.patch("/{offer_id}/active")
async def set_offer_active(
    offer_id: uuid_pkg.UUID,
    body: OfferActiveUpdate,
    actor: MerchantActor,
    db: DbSession,
    now: Now,
):
    """Pause or resume an offer. Resuming past the plan limit returns 402."""
    offer = await offer_ops.get_by_merchant(db, actor.id, offer_id)
    if not offer:
        raise NotFoundError("Offer")

    result = await offer_ops.set_active(db, offer, body.is_active, now)
    if result.quota is not None and not result.quota.allowed:
        raise QuotaExceededError(
            result.quota.current_count, result.quota.limit, result.quota.plan_name
        )
    raise_for_transition(result.transition)
    return serialize_offer(offer, now)
