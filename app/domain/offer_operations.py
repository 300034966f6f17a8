"""Domain operations for Offer model."""

import logging
import uuid as uuid_pkg
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import as_utc
from app.domain import offer_lifecycle
from app.domain.base_operations import BaseOperations
from app.domain.offer_lifecycle import (
    TERMINAL_STATES,
    InvalidTransition,
    OfferState,
    TransitionResult,
)
from app.domain.quota import QuotaStatus, check_offer_quota, check_reactivation_quota
from app.domain.subscription_operations import subscription_ops
from app.models.offer import Offer

logger = logging.getLogger(__name__)


@dataclass
class PublishResult:
    """Outcome of a merchant publishing an offer."""

    quota: QuotaStatus
    offer: Offer | None = None


@dataclass
class ActivationResult:
    """Outcome of a merchant pausing or resuming an offer."""

    transition: TransitionResult
    quota: QuotaStatus | None = None

    @property
    def ok(self) -> bool:
        return self.transition.ok and (self.quota is None or self.quota.allowed)


def check_content(offer: Offer, obj_in: dict[str, Any]) -> None:
    """Validate an edit against the offer's stored values."""
    start_date = obj_in.get("start_date", offer.start_date)
    end_date = obj_in.get("end_date", offer.end_date)
    if start_date and end_date and as_utc(end_date) <= as_utc(start_date):
        raise ValueError("end_date must be after start_date")

    original = obj_in.get("original_price", offer.original_price)
    discounted = obj_in.get("discounted_price", offer.discounted_price)
    if original is not None and discounted is not None and discounted > original:
        raise ValueError("discounted_price cannot exceed original_price")


class OfferOperations(BaseOperations[Offer]):
    """CRUD and lifecycle operations for Offer model."""

    def __init__(self) -> None:
        super().__init__(Offer)

    # ─────────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────────

    async def count_published(
        self,
        db: AsyncSession,
        merchant_id: uuid_pkg.UUID,
        now: datetime,
    ) -> int:
        """
        Count the merchant's offers that consume quota.

        Rejected offers are excluded in SQL; expiry is decided by
        derive_state so the count never disagrees with displayed status.
        """
        statement = select(Offer).where(
            Offer.merchant_id == merchant_id,  # type: ignore[arg-type]
            Offer.rejected_at.is_(None),  # type: ignore[union-attr]
        )
        result = await db.execute(statement)
        offers = result.scalars().all()
        return sum(1 for offer in offers if offer_lifecycle.counts_towards_quota(offer, now))

    async def list_by_state(
        self,
        db: AsyncSession,
        now: datetime,
        state: OfferState | None = None,
        search: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[Offer]:
        """List offers for moderation, optionally filtered by derived state."""
        statement = select(Offer).order_by(Offer.created_at.desc())  # type: ignore[attr-defined]
        if search:
            pattern = f"%{search}%"
            statement = statement.where(
                or_(
                    Offer.title.ilike(pattern),  # type: ignore[attr-defined]
                    Offer.description.ilike(pattern),  # type: ignore[attr-defined]
                )
            )
        result = await db.execute(statement)
        offers = list(result.scalars().all())
        if state is not None:
            offers = [o for o in offers if offer_lifecycle.derive_state(o, now) == state]
        return offers[skip : skip + limit]

    async def get_quota_status(
        self,
        db: AsyncSession,
        merchant_id: uuid_pkg.UUID,
        now: datetime,
        for_update: bool = False,
    ) -> QuotaStatus:
        """Quota for one more offer given the merchant's current subscription."""
        subscription, plan = await subscription_ops.get_active_with_plan(
            db, merchant_id, for_update=for_update
        )
        count = await self.count_published(db, merchant_id, now)
        return check_offer_quota(subscription, plan, count, now)

    # ─────────────────────────────────────────────────────────────────────
    # Merchant actions
    # ─────────────────────────────────────────────────────────────────────

    async def publish(
        self,
        db: AsyncSession,
        obj_in: dict[str, Any],
        merchant_id: uuid_pkg.UUID,
        now: datetime,
    ) -> PublishResult:
        """
        Create a pending offer if the merchant's plan allows another one.

        The active subscription row is locked for the duration of the
        transaction so concurrent publishes by one merchant serialize.
        """
        quota = await self.get_quota_status(db, merchant_id, now, for_update=True)
        if not quota.allowed:
            logger.warning(
                f"Offer publish refused for merchant {merchant_id}: "
                f"{quota.current_count}/{quota.limit} on {quota.plan_name}"
            )
            return PublishResult(quota=quota)

        data = {k: v for k, v in obj_in.items() if v is not None}
        data.setdefault("start_date", as_utc(now))
        offer = Offer(
            **data,
            merchant_id=merchant_id,
            is_approved=False,
            is_active=True,
            is_featured=False,
        )
        db.add(offer)
        await db.flush()
        await db.refresh(offer)
        logger.info(f"Offer {offer.id} created pending for merchant {merchant_id}")
        return PublishResult(quota=quota, offer=offer)

    async def update_content(
        self,
        db: AsyncSession,
        offer: Offer,
        obj_in: dict[str, Any],
        now: datetime,
    ) -> TransitionResult:
        """
        Edit an offer's content.

        Rejected and expired offers are frozen: extending end_date must not
        bring an expired offer back.

        Raises ValueError if the edit, merged with the stored values, leaves
        end_date at or before start_date or discounted_price above
        original_price.
        """
        state = offer_lifecycle.derive_state(offer, now)
        if state in TERMINAL_STATES:
            return TransitionResult(state=state, error=InvalidTransition("edit", state))

        check_content(offer, obj_in)
        await self.update(db, offer, obj_in)
        return TransitionResult(state=offer_lifecycle.derive_state(offer, now), changed=True)

    async def set_active(
        self,
        db: AsyncSession,
        offer: Offer,
        is_active: bool,
        now: datetime,
    ) -> ActivationResult:
        """Pause or resume an offer. Resuming re-checks the plan limit."""
        quota = None
        if is_active and not offer.is_active:
            state = offer_lifecycle.derive_state(offer, now)
            if state not in TERMINAL_STATES:
                subscription, plan = await subscription_ops.get_active_with_plan(
                    db, offer.merchant_id
                )
                count = await self.count_published(db, offer.merchant_id, now)
                quota = check_reactivation_quota(subscription, plan, count, now)
                if not quota.allowed:
                    return ActivationResult(
                        transition=TransitionResult(state=state), quota=quota
                    )

        transition = offer_lifecycle.set_active(offer, is_active, now)
        if transition.changed:
            await self.save(db, offer)
            logger.info(f"Offer {offer.id} set is_active={is_active}")
        return ActivationResult(transition=transition, quota=quota)

    # ─────────────────────────────────────────────────────────────────────
    # Admin moderation
    # ─────────────────────────────────────────────────────────────────────

    async def approve(
        self,
        db: AsyncSession,
        offer: Offer,
        admin_id: uuid_pkg.UUID,
        now: datetime,
    ) -> TransitionResult:
        """Approve a pending offer on behalf of an admin."""
        result = offer_lifecycle.approve(offer, now)
        if result.changed:
            offer.reviewed_by = admin_id
            offer.reviewed_at = as_utc(now)
            await self.save(db, offer)
            logger.info(f"Offer {offer.id} approved by {admin_id}")
        elif not result.ok:
            logger.info(f"Offer {offer.id} approve refused: {result.state.value}")
        return result

    async def reject(
        self,
        db: AsyncSession,
        offer: Offer,
        admin_id: uuid_pkg.UUID,
        now: datetime,
        reason: str | None = None,
    ) -> TransitionResult:
        """Reject a pending offer on behalf of an admin."""
        result = offer_lifecycle.reject(offer, now, reason)
        if result.changed:
            offer.reviewed_by = admin_id
            offer.reviewed_at = as_utc(now)
            await self.save(db, offer)
            logger.info(f"Offer {offer.id} rejected by {admin_id}")
        else:
            logger.info(f"Offer {offer.id} reject refused: {result.state.value}")
        return result


# Singleton instance
offer_ops = OfferOperations()
