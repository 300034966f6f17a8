"""Domain operations for MerchantSubscription model."""

import logging
import uuid as uuid_pkg
from datetime import datetime, timedelta

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import as_utc
from app.domain.base_operations import BaseOperations
from app.domain.quota import derive_subscription_status
from app.models.subscription import (
    BillingPeriod,
    MerchantSubscription,
    SubscriptionPlan,
    SubscriptionStatus,
)

logger = logging.getLogger(__name__)

BILLING_PERIOD_LENGTH = {
    BillingPeriod.MONTHLY.value: timedelta(days=30),
    BillingPeriod.YEARLY.value: timedelta(days=365),
}


class SubscriptionOperations(BaseOperations[MerchantSubscription]):
    """CRUD operations for MerchantSubscription model."""

    def __init__(self) -> None:
        super().__init__(MerchantSubscription)

    async def get_active_by_merchant(
        self,
        db: AsyncSession,
        merchant_id: uuid_pkg.UUID,
        for_update: bool = False,
    ) -> MerchantSubscription | None:
        """Get the merchant's subscription with stored status ACTIVE, if any."""
        statement = select(MerchantSubscription).where(
            MerchantSubscription.merchant_id == merchant_id,  # type: ignore[arg-type]
            MerchantSubscription.status == SubscriptionStatus.ACTIVE.value,  # type: ignore[arg-type]
        )
        if for_update:
            statement = statement.with_for_update()
        result = await db.execute(statement)
        return result.scalar_one_or_none()

    async def get_active_with_plan(
        self,
        db: AsyncSession,
        merchant_id: uuid_pkg.UUID,
        for_update: bool = False,
    ) -> tuple[MerchantSubscription | None, SubscriptionPlan | None]:
        """Active subscription and its plan, or (None, None)."""
        subscription = await self.get_active_by_merchant(db, merchant_id, for_update=for_update)
        if subscription is None:
            return None, None
        plan = await db.get(SubscriptionPlan, subscription.plan_id)
        return subscription, plan

    async def subscribe(
        self,
        db: AsyncSession,
        merchant_id: uuid_pkg.UUID,
        plan: SubscriptionPlan,
        now: datetime,
        payment_method: str | None = None,
        auto_renew: bool = True,
    ) -> MerchantSubscription:
        """
        Start a subscription to ``plan``, closing any current one.

        The previous record is flushed as cancelled (or expired if it already
        lapsed) before the new ACTIVE record is inserted, so the one-active
        index never sees two active rows.
        """
        now = as_utc(now)
        current = await self.get_active_by_merchant(db, merchant_id, for_update=True)
        if current is not None:
            status = derive_subscription_status(current, now)
            if status == SubscriptionStatus.ACTIVE:
                current.status = SubscriptionStatus.CANCELLED.value
                current.cancelled_at = now
                current.cancel_reason = f"Changed to plan {plan.tier}"
            else:
                current.status = status.value
            current.auto_renew = False
            await self.save(db, current)

        period = BILLING_PERIOD_LENGTH.get(plan.billing_period)
        subscription = MerchantSubscription(
            merchant_id=merchant_id,
            plan_id=plan.id,
            status=SubscriptionStatus.ACTIVE.value,
            start_date=now,
            end_date=now + period if period else None,
            auto_renew=auto_renew,
            payment_method=payment_method,
        )
        db.add(subscription)
        await db.flush()
        await db.refresh(subscription)

        logger.info(f"Merchant {merchant_id} subscribed to plan {plan.tier}")
        return subscription

    async def cancel(
        self,
        db: AsyncSession,
        subscription: MerchantSubscription,
        now: datetime,
        reason: str | None = None,
    ) -> MerchantSubscription:
        """Cancel immediately. The merchant falls back to the free tier."""
        subscription.status = SubscriptionStatus.CANCELLED.value
        subscription.cancelled_at = as_utc(now)
        subscription.cancel_reason = reason
        subscription.auto_renew = False
        await self.save(db, subscription)
        logger.info(f"Subscription {subscription.id} cancelled for merchant {subscription.merchant_id}")
        return subscription

    async def expire_lapsed(self, db: AsyncSession, now: datetime) -> int:
        """
        Persist EXPIRED on active subscriptions whose end date has passed.

        Quota checks already treat these as expired; this only keeps stored
        status in line for reporting.
        """
        statement = (
            update(MerchantSubscription)
            .where(
                MerchantSubscription.status == SubscriptionStatus.ACTIVE.value,  # type: ignore[arg-type]
                MerchantSubscription.end_date.is_not(None),  # type: ignore[union-attr]
                MerchantSubscription.end_date < as_utc(now),  # type: ignore[operator]
            )
            .values(status=SubscriptionStatus.EXPIRED.value)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(statement)
        count = result.rowcount or 0
        if count:
            logger.info(f"Marked {count} lapsed subscriptions expired")
        return count


# Singleton instance
subscription_ops = SubscriptionOperations()
