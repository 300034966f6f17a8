"""Subscription quota - how many non-terminal offers a merchant may hold."""

import logging
import uuid as uuid_pkg
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from app.config.plans import free_plan
from app.core.clock import as_utc
from app.models.subscription import SubscriptionStatus

logger = logging.getLogger(__name__)


class PlanLimit(Protocol):
    name: str
    offer_limit: int | None


class SubscriptionLike(Protocol):
    status: str
    end_date: datetime | None


@dataclass(frozen=True)
class QuotaStatus:
    """Result of checking a merchant's offer quota."""

    allowed: bool
    current_count: int
    limit: int | None
    plan_name: str

    @property
    def exceeded(self) -> bool:
        return not self.allowed

    @property
    def remaining(self) -> int | None:
        if self.limit is None:
            return None
        return max(0, self.limit - self.current_count)


@dataclass(frozen=True)
class _FreeTier:
    name: str
    offer_limit: int | None


def derive_subscription_status(subscription: SubscriptionLike, now: datetime) -> SubscriptionStatus:
    """Stored status, except that an active subscription past its end date is expired."""
    status = SubscriptionStatus(subscription.status)
    if (
        status == SubscriptionStatus.ACTIVE
        and subscription.end_date is not None
        and as_utc(now) > as_utc(subscription.end_date)
    ):
        return SubscriptionStatus.EXPIRED
    return status


def effective_plan(
    subscription: SubscriptionLike | None,
    plan: PlanLimit | None,
    now: datetime,
) -> PlanLimit:
    """The plan whose limit applies: the subscribed plan, or the free tier."""
    if (
        subscription is None
        or plan is None
        or derive_subscription_status(subscription, now) != SubscriptionStatus.ACTIVE
    ):
        tier = free_plan()
        return _FreeTier(name=tier.display_name, offer_limit=tier.offer_limit)
    return plan


def check_offer_quota(
    subscription: SubscriptionLike | None,
    plan: PlanLimit | None,
    current_published_count: int,
    now: datetime,
) -> QuotaStatus:
    """Whether one more offer may be published."""
    applied = effective_plan(subscription, plan, now)
    limit = applied.offer_limit
    allowed = limit is None or current_published_count < limit
    return QuotaStatus(
        allowed=allowed,
        current_count=current_published_count,
        limit=limit,
        plan_name=applied.name,
    )


def can_create_offer(
    merchant_id: uuid_pkg.UUID,
    subscription: SubscriptionLike | None,
    plan: PlanLimit | None,
    current_published_count: int,
    now: datetime,
) -> bool:
    """Boolean form of ``check_offer_quota`` for a merchant."""
    status = check_offer_quota(subscription, plan, current_published_count, now)
    if status.exceeded:
        logger.info(
            f"Merchant {merchant_id} at offer quota "
            f"({status.current_count}/{status.limit} on {status.plan_name})"
        )
    return status.allowed


def check_reactivation_quota(
    subscription: SubscriptionLike | None,
    plan: PlanLimit | None,
    current_published_count: int,
    now: datetime,
) -> QuotaStatus:
    """Whether a paused offer may be switched back on.

    The paused offer is already part of ``current_published_count``, so it
    may resume as long as the merchant is not over the limit, for example
    after a downgrade.
    """
    applied = effective_plan(subscription, plan, now)
    limit = applied.offer_limit
    allowed = limit is None or current_published_count <= limit
    return QuotaStatus(
        allowed=allowed,
        current_count=current_published_count,
        limit=limit,
        plan_name=applied.name,
    )
