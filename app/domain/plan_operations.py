"""Domain operations for SubscriptionPlan model."""

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.plans import FREE_TIER, PLANS
from app.domain.base_operations import BaseOperations
from app.models.subscription import SubscriptionPlan

logger = logging.getLogger(__name__)


class PlanOperations(BaseOperations[SubscriptionPlan]):
    """CRUD operations for SubscriptionPlan model."""

    def __init__(self) -> None:
        super().__init__(SubscriptionPlan)

    async def get_by_tier(self, db: AsyncSession, tier: str) -> SubscriptionPlan | None:
        statement = select(SubscriptionPlan).where(
            SubscriptionPlan.tier == tier.lower()  # type: ignore[arg-type]
        )
        result = await db.execute(statement)
        return result.scalar_one_or_none()

    async def list_plans(self, db: AsyncSession, include_inactive: bool = False) -> list[SubscriptionPlan]:
        """Plans in display order."""
        statement = select(SubscriptionPlan).order_by(SubscriptionPlan.sort_order)  # type: ignore[arg-type]
        if not include_inactive:
            statement = statement.where(SubscriptionPlan.is_active == True)  # noqa: E712
        result = await db.execute(statement)
        return list(result.scalars().all())

    async def create(self, db: AsyncSession, obj_in: dict[str, Any]) -> SubscriptionPlan:
        data = dict(obj_in)
        data["tier"] = data["tier"].lower()
        plan = SubscriptionPlan(**data)
        db.add(plan)
        await db.flush()
        await db.refresh(plan)
        logger.info(f"Created subscription plan {plan.tier}")
        return plan

    async def seed_defaults(self, db: AsyncSession) -> list[SubscriptionPlan]:
        """
        Insert the catalogue plans that do not exist yet.

        Existing rows are left alone so admin edits survive restarts. The
        free tier is not a purchasable plan and is never seeded.
        """
        created = []
        for tier, config in PLANS.items():
            if tier == FREE_TIER:
                continue
            if await self.get_by_tier(db, tier) is not None:
                continue
            created.append(
                await self.create(
                    db,
                    {
                        "tier": config.tier,
                        "name": config.display_name,
                        "description": config.description,
                        "price": config.price,
                        "billing_period": config.billing_period,
                        "offer_limit": config.offer_limit,
                        "sort_order": config.sort_order,
                        "is_popular": config.is_popular,
                    },
                )
            )
        return created


# Singleton instance
plan_ops = PlanOperations()
