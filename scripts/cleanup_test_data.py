"""Emergency cleanup script: delete test offers and their discount codes.

Run manually if test data leaks into a shared database.

Usage:
    python -m scripts.cleanup_test_data [--yes]

This script:
1. Finds all offers whose title matches the test pattern
2. Deletes redemptions of discount codes scoped to those offers
3. Deletes the discount codes, then the offers
"""

from __future__ import annotations

import asyncio
import logging
import sys

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

logging.basicConfig(level=logging.INFO, format="%(levelname)s | %(message)s")
logger = logging.getLogger(__name__)

# Title prefix used by test factories
TEST_TITLE_PATTERN = "\\_\\_test%"


async def emergency_cleanup() -> None:
    """Delete all test offers and codes scoped to them."""
    from app.config.settings import settings
    from app.models.discount_code import DiscountCode, DiscountCodeUsage
    from app.models.offer import Offer

    engine = create_async_engine(settings.database_url, echo=False)
    async_session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as db:
        result = await db.execute(
            select(Offer).where(Offer.title.like(TEST_TITLE_PATTERN, escape="\\"))  # type: ignore[attr-defined]
        )
        test_offers = result.scalars().all()

        if not test_offers:
            logger.info("No test data found. Database is clean.")
            await engine.dispose()
            return

        logger.info(f"Found {len(test_offers)} test offers to clean up:")
        for o in test_offers:
            logger.info(f"  - {o.title} ({o.id})")

        # Confirm
        if "--yes" not in sys.argv:
            confirm = input(f"\nDelete {len(test_offers)} test offers and their codes? [y/N] ")
            if confirm.lower() != "y":
                logger.info("Aborted.")
                await engine.dispose()
                return

        offer_ids = [o.id for o in test_offers]

        # FK-safe order: usages → codes → offers
        code_ids_subq = select(DiscountCode.id).where(DiscountCode.offer_id.in_(offer_ids))  # type: ignore[union-attr]
        await db.execute(
            DiscountCodeUsage.__table__.delete().where(  # type: ignore[attr-defined]
                DiscountCodeUsage.discount_code_id.in_(code_ids_subq)  # type: ignore[attr-defined]
            )
        )
        codes = await db.execute(
            DiscountCode.__table__.delete().where(DiscountCode.offer_id.in_(offer_ids))  # type: ignore[attr-defined,union-attr]
        )
        logger.info(f"Deleted {codes.rowcount} discount codes and their redemptions")

        await db.execute(Offer.__table__.delete().where(Offer.id.in_(offer_ids)))  # type: ignore[attr-defined]
        logger.info(f"Deleted {len(offer_ids)} offers")

        await db.commit()

    await engine.dispose()
    logger.info("Emergency cleanup complete.")


if __name__ == "__main__":
    asyncio.run(emergency_cleanup())
