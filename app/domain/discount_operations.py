"""Domain operations for discount codes."""

import logging
import uuid as uuid_pkg
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import as_utc
from app.domain.base_operations import BaseOperations
from app.domain.discount_rules import (
    Accepted,
    OrderContext,
    Rejected,
    RejectionReason,
    ValidationResult,
    validate,
)
from app.models.discount_code import DiscountCode, DiscountCodeUsage, normalize_code
from app.models.offer import Offer

logger = logging.getLogger(__name__)


class RedemptionOutcome(str, Enum):
    OK = "ok"
    CONFLICT = "conflict"


@dataclass
class RedemptionResult:
    """Outcome of the conditional counter update."""

    outcome: RedemptionOutcome
    usage: DiscountCodeUsage | None = None

    @property
    def ok(self) -> bool:
        return self.outcome == RedemptionOutcome.OK


@dataclass
class CheckoutResult:
    """Validation followed by redemption, as seen by a checkout."""

    validation: ValidationResult
    code: DiscountCode | None = None
    usage: DiscountCodeUsage | None = None
    conflicted: bool = False


class DiscountOperations(BaseOperations[DiscountCode]):
    """CRUD and redemption operations for DiscountCode model."""

    def __init__(self) -> None:
        super().__init__(DiscountCode)

    async def get_by_code(self, db: AsyncSession, code: str) -> DiscountCode | None:
        """Look up a code case-insensitively."""
        statement = select(DiscountCode).where(
            DiscountCode.code == normalize_code(code),  # type: ignore[arg-type]
        )
        result = await db.execute(statement)
        return result.scalar_one_or_none()

    async def list_all(self, db: AsyncSession, skip: int = 0, limit: int = 100) -> list[DiscountCode]:
        statement = (
            select(DiscountCode)
            .order_by(DiscountCode.created_at.desc())  # type: ignore[attr-defined]
            .offset(skip)
            .limit(limit)
        )
        result = await db.execute(statement)
        return list(result.scalars().all())

    async def create(
        self,
        db: AsyncSession,
        obj_in: dict[str, Any],
        merchant_id: uuid_pkg.UUID,
        now: datetime,
        created_by: uuid_pkg.UUID | None = None,
    ) -> DiscountCode | None:
        """
        Create a code with zeroed counters.

        Returns None if the code string is already taken.
        """
        code = normalize_code(obj_in["code"])
        if await self.get_by_code(db, code) is not None:
            return None

        data = {k: v for k, v in obj_in.items() if v is not None}
        data["code"] = code
        data.setdefault("start_date", as_utc(now))
        discount = DiscountCode(
            **data,
            merchant_id=merchant_id,
            created_by=created_by,
            usage_count=0,
            total_savings=Decimal("0"),
        )
        db.add(discount)
        await db.flush()
        await db.refresh(discount)
        logger.info(f"Discount code {discount.code} created for merchant {merchant_id}")
        return discount

    async def delete(self, db: AsyncSession, discount: DiscountCode) -> bool:
        """
        Delete an unused code.

        Returns False (and deletes nothing) once the code has been redeemed;
        used codes can only be deactivated.
        """
        if discount.usage_count > 0:
            return False
        await db.delete(discount)
        await db.flush()
        logger.info(f"Discount code {discount.code} deleted")
        return True

    async def list_usages(
        self,
        db: AsyncSession,
        discount_code_id: uuid_pkg.UUID,
        skip: int = 0,
        limit: int = 100,
    ) -> list[DiscountCodeUsage]:
        statement = (
            select(DiscountCodeUsage)
            .where(DiscountCodeUsage.discount_code_id == discount_code_id)  # type: ignore[arg-type]
            .order_by(DiscountCodeUsage.redeemed_at.desc())  # type: ignore[attr-defined]
            .offset(skip)
            .limit(limit)
        )
        result = await db.execute(statement)
        return list(result.scalars().all())

    # ─────────────────────────────────────────────────────────────────────
    # Validation and redemption
    # ─────────────────────────────────────────────────────────────────────

    async def validate_code(
        self,
        db: AsyncSession,
        code: str,
        order: OrderContext,
        now: datetime,
    ) -> tuple[ValidationResult, DiscountCode | None]:
        """Load the code and the offer it targets, then run the rules."""
        discount = await self.get_by_code(db, code)
        offer = None
        if discount is not None:
            target_offer_id = order.offer_id or discount.offer_id
            if target_offer_id is not None:
                offer = await db.get(Offer, target_offer_id)
        return validate(discount, order, now, offer), discount

    async def redeem(
        self,
        db: AsyncSession,
        code_id: uuid_pkg.UUID,
        discount_amount: Decimal,
        *,
        order_value: Decimal,
        now: datetime,
        offer_id: uuid_pkg.UUID | None = None,
        redeemed_by: uuid_pkg.UUID | None = None,
    ) -> RedemptionResult:
        """
        Count one use of a code and add to its savings.

        The increment is a single conditional UPDATE; it only applies while
        the code is active and below max_uses. When another redemption took
        the last use first, no row matches and the result is CONFLICT. This
        never retries: callers re-validate to learn the current reason.
        """
        statement = (
            update(DiscountCode)
            .where(
                DiscountCode.id == code_id,  # type: ignore[arg-type]
                DiscountCode.is_active == True,  # noqa: E712
                or_(
                    DiscountCode.max_uses.is_(None),  # type: ignore[union-attr]
                    DiscountCode.usage_count < DiscountCode.max_uses,  # type: ignore[operator]
                ),
            )
            .values(
                usage_count=DiscountCode.usage_count + 1,
                total_savings=DiscountCode.total_savings + discount_amount,
                updated_at=as_utc(now),
            )
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(statement)

        if result.rowcount != 1:
            logger.warning(f"Redemption conflict on discount code {code_id}")
            return RedemptionResult(outcome=RedemptionOutcome.CONFLICT)

        usage = DiscountCodeUsage(
            discount_code_id=code_id,
            offer_id=offer_id,
            order_value=order_value,
            discount_amount=discount_amount,
            redeemed_by=redeemed_by,
            redeemed_at=as_utc(now),
        )
        db.add(usage)
        await db.flush()
        await db.refresh(usage)

        logger.info(f"Discount code {code_id} redeemed for {discount_amount}")
        return RedemptionResult(outcome=RedemptionOutcome.OK, usage=usage)

    async def checkout(
        self,
        db: AsyncSession,
        code: str,
        order: OrderContext,
        now: datetime,
        redeemed_by: uuid_pkg.UUID | None = None,
    ) -> CheckoutResult:
        """
        Validate then redeem.

        On a recorder conflict the code is reloaded and validated again, and
        the fresh rejection is reported instead of the stale acceptance.
        """
        validation, discount = await self.validate_code(db, code, order, now)
        if not isinstance(validation, Accepted) or discount is None:
            return CheckoutResult(validation=validation, code=discount)

        redemption = await self.redeem(
            db,
            validation.code_id,
            validation.discount_amount,
            order_value=order.value,
            now=now,
            offer_id=order.offer_id or discount.offer_id,
            redeemed_by=redeemed_by,
        )
        # The conditional update bypasses the session; reload the counters.
        await db.refresh(discount)

        if redemption.ok:
            return CheckoutResult(validation=validation, code=discount, usage=redemption.usage)

        revalidation, discount = await self.validate_code(db, code, order, now)
        if isinstance(revalidation, Accepted):
            # Lost the race without a current rejection; report exhaustion.
            revalidation = Rejected(
                RejectionReason.USAGE_LIMIT_REACHED, "Discount code usage limit reached"
            )
        return CheckoutResult(validation=revalidation, code=discount, conflicted=True)


# Singleton instance
discount_ops = DiscountOperations()
