"""Discount code validation and discount computation.

``validate`` runs a fixed sequence of named checks; the first failing check
decides the rejection reason. Nothing here touches the database: callers load
the code (and the offer it applies to) and pass them in together with ``now``.
"""

import uuid as uuid_pkg
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from app.core.clock import as_utc
from app.domain.offer_lifecycle import is_redeemable
from app.models.discount_code import DiscountCode, DiscountType
from app.models.offer import Offer

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


class RejectionReason(str, Enum):
    CODE_NOT_FOUND = "code_not_found"
    CODE_NOT_YET_VALID = "code_not_yet_valid"
    CODE_EXPIRED = "code_expired"
    USAGE_LIMIT_REACHED = "usage_limit_reached"
    BELOW_MINIMUM_ORDER = "below_minimum_order"
    OFFER_NOT_REDEEMABLE = "offer_not_redeemable"


@dataclass(frozen=True)
class OrderContext:
    """The order a code is being applied to."""

    value: Decimal
    offer_id: uuid_pkg.UUID | None = None


@dataclass(frozen=True)
class Accepted:
    code_id: uuid_pkg.UUID
    discount_amount: Decimal

    accepted = True


@dataclass(frozen=True)
class Rejected:
    reason: RejectionReason
    message: str

    accepted = False


ValidationResult = Accepted | Rejected


def round2(value: Decimal) -> Decimal:
    """Round to currency minor units using round-half-up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_discount(discount_type: str, discount_value: Decimal, order_value: Decimal) -> Decimal:
    """Discount for an order; always within ``[0, order_value]``."""
    order_value = Decimal(order_value)
    if order_value <= 0:
        return ZERO

    if discount_type == DiscountType.PERCENTAGE:
        amount = round2(order_value * Decimal(discount_value) / Decimal(100))
    else:
        amount = round2(Decimal(discount_value))

    return max(ZERO, min(amount, order_value))


# ─────────────────────────────────────────────────────────────────────────────
# Checks - each returns a Rejected or None
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class _Attempt:
    code: DiscountCode
    order: OrderContext
    now: datetime
    offer: Offer | None


def _check_active(attempt: _Attempt) -> Rejected | None:
    if not attempt.code.is_active:
        return Rejected(RejectionReason.CODE_NOT_FOUND, "Invalid discount code")
    return None


def _check_window(attempt: _Attempt) -> Rejected | None:
    now = as_utc(attempt.now)
    if now < as_utc(attempt.code.start_date):
        return Rejected(RejectionReason.CODE_NOT_YET_VALID, "Discount code not yet active")
    if attempt.code.end_date is not None and now > as_utc(attempt.code.end_date):
        return Rejected(RejectionReason.CODE_EXPIRED, "Discount code has expired")
    return None


def _check_usage(attempt: _Attempt) -> Rejected | None:
    code = attempt.code
    if code.max_uses is not None and code.usage_count >= code.max_uses:
        return Rejected(RejectionReason.USAGE_LIMIT_REACHED, "Discount code usage limit reached")
    return None


def _check_minimum_order(attempt: _Attempt) -> Rejected | None:
    minimum = Decimal(attempt.code.minimum_order_value or 0)
    if Decimal(attempt.order.value) < minimum:
        return Rejected(
            RejectionReason.BELOW_MINIMUM_ORDER,
            f"Minimum order value is {round2(minimum)}",
        )
    return None


def _check_offer(attempt: _Attempt) -> Rejected | None:
    code, order, offer = attempt.code, attempt.order, attempt.offer
    target_offer_id = order.offer_id or code.offer_id

    if target_offer_id is None:
        # Store-wide code applied without a specific offer
        return None

    not_redeemable = Rejected(
        RejectionReason.OFFER_NOT_REDEEMABLE, "This offer is not currently available"
    )
    if offer is None or offer.id != target_offer_id:
        return not_redeemable
    if code.offer_id is not None and code.offer_id != offer.id:
        return Rejected(
            RejectionReason.OFFER_NOT_REDEEMABLE, "Discount code does not apply to this offer"
        )
    if offer.merchant_id != code.merchant_id:
        return Rejected(
            RejectionReason.OFFER_NOT_REDEEMABLE, "Discount code does not apply to this offer"
        )
    if not is_redeemable(offer, attempt.now):
        return not_redeemable
    return None


CHECKS: tuple[Callable[[_Attempt], Rejected | None], ...] = (
    _check_active,
    _check_window,
    _check_usage,
    _check_minimum_order,
    _check_offer,
)


def validate(
    code: DiscountCode | None,
    order: OrderContext,
    now: datetime,
    offer: Offer | None = None,
) -> ValidationResult:
    """
    Decide whether ``code`` applies to ``order`` at ``now``.

    ``offer`` is the offer the order targets (``order.offer_id``) or, when the
    order names none, the offer the code is scoped to.
    """
    if code is None:
        return Rejected(RejectionReason.CODE_NOT_FOUND, "Invalid discount code")

    attempt = _Attempt(code=code, order=order, now=now, offer=offer)
    for check in CHECKS:
        rejection = check(attempt)
        if rejection is not None:
            return rejection

    return Accepted(
        code_id=code.id,
        discount_amount=compute_discount(code.discount_type, code.discount_value, order.value),
    )
