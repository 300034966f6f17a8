"""Unit tests for discount code validation and discount computation."""

import uuid
from datetime import timedelta
from decimal import Decimal

import pytest

from app.domain.discount_rules import (
    CHECKS,
    Accepted,
    OrderContext,
    Rejected,
    RejectionReason,
    compute_discount,
    round2,
    validate,
)
from app.models.discount_code import DiscountType

from tests.helpers.factories import BASE_TIME, build_approved_offer, build_code

NOW = BASE_TIME


def order(value: str, offer_id: uuid.UUID | None = None) -> OrderContext:
    return OrderContext(value=Decimal(value), offer_id=offer_id)


class TestComputeDiscount:
    def test_percentage_rounds_half_up(self):
        # 12.5% of 10.05 = 1.25625
        assert compute_discount(DiscountType.PERCENTAGE, Decimal("12.5"), Decimal("10.05")) == Decimal("1.26")
        # 10% of 0.05 = 0.005
        assert compute_discount(DiscountType.PERCENTAGE, Decimal("10"), Decimal("0.05")) == Decimal("0.01")

    def test_percentage_of_order(self):
        assert compute_discount(DiscountType.PERCENTAGE, Decimal("20"), Decimal("30.00")) == Decimal("6.00")

    def test_twenty_percent_of_99_99(self):
        # 19.998 rounds to 20.00
        assert compute_discount(DiscountType.PERCENTAGE, Decimal("20"), Decimal("99.99")) == Decimal("20.00")

    def test_full_percentage_equals_order(self):
        assert compute_discount(DiscountType.PERCENTAGE, Decimal("100"), Decimal("42.10")) == Decimal("42.10")

    def test_fixed_amount(self):
        assert compute_discount(DiscountType.FIXED, Decimal("15"), Decimal("40.00")) == Decimal("15.00")

    def test_fixed_amount_clamped_to_order_value(self):
        assert compute_discount(DiscountType.FIXED, Decimal("50"), Decimal("20.00")) == Decimal("20.00")

    def test_zero_order_gets_zero_discount(self):
        assert compute_discount(DiscountType.FIXED, Decimal("10"), Decimal("0")) == Decimal("0.00")

    @pytest.mark.parametrize(
        "discount_type, value, order_value",
        [
            (DiscountType.PERCENTAGE, "33.33", "0.01"),
            (DiscountType.PERCENTAGE, "99.99", "1234.56"),
            (DiscountType.FIXED, "0.01", "0.01"),
            (DiscountType.FIXED, "999", "0.99"),
        ],
    )
    def test_discount_within_order_value(self, discount_type, value, order_value):
        amount = compute_discount(discount_type, Decimal(value), Decimal(order_value))
        assert Decimal("0") <= amount <= Decimal(order_value)

    def test_round2(self):
        assert round2(Decimal("2.345")) == Decimal("2.35")
        assert round2(Decimal("2.344")) == Decimal("2.34")


class TestValidateAccepts:
    def test_save20_on_thirty(self):
        offer = build_approved_offer()
        code = build_code(merchant_id=offer.merchant_id, offer_id=offer.id, max_uses=1)
        result = validate(code, order("30.00", offer.id), NOW, offer)
        assert isinstance(result, Accepted)
        assert result.accepted is True
        assert result.code_id == code.id
        assert result.discount_amount == Decimal("6.00")

    def test_store_wide_code_without_offer(self):
        result = validate(build_code(), order("50.00"), NOW)
        assert isinstance(result, Accepted)
        assert result.discount_amount == Decimal("10.00")

    def test_code_scope_supplies_the_offer(self):
        offer = build_approved_offer()
        code = build_code(merchant_id=offer.merchant_id, offer_id=offer.id)
        assert isinstance(validate(code, order("10.00"), NOW, offer), Accepted)

    def test_minimum_order_boundary_is_inclusive(self):
        code = build_code(minimum_order_value=Decimal("25.00"))
        assert isinstance(validate(code, order("25.00"), NOW), Accepted)

    def test_window_boundaries_are_inclusive(self):
        code = build_code(start_date=NOW, end_date=NOW + timedelta(days=1))
        assert isinstance(validate(code, order("10"), NOW), Accepted)
        assert isinstance(validate(code, order("10"), NOW + timedelta(days=1)), Accepted)


class TestValidateRejects:
    def reason(self, *args, **kwargs) -> RejectionReason:
        result = validate(*args, **kwargs)
        assert isinstance(result, Rejected)
        assert result.accepted is False
        assert result.message
        return result.reason

    def test_unknown_code(self):
        assert self.reason(None, order("10"), NOW) == RejectionReason.CODE_NOT_FOUND

    def test_inactive_code_looks_unknown(self):
        code = build_code(is_active=False)
        assert self.reason(code, order("10"), NOW) == RejectionReason.CODE_NOT_FOUND

    def test_not_yet_valid(self):
        code = build_code(start_date=NOW + timedelta(seconds=1))
        assert self.reason(code, order("10"), NOW) == RejectionReason.CODE_NOT_YET_VALID

    def test_expired(self):
        code = build_code(end_date=NOW - timedelta(seconds=1))
        assert self.reason(code, order("10"), NOW) == RejectionReason.CODE_EXPIRED

    def test_usage_limit_reached(self):
        code = build_code(max_uses=3, usage_count=3)
        assert self.reason(code, order("10"), NOW) == RejectionReason.USAGE_LIMIT_REACHED

    def test_below_minimum_order(self):
        code = build_code(minimum_order_value=Decimal("25.00"))
        assert self.reason(code, order("24.99"), NOW) == RejectionReason.BELOW_MINIMUM_ORDER

    def test_expired_offer(self):
        offer = build_approved_offer(end_date=NOW - timedelta(days=1))
        code = build_code(merchant_id=offer.merchant_id, offer_id=offer.id)
        assert self.reason(code, order("30", offer.id), NOW, offer) == RejectionReason.OFFER_NOT_REDEEMABLE

    def test_paused_offer(self):
        offer = build_approved_offer(is_active=False)
        code = build_code(merchant_id=offer.merchant_id)
        assert self.reason(code, order("30", offer.id), NOW, offer) == RejectionReason.OFFER_NOT_REDEEMABLE

    def test_pending_offer(self):
        offer = build_approved_offer(is_approved=False)
        code = build_code(merchant_id=offer.merchant_id)
        assert self.reason(code, order("30", offer.id), NOW, offer) == RejectionReason.OFFER_NOT_REDEEMABLE

    def test_missing_offer(self):
        code = build_code()
        assert self.reason(code, order("30", uuid.uuid4()), NOW, None) == RejectionReason.OFFER_NOT_REDEEMABLE

    def test_code_scoped_to_another_offer(self):
        offer = build_approved_offer()
        code = build_code(merchant_id=offer.merchant_id, offer_id=uuid.uuid4())
        assert self.reason(code, order("30", offer.id), NOW, offer) == RejectionReason.OFFER_NOT_REDEEMABLE

    def test_code_of_another_merchant(self):
        offer = build_approved_offer()
        code = build_code(merchant_id=uuid.uuid4())
        assert self.reason(code, order("30", offer.id), NOW, offer) == RejectionReason.OFFER_NOT_REDEEMABLE


class TestCheckOrder:
    """The first failing check decides the reason."""

    def test_checks_run_in_documented_order(self):
        names = [check.__name__ for check in CHECKS]
        assert names == [
            "_check_active",
            "_check_window",
            "_check_usage",
            "_check_minimum_order",
            "_check_offer",
        ]

    def test_expiry_reported_before_usage_limit(self):
        code = build_code(end_date=NOW - timedelta(days=1), max_uses=1, usage_count=1)
        result = validate(code, order("10"), NOW)
        assert result.reason == RejectionReason.CODE_EXPIRED

    def test_usage_limit_reported_before_minimum_order(self):
        code = build_code(max_uses=1, usage_count=1, minimum_order_value=Decimal("100"))
        result = validate(code, order("10"), NOW)
        assert result.reason == RejectionReason.USAGE_LIMIT_REACHED

    def test_minimum_order_reported_before_offer(self):
        offer = build_approved_offer(is_active=False)
        code = build_code(merchant_id=offer.merchant_id, minimum_order_value=Decimal("100"))
        result = validate(code, order("10", offer.id), NOW, offer)
        assert result.reason == RejectionReason.BELOW_MINIMUM_ORDER

    def test_validate_does_not_touch_counters(self):
        code = build_code(max_uses=5, usage_count=2)
        validate(code, order("30"), NOW)
        assert code.usage_count == 2
        assert code.total_savings == Decimal("0")
