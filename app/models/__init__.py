from app.models.discount_code import (
    DiscountCode,
    DiscountCodeCreate,
    DiscountCodeUpdate,
    DiscountCodeUsage,
    DiscountType,
)
from app.models.offer import LinkType, Offer, OfferCreate, OfferUpdate
from app.models.subscription import (
    BillingPeriod,
    MerchantSubscription,
    SubscriptionPlan,
    SubscriptionPlanCreate,
    SubscriptionPlanUpdate,
    SubscriptionStatus,
)

__all__ = [
    "Offer",
    "OfferCreate",
    "OfferUpdate",
    "LinkType",
    "DiscountCode",
    "DiscountCodeCreate",
    "DiscountCodeUpdate",
    "DiscountCodeUsage",
    "DiscountType",
    "SubscriptionPlan",
    "SubscriptionPlanCreate",
    "SubscriptionPlanUpdate",
    "MerchantSubscription",
    "SubscriptionStatus",
    "BillingPeriod",
]
