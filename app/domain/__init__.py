from app.domain.discount_operations import discount_ops
from app.domain.offer_operations import offer_ops
from app.domain.plan_operations import plan_ops
from app.domain.subscription_operations import subscription_ops

__all__ = [
    "offer_ops",
    "discount_ops",
    "plan_ops",
    "subscription_ops",
]
