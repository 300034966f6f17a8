"""Plan catalogue - default subscription plans and the implicit free tier."""

from dataclasses import dataclass


@dataclass(frozen=True)
class PlanConfig:
    """Configuration for a subscription plan tier."""

    tier: str
    display_name: str
    description: str
    price: int  # Price per billing period in minor units (halalas)
    billing_period: str  # 'monthly', 'yearly'
    offer_limit: int | None  # None = unlimited published offers
    sort_order: int
    is_popular: bool = False

    @property
    def is_unlimited(self) -> bool:
        return self.offer_limit is None


FREE_TIER = "free"

# Seeded into subscription_plans on first start. "free" is never sold; it is the
# quota applied to merchants without an active subscription.
PLANS: dict[str, PlanConfig] = {
    "free": PlanConfig(
        tier="free",
        display_name="Free",
        description="Implicit tier for merchants without an active subscription",
        price=0,
        billing_period="monthly",
        offer_limit=3,
        sort_order=0,
    ),
    "starter": PlanConfig(
        tier="starter",
        display_name="Starter",
        description="Perfect for small businesses just getting started",
        price=9900,  # 99 SAR/mo
        billing_period="monthly",
        offer_limit=5,
        sort_order=1,
    ),
    "professional": PlanConfig(
        tier="professional",
        display_name="Professional",
        description="Ideal for growing businesses with more needs",
        price=19900,  # 199 SAR/mo
        billing_period="monthly",
        offer_limit=20,
        sort_order=2,
        is_popular=True,
    ),
    "enterprise": PlanConfig(
        tier="enterprise",
        display_name="Enterprise",
        description="For large businesses with unlimited needs",
        price=39900,  # 399 SAR/mo
        billing_period="monthly",
        offer_limit=None,
        sort_order=3,
    ),
}


def get_plan(tier: str) -> PlanConfig:
    """
    Get plan configuration by tier name.

    Tier names are matched case-insensitively. Unknown tiers resolve to the
    free tier, which carries the lowest quota.
    """
    return PLANS.get(tier.lower(), PLANS[FREE_TIER])


def free_plan() -> PlanConfig:
    """The quota applied when a merchant has no active subscription."""
    return PLANS[FREE_TIER]
