"""Configuration package."""

from app.config.plans import FREE_TIER, PLANS, PlanConfig, free_plan, get_plan
from app.config.settings import Settings, settings

__all__ = [
    "FREE_TIER",
    "PlanConfig",
    "PLANS",
    "free_plan",
    "get_plan",
    "Settings",
    "settings",
]
