"""API dependencies - re-exports from submodules."""

from .auth import (
    Actor,
    AdminActor,
    CurrentActor,
    DbSession,
    MerchantActor,
    Now,
    get_current_actor,
    get_now,
    require_admin,
    require_merchant,
    security,
)

__all__ = [
    "security",
    "Actor",
    "get_current_actor",
    "get_now",
    "require_admin",
    "require_merchant",
    "DbSession",
    "CurrentActor",
    "AdminActor",
    "MerchantActor",
    "Now",
]
