from app.api.v1 import admin, discount_codes, offers, subscriptions

__all__ = [
    "offers",
    "discount_codes",
    "subscriptions",
    "admin",
]
