from fastapi import APIRouter

from app.api.v1 import admin, discount_codes, offers, subscriptions

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(offers.router)
api_router.include_router(discount_codes.router)
api_router.include_router(subscriptions.router)
api_router.include_router(admin.router)
