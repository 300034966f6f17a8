"""Unit tests for auth dependencies: token validation and role guards."""

import uuid
from datetime import timedelta

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from app.api.deps.auth import Actor, get_current_actor, require_admin, require_merchant
from app.config import settings
from app.core.security import Role, create_access_token


def credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestGetCurrentActor:
    """Tests for bearer token decoding."""

    def setup_method(self):
        self.actor_id = uuid.uuid4()

    @pytest.mark.asyncio
    async def test_raises_401_when_no_credentials(self):
        with pytest.raises(HTTPException) as exc_info:
            await get_current_actor(None)
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_returns_actor_for_valid_token(self):
        token = create_access_token(self.actor_id, Role.MERCHANT)
        actor = await get_current_actor(credentials(token))
        assert actor == Actor(id=self.actor_id, role=Role.MERCHANT)

    @pytest.mark.asyncio
    async def test_rejects_expired_token(self):
        token = create_access_token(self.actor_id, Role.MERCHANT, expires_in=timedelta(seconds=-60))
        with pytest.raises(HTTPException) as exc_info:
            await get_current_actor(credentials(token))
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_rejects_wrong_signature(self):
        token = jwt.encode(
            {"sub": str(self.actor_id), "role": "admin", "aud": settings.jwt_audience},
            "not-the-secret",
            algorithm="HS256",
        )
        with pytest.raises(HTTPException) as exc_info:
            await get_current_actor(credentials(token))
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_rejects_unknown_role(self):
        token = jwt.encode(
            {"sub": str(self.actor_id), "role": "superuser", "aud": settings.jwt_audience},
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(HTTPException):
            await get_current_actor(credentials(token))

    @pytest.mark.asyncio
    async def test_missing_role_defaults_to_customer(self):
        token = jwt.encode(
            {"sub": str(self.actor_id), "aud": settings.jwt_audience},
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
        actor = await get_current_actor(credentials(token))
        assert actor.role == Role.CUSTOMER


class TestRoleGuards:
    @pytest.mark.asyncio
    async def test_admin_passes_both_guards(self):
        admin = Actor(id=uuid.uuid4(), role=Role.ADMIN)
        assert await require_admin(admin) is admin
        assert await require_merchant(admin) is admin

    @pytest.mark.asyncio
    async def test_merchant_is_not_admin(self):
        merchant = Actor(id=uuid.uuid4(), role=Role.MERCHANT)
        assert await require_merchant(merchant) is merchant
        with pytest.raises(HTTPException) as exc_info:
            await require_admin(merchant)
        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_customer_cannot_act_as_merchant(self):
        with pytest.raises(HTTPException) as exc_info:
            await require_merchant(Actor(id=uuid.uuid4(), role=Role.CUSTOMER))
        assert exc_info.value.status_code == 403
