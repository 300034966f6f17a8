"""Bearer token encoding and decoding."""

import uuid as uuid_pkg
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

from jose import jwt

from app.config import settings


class Role(str, Enum):
    """Who is calling. Admins moderate; merchants publish; customers redeem."""

    ADMIN = "admin"
    MERCHANT = "merchant"
    CUSTOMER = "customer"


def create_access_token(
    subject: uuid_pkg.UUID,
    role: Role | str,
    expires_in: timedelta = timedelta(hours=1),
) -> str:
    """Issue an HS256 token. Used by the dev token script and tests."""
    now = datetime.now(UTC)
    claims = {
        "sub": str(subject),
        "role": Role(role).value,
        "aud": settings.jwt_audience,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_in).timestamp()),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    """Verify signature, expiry and audience. Raises ``jose.JWTError``."""
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
    )
