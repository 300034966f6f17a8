"""JWT validation and actor authentication dependencies.

This module provides:
- Bearer token validation (HS256, shared secret)
- The authenticated ``Actor`` and role guards
- Annotated aliases for the database session and the clock
"""

import logging
import uuid as uuid_pkg
from dataclasses import dataclass
from datetime import datetime
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, get_clock
from app.core.database import get_db
from app.core.security import Role, decode_access_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Actor:
    """The caller identified by the bearer token."""

    id: uuid_pkg.UUID
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


async def get_current_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Actor:
    """Validate the bearer token and return the caller."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    try:
        payload = decode_access_token(credentials.credentials)
        actor_id = uuid_pkg.UUID(payload["sub"])
        role = Role(payload.get("role", Role.CUSTOMER.value))
    except (JWTError, KeyError, ValueError) as e:
        logger.info(f"Rejected bearer token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from None

    return Actor(id=actor_id, role=role)


def get_now(clock: Clock = Depends(get_clock)) -> datetime:
    """The request's notion of the current time."""
    return clock.now()


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db)]
CurrentActor = Annotated[Actor, Depends(get_current_actor)]
Now = Annotated[datetime, Depends(get_now)]


async def require_admin(actor: CurrentActor) -> Actor:
    """Require the caller to be a platform admin."""
    if actor.role != Role.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return actor


async def require_merchant(actor: CurrentActor) -> Actor:
    """Require the caller to be a merchant. Admins may act as merchants."""
    if actor.role not in (Role.MERCHANT, Role.ADMIN):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Merchant access required",
        )
    return actor


AdminActor = Annotated[Actor, Depends(require_admin)]
MerchantActor = Annotated[Actor, Depends(require_merchant)]
