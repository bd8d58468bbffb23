"""Bearer token authentication.

Tokens are issued by the identity provider; ``sub`` carries the user id.
The authenticated profile is resolved into an ``Actor`` with its
department hierarchy so handlers can pass it straight to the services.
"""

from datetime import datetime, timedelta, timezone
from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from taskhub.api.v1.deps import Repository, get_access_resolver
from taskhub.config import get_settings
from taskhub.domain.authorization import Actor
from taskhub.services.access_control import AccessResolver

logger = structlog.get_logger()
security = HTTPBearer(auto_error=False)


def create_access_token(user_id: UUID, expires_delta: timedelta | None = None) -> str:
    """Create a JWT access token."""
    settings = get_settings()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.jwt_access_token_expire_minutes
        )

    to_encode = {
        "sub": str(user_id),
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(
        to_encode,
        settings.jwt_secret_key.get_secret_value(),
        algorithm=settings.jwt_algorithm,
    )


def _unauthenticated(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_actor(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    repository: Repository,
    access: Annotated[AccessResolver, Depends(get_access_resolver)],
) -> Actor:
    """Get the acting user from the bearer token."""
    if not credentials:
        raise _unauthenticated("Not authenticated")

    settings = get_settings()
    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.jwt_secret_key.get_secret_value(),
            algorithms=[settings.jwt_algorithm],
        )
        user_id = UUID(payload["sub"])
    except (JWTError, KeyError, ValueError) as e:
        logger.warning("invalid_token", error=str(e))
        raise _unauthenticated("Invalid authentication credentials") from e

    profile = await repository.get_user_profile(user_id)
    if profile is None or not profile.is_active:
        raise _unauthenticated("User not found or inactive")

    return await access.resolve_actor(profile)


CurrentActor = Annotated[Actor, Depends(get_current_actor)]
