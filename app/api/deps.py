"""
Shared FastAPI dependencies.

Bearer-token authentication and role checks. Tokens are issued elsewhere;
this module only verifies them (HS256, JWT_SECRET) and turns the payload
into an Actor.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Request
import jwt
import logging

from app.core.config import settings
from app.core.errors import ForbiddenError, UnauthorizedError
from app.db.models import Role


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    """The authenticated caller."""
    id: str
    role: str
    name: Optional[str] = None
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value


def create_access_token(actor_id: str, role: str, expires_in: timedelta = timedelta(days=30), **claims) -> str:
    """
    Sign a token for an actor.

    Used by the seed script and the tests; production tokens come from
    the external auth service with the same claims.
    """
    now = datetime.now(timezone.utc)
    payload = {"id": actor_id, "role": role, "iat": now, "exp": now + expires_in, **claims}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def _bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def _decode(token: str) -> Actor:
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        logger.info("Rejected expired token")
        raise UnauthorizedError("Token expired")
    except jwt.InvalidTokenError as e:
        logger.warning(f"Rejected invalid token: {e}")
        raise UnauthorizedError("Not authorized to access this route")

    actor_id = payload.get("id") or payload.get("sub")
    if not actor_id:
        raise UnauthorizedError("Not authorized to access this route")
    return Actor(
        id=str(actor_id),
        role=payload.get("role", Role.USER.value),
        name=payload.get("name"),
        email=payload.get("email"),
    )


def get_current_actor(request: Request) -> Actor:
    """
    Require a valid bearer token.

    Raises:
        UnauthorizedError (401): header missing, malformed, expired or forged
    """
    token = _bearer_token(request)
    if not token:
        logger.debug("Request without bearer token")
        raise UnauthorizedError("Not authorized to access this route")
    return _decode(token)


def get_optional_actor(request: Request) -> Optional[Actor]:
    """The caller when a valid token is sent, otherwise None (public routes)."""
    token = _bearer_token(request)
    if not token:
        return None
    try:
        return _decode(token)
    except UnauthorizedError:
        return None


def require_roles(*roles: str):
    """
    Dependency factory: the caller must hold one of the given roles.

    Usage:
        @router.post("/", dependencies=[Depends(require_roles("agent", "admin"))])
    """
    def checker(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role not in roles:
            logger.warning(f"Actor {actor.id} with role '{actor.role}' denied; needs one of {roles}")
            raise ForbiddenError(f"User role '{actor.role}' is not authorized to access this route")
        return actor

    return checker
