"""JWT authentication dependency for FastAPI.

Validates Bearer tokens from the Authorization header and extracts the user id
and marketplace role. Tokens are issued elsewhere; this service only verifies.
"""

import logging
import uuid
from dataclasses import dataclass

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from src.config import settings
from src.exceptions import ForbiddenException, UnauthorizedException
from src.models.enums import UserRole

logger = logging.getLogger(__name__)

# FastAPI security scheme: extracts Bearer token from Authorization header
_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class AuthenticatedUser:
    """Represents the authenticated user extracted from a JWT token."""

    id: uuid.UUID
    role: UserRole
    email: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def _decode_token(token: str) -> dict:
    """Decode and validate a JWT token. Raises UnauthorizedException on failure."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
        return payload
    except JWTError as exc:
        logger.warning("JWT validation failed: %s", exc)
        raise UnauthorizedException("Invalid or expired token") from exc


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> AuthenticatedUser:
    """FastAPI dependency that extracts and validates the current user from JWT."""
    if credentials is None:
        raise UnauthorizedException("Authentication required")

    payload = _decode_token(credentials.credentials)

    try:
        user = AuthenticatedUser(
            id=uuid.UUID(payload["sub"]),
            role=UserRole(str(payload.get("role", UserRole.CUSTOMER.value)).lower()),
            email=payload.get("email"),
        )
    except (KeyError, ValueError) as exc:
        raise UnauthorizedException("Token is missing required claims") from exc

    request.state.user = user
    return user


# ---------------------------------------------------------------------------
# Role guards
# ---------------------------------------------------------------------------


def require_customer(user: AuthenticatedUser) -> None:
    """Raise ForbiddenException unless the user acts as a customer."""
    if user.role != UserRole.CUSTOMER:
        raise ForbiddenException("This action requires a customer account")


def require_vendor(user: AuthenticatedUser) -> None:
    """Raise ForbiddenException unless the user acts as a vendor."""
    if user.role != UserRole.VENDOR:
        raise ForbiddenException("This action requires a vendor account")


def require_admin(user: AuthenticatedUser) -> None:
    if user.role != UserRole.ADMIN:
        raise ForbiddenException("This action requires an admin account")
