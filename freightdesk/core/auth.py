"""
Authentication dependencies for FastAPI route protection.

This module provides dependency functions for:
- Building the auth services for a request (store, identity, fingerprint)
- Extracting and verifying JWT access tokens from requests
- Protecting routes with role requirements
- Reading the refresh token cookie of the web flow
"""

from typing import Annotated, Any

from fastapi import Cookie, Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from freightdesk.config import UserRole
from freightdesk.core.clock import Clock, system_clock
from freightdesk.core.database import get_session_factory
from freightdesk.core.fingerprint import FingerprintProvider, RequestFingerprintProvider
from freightdesk.core.logging import bind_context
from freightdesk.core.security import verify_access_token
from freightdesk.services.auth import AuthService
from freightdesk.services.identity import IdentityService
from freightdesk.services.refresh_token_store import RefreshTokenStore

ACCESS_COOKIE = "fd_access"
REFRESH_COOKIE = "fd_refresh"

# Optional so the web flow (cookie only) can share the dependency
bearer_scheme = HTTPBearer(auto_error=False)

SessionFactory = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]


def get_clock() -> Clock:
    """Time source for the auth services. Overridden in tests."""
    return system_clock


def get_fingerprint_provider(request: Request) -> FingerprintProvider:
    """Fingerprint of the calling client, derived from this request."""
    return RequestFingerprintProvider(request)


def get_refresh_token_store(
    session_factory: SessionFactory,
    clock: Annotated[Clock, Depends(get_clock)],
) -> RefreshTokenStore:
    return RefreshTokenStore(session_factory, clock=clock)


def get_identity_service(
    session_factory: SessionFactory,
    clock: Annotated[Clock, Depends(get_clock)],
) -> IdentityService:
    return IdentityService(session_factory, clock=clock)


def get_auth_service(
    store: Annotated[RefreshTokenStore, Depends(get_refresh_token_store)],
    identity: Annotated[IdentityService, Depends(get_identity_service)],
    fingerprints: Annotated[FingerprintProvider, Depends(get_fingerprint_provider)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> AuthService:
    return AuthService(store, identity, fingerprints, clock=clock)


async def get_current_claims(
    fd_access: Annotated[str | None, Cookie()] = None,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)] = None,
) -> dict[str, Any]:
    """
    Extract and verify the JWT access token.

    The Authorization header wins over the cookie when both are present.

    Returns:
        Decoded token claims

    Raises:
        HTTPException: 401 if token is missing, invalid, or expired
    """
    token = credentials.credentials if credentials else fd_access
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    claims = verify_access_token(token)
    if claims is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    bind_context(user_id=claims["sub"])
    return claims


async def require_admin(
    claims: Annotated[dict[str, Any], Depends(get_current_claims)],
) -> dict[str, Any]:
    """
    Require the caller to be an administrator.

    Raises:
        HTTPException: 403 if the caller holds another role
    """
    if claims.get("role") != UserRole.ADMINISTRATOR:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return claims


async def get_refresh_token_from_cookie(
    fd_refresh: Annotated[str | None, Cookie()] = None,
) -> str | None:
    """Refresh token from the HTTP-only cookie, if the browser sent one."""
    return fd_refresh or None


# Type aliases for dependency injection
CurrentClaims = Annotated[dict[str, Any], Depends(get_current_claims)]
AdminClaims = Annotated[dict[str, Any], Depends(require_admin)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
IdentityServiceDep = Annotated[IdentityService, Depends(get_identity_service)]
