"""
Authentication API endpoints (bearer flow).

This module provides endpoints for:
- Customer sign-up and sign-in (JWT access token + refresh token in the body)
- Token refresh (single-use rotation with reuse detection)
- Sign-out (turn in the refresh token)
- Current principal claims
"""

from typing import Any

from fastapi import APIRouter, HTTPException, Response, status

from freightdesk.config import settings
from freightdesk.core.auth import AuthServiceDep, CurrentClaims
from freightdesk.core.exceptions import AccountCreationError, AccountExistsError, AuthError
from freightdesk.core.logging import get_logger
from freightdesk.schemas.auth import (
    AuthResponse,
    RefreshRequest,
    SignInRequest,
    SignOutRequest,
    SignUpRequest,
    UserInfo,
)
from freightdesk.services.auth import AuthResult

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

REFRESH_FAILED_DETAIL = "Refresh failed. Please sign in again."


def user_info(result: AuthResult) -> UserInfo:
    principal = result.principal
    return UserInfo(
        user_id=principal.user_id,
        email=principal.email,
        role=principal.role,
        nickname=principal.nickname,
        customer_id=principal.customer_id,
        pilot_id=principal.pilot_id,
    )


def _auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(
        access_token=result.access_token,
        refresh_token=result.refresh_token,
        token_type="bearer",
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=user_info(result),
    )


def signup_failed(e: AccountExistsError | AccountCreationError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)


def signin_failed(e: AuthError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=e.message,
        headers={"WWW-Authenticate": "Bearer"},
    )


def refresh_failed() -> HTTPException:
    """One response for every refresh rejection; the log records which check failed."""
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=REFRESH_FAILED_DETAIL,
        headers={"WWW-Authenticate": "Bearer"},
    )


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def sign_up(data: SignUpRequest, auth: AuthServiceDep) -> AuthResponse:
    """
    Register a customer account and sign it in.

    Pilots and administrators are provisioned by an administrator instead.
    """
    try:
        result = await auth.sign_up(data.email, data.password, data.nickname)
    except (AccountExistsError, AccountCreationError) as e:
        raise signup_failed(e) from e

    return _auth_response(result)


@router.post("/signin", response_model=AuthResponse)
async def sign_in(credentials: SignInRequest, auth: AuthServiceDep) -> AuthResponse:
    """
    Authenticate with e-mail and password.

    Starts a new refresh token family bound to the caller's fingerprint.
    """
    try:
        result = await auth.sign_in(credentials.email, credentials.password)
    except AuthError as e:
        raise signin_failed(e) from e

    return _auth_response(result)


@router.post("/refresh", response_model=AuthResponse)
async def refresh(data: RefreshRequest, auth: AuthServiceDep) -> AuthResponse:
    """
    Exchange a refresh token for a new token pair.

    Refresh tokens are single use. Presenting one a second time revokes
    every token descended from the same sign-in, so clients must never
    retry this call with the same token.
    """
    try:
        result = await auth.refresh(data.refresh_token)
    except AuthError as e:
        raise refresh_failed() from e

    return _auth_response(result)


@router.post("/signout", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(data: SignOutRequest, auth: AuthServiceDep) -> Response:
    """
    Turn in a refresh token.

    Always succeeds. The access token stays valid until it expires.
    """
    await auth.sign_out(data.refresh_token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me")
async def get_current_user_info(claims: CurrentClaims) -> dict[str, Any]:
    """Claims carried by the caller's access token."""
    return {
        "user_id": claims["sub"],
        "email": claims.get("email"),
        "role": claims.get("role"),
        "customer_id": claims.get("customer_id"),
        "pilot_id": claims.get("pilot_id"),
        "expires_at": claims["exp"],
    }
