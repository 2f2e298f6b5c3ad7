"""
Authentication API endpoints (browser flow).

Same flows as the bearer endpoints, but both tokens travel in HTTP-only
cookies and never appear in a response body. The refresh cookie is scoped
to this router's path so it is only sent to the endpoints that consume it.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from freightdesk.api.v1.auth import refresh_failed, signin_failed, signup_failed, user_info
from freightdesk.config import settings
from freightdesk.core.auth import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    AuthServiceDep,
    get_refresh_token_from_cookie,
)
from freightdesk.core.exceptions import AccountCreationError, AccountExistsError, AuthError
from freightdesk.core.logging import get_logger
from freightdesk.schemas.auth import AuthWebResponse, SignInRequest, SignUpRequest
from freightdesk.services.auth import AuthResult

logger = get_logger(__name__)

router = APIRouter(prefix="/auth/web", tags=["Authentication (web)"])

REFRESH_COOKIE_PATH = f"{settings.API_V1_STR}/auth/web"

RefreshCookie = Annotated[str | None, Depends(get_refresh_token_from_cookie)]


def _set_auth_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    """
    Set authentication cookies in response.

    Args:
        response: FastAPI response object
        access_token: JWT access token
        refresh_token: Refresh token
    """
    response.set_cookie(
        key=REFRESH_COOKIE,
        value=refresh_token,
        path=REFRESH_COOKIE_PATH,
        httponly=True,  # Prevent JavaScript access (XSS protection)
        secure=settings.ENVIRONMENT == "production",  # HTTPS only in production
        samesite="strict",  # CSRF protection
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,  # seconds
    )

    response.set_cookie(
        key=ACCESS_COOKIE,
        value=access_token,
        path="/",
        httponly=True,
        secure=settings.ENVIRONMENT == "production",
        samesite="strict",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,  # Match JWT expiration
    )


def _clear_auth_cookies(response: Response) -> None:
    """
    Clear authentication cookies from response.

    Args:
        response: FastAPI response object
    """
    # Match set_cookie params or the browser keeps the original
    response.delete_cookie(
        key=REFRESH_COOKIE,
        path=REFRESH_COOKIE_PATH,
        httponly=True,
        secure=settings.ENVIRONMENT == "production",
        samesite="strict",
    )
    response.delete_cookie(
        key=ACCESS_COOKIE,
        path="/",
        httponly=True,
        secure=settings.ENVIRONMENT == "production",
        samesite="strict",
    )


def _web_response(response: Response, result: AuthResult) -> AuthWebResponse:
    _set_auth_cookies(response, result.access_token, result.refresh_token)
    return AuthWebResponse(user=user_info(result))


@router.post("/signup", response_model=AuthWebResponse, status_code=status.HTTP_201_CREATED)
async def web_sign_up(
    data: SignUpRequest, response: Response, auth: AuthServiceDep
) -> AuthWebResponse:
    """Register a customer account and set the session cookies."""
    try:
        result = await auth.sign_up(data.email, data.password, data.nickname)
    except (AccountExistsError, AccountCreationError) as e:
        raise signup_failed(e) from e

    return _web_response(response, result)


@router.post("/signin", response_model=AuthWebResponse)
async def web_sign_in(
    credentials: SignInRequest, response: Response, auth: AuthServiceDep
) -> AuthWebResponse:
    """Authenticate with e-mail and password and set the session cookies."""
    try:
        result = await auth.sign_in(credentials.email, credentials.password)
    except AuthError as e:
        raise signin_failed(e) from e

    return _web_response(response, result)


@router.post("/refresh", response_model=AuthWebResponse)
async def web_refresh(
    response: Response, refresh_token: RefreshCookie, auth: AuthServiceDep
) -> AuthWebResponse:
    """
    Rotate the refresh cookie and reissue the access cookie.

    A browser that loses the race between two tabs refreshing at once will
    present an already-consumed token and lose the whole session.
    """
    if not refresh_token:
        logger.debug("web_refresh_cookie_missing")
        raise refresh_failed()

    try:
        result = await auth.refresh(refresh_token)
    except AuthError as e:
        raise refresh_failed() from e

    return _web_response(response, result)


@router.post("/signout", status_code=status.HTTP_204_NO_CONTENT)
async def web_sign_out(refresh_token: RefreshCookie, auth: AuthServiceDep) -> Response:
    """Turn in the refresh cookie, if any, and clear both cookies. Always succeeds."""
    if refresh_token:
        await auth.sign_out(refresh_token)

    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    _clear_auth_cookies(response)
    return response
