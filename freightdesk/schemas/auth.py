"""
Authentication schemas for request/response validation.

This module defines Pydantic models for authentication-related API operations:
- Sign-up and sign-in credentials
- Refresh and sign-out requests (bearer flow carries the token in the body)
- Token and user info responses
- Administrator provisioning of pilot and admin accounts
"""

from pydantic import BaseModel, EmailStr, Field, field_validator

from freightdesk.core.security import validate_password_strength


def _check_password(v: str) -> str:
    is_valid, error_message = validate_password_strength(v)
    if not is_valid:
        raise ValueError(error_message)
    return v


class SignUpRequest(BaseModel):
    """Request schema for customer sign-up."""

    email: EmailStr
    password: str = Field(..., min_length=8, max_length=255)
    nickname: str = Field(..., min_length=1, max_length=50)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        """Validate password strength."""
        return _check_password(v)


class SignInRequest(BaseModel):
    """Request schema for sign-in."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=255)


class RefreshRequest(BaseModel):
    """Request schema for token refresh in the bearer flow."""

    refresh_token: str = Field(..., min_length=1, max_length=512)


class SignOutRequest(BaseModel):
    """Request schema for sign-out in the bearer flow."""

    refresh_token: str = Field(..., min_length=1, max_length=512)


class UserInfo(BaseModel):
    """Public view of the signed-in principal."""

    user_id: str
    email: str
    role: str
    nickname: str | None = None
    customer_id: str | None = None
    pilot_id: str | None = None


class AuthResponse(BaseModel):
    """Response schema for the bearer flow: tokens in the body."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Access token expiration time in seconds from now")
    user: UserInfo


class AuthWebResponse(BaseModel):
    """Response schema for the cookie flow: tokens travel only in HTTP-only cookies."""

    user: UserInfo


class CreatePilotRequest(BaseModel):
    """Request schema for provisioning a pilot account."""

    email: EmailStr
    password: str = Field(..., min_length=8, max_length=255)
    short_name: str = Field(..., min_length=1, max_length=30)
    full_name: str = Field(..., min_length=1, max_length=100)
    bio: str = Field(default="", max_length=2000)
    avatar_url: str | None = Field(default=None, max_length=500)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        """Validate password strength."""
        return _check_password(v)


class CreateAdminRequest(BaseModel):
    """Request schema for provisioning an administrator account."""

    email: EmailStr
    password: str = Field(..., min_length=8, max_length=255)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        """Validate password strength."""
        return _check_password(v)
