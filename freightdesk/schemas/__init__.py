"""
Pydantic schemas for API request/response validation.
"""

from freightdesk.schemas.auth import (
    AuthResponse,
    AuthWebResponse,
    CreateAdminRequest,
    CreatePilotRequest,
    RefreshRequest,
    SignInRequest,
    SignOutRequest,
    SignUpRequest,
    UserInfo,
)

__all__ = [
    "AuthResponse",
    "AuthWebResponse",
    "CreateAdminRequest",
    "CreatePilotRequest",
    "RefreshRequest",
    "SignInRequest",
    "SignOutRequest",
    "SignUpRequest",
    "UserInfo",
]
