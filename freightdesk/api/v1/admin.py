"""
Admin API endpoints for provisioning staff accounts.

Pilots and administrators cannot sign themselves up. An administrator
creates the account here and hands the credentials over out of band; the
new account starts its own session with a normal sign-in.
"""

from fastapi import APIRouter, HTTPException, status

from freightdesk.core.auth import AdminClaims, IdentityServiceDep
from freightdesk.core.exceptions import AccountCreationError, AccountExistsError
from freightdesk.core.logging import get_logger
from freightdesk.schemas.auth import CreateAdminRequest, CreatePilotRequest, UserInfo
from freightdesk.services.identity import Principal

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def _user_info(principal: Principal) -> UserInfo:
    return UserInfo(
        user_id=principal.user_id,
        email=principal.email,
        role=principal.role,
        nickname=principal.nickname,
        customer_id=principal.customer_id,
        pilot_id=principal.pilot_id,
    )


@router.post("/pilots", response_model=UserInfo, status_code=status.HTTP_201_CREATED)
async def create_pilot(
    data: CreatePilotRequest,
    admin: AdminClaims,
    identity: IdentityServiceDep,
) -> UserInfo:
    """
    Create a pilot account with its pilot profile.

    Requires the administrator role.
    """
    try:
        principal = await identity.create_pilot(
            email=data.email,
            password=data.password,
            short_name=data.short_name,
            full_name=data.full_name,
            bio=data.bio,
            avatar_url=data.avatar_url,
        )
    except (AccountExistsError, AccountCreationError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e

    logger.info("pilot_provisioned", user_id=principal.user_id, admin_id=admin["sub"])
    return _user_info(principal)


@router.post("/admins", response_model=UserInfo, status_code=status.HTTP_201_CREATED)
async def create_admin(
    data: CreateAdminRequest,
    admin: AdminClaims,
    identity: IdentityServiceDep,
) -> UserInfo:
    """
    Create another administrator account.

    Requires the administrator role.
    """
    try:
        principal = await identity.create_admin(email=data.email, password=data.password)
    except (AccountExistsError, AccountCreationError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e

    logger.info("admin_provisioned", user_id=principal.user_id, admin_id=admin["sub"])
    return _user_info(principal)
