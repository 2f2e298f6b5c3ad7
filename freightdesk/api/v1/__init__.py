"""
API v1 Router
"""

from fastapi import APIRouter

from freightdesk.api.v1 import admin, auth, auth_web

router = APIRouter()

# Include all endpoint routers
router.include_router(auth.router)
router.include_router(auth_web.router)
router.include_router(admin.router)

__all__ = ["router"]
