"""
User Routes

POST /users/register - Register new user
POST /users/login - Login and get JWT token
GET /users/me - Get current user info
PUT /users/kpi-settings - Update daily target, level, dream companies
GET /users/stats - Recomputed stats with KPI progress
POST /users/extension/auth - Check a token for the browser extension
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from hirepath.core.auth import get_current_user, verify_session
from hirepath.core.errors import NotFound, Unauthorized, ValidationFailed
from hirepath.core.logger import mask_email
from hirepath.services.auth_service import get_auth_service
from hirepath.services.stats_service import get_stats_service
from hirepath.services.user_service import UserService, public_user
from hirepath.schemas.schemas import (
    RegisterRequest, LoginRequest, AuthResponse, UserResponse,
    KpiSettingsUpdate, KpiSettingsResponse, StatsResponse,
    ExtensionAuthRequest, ExtensionAuthResponse
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(request: RegisterRequest):
    """
    Register a new email/password account.

    Returns a session token right away; no separate login needed.
    """
    logger.info("Registration request received for %s", mask_email(request.email))
    service = get_auth_service()
    return service.register(request.email, request.password, request.name)


@router.post("/login", response_model=AuthResponse)
def login(request: LoginRequest):
    """
    Login and receive JWT token.

    Include token in requests: Authorization: Bearer <token>
    """
    service = get_auth_service()
    return service.login(request.email, request.password)


@router.get("/me", response_model=UserResponse)
def get_me(user: dict = Depends(get_current_user)):
    """Get current authenticated user's info."""
    return public_user(user)


@router.put("/kpi-settings", response_model=KpiSettingsResponse)
def update_kpi_settings(data: KpiSettingsUpdate, user: dict = Depends(get_current_user)):
    """Update KPI settings. Only provided fields are updated."""
    changes = data.model_dump(by_alias=True, exclude_unset=True)
    if not changes:
        raise ValidationFailed("No fields to update")
    if "level" in changes:
        changes["level"] = data.level.value

    updated = UserService().update_kpi_settings(user["_id"], changes)
    if updated is None:
        raise NotFound("User not found")

    return {
        "message": "KPI settings updated successfully",
        "kpiSettings": public_user(updated)["kpiSettings"],
    }


@router.get("/stats", response_model=StatsResponse)
def get_stats(user: dict = Depends(get_current_user)):
    """
    Get application stats and progress against the daily target.

    Counts are recomputed from the applications on every call, so the
    cached numbers on the user record are refreshed as a side effect.
    """
    service = get_stats_service()
    return service.get_stats_summary(user["_id"])


@router.post("/extension/auth", response_model=ExtensionAuthResponse)
def extension_auth(request: ExtensionAuthRequest):
    """Tell the browser extension whether a captured token is still good."""
    try:
        user = verify_session(request.token)
    except Unauthorized as e:
        return JSONResponse(
            status_code=e.status_code,
            content={"authenticated": False, "message": e.message, "code": e.code},
        )
    return {"authenticated": True, "user": public_user(user)}
