"""
Ember Ascent - Admin API Router
Back-office user provisioning and parent impersonation
"""
import logging

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import JSONResponse

from ember_ascent.api.deps import AdminAuth, DbSession
from ember_ascent.core.config import settings
from ember_ascent.core.exceptions import AppError, error_body
from ember_ascent.schemas.admin import (
    AdminCreateUserRequest,
    AdminCreateUserResponse,
    CreatedAccountData,
    ImpersonationEndResponse,
    ImpersonationRequest,
    ImpersonationStartResponse,
    ImpersonationStatus,
)
from ember_ascent.services.admin_users import AdminUserError, AdminUserService
from ember_ascent.services.impersonation import ImpersonationError, ImpersonationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


# ============================================================================
# User provisioning
# ============================================================================

@router.post("/users/create", response_model=AdminCreateUserResponse)
async def create_user(request: AdminCreateUserRequest, auth: AdminAuth, db: DbSession):
    """
    Create a parent account, its profile and a first child.

    The temporary password is returned in the response for the admin to pass on.
    """
    service = AdminUserService(db)
    try:
        account = await service.create_parent_with_child(
            admin_id=auth.user.id,
            parent_email=request.parent_email,
            child_name=request.child_name,
            year_group=int(request.year_group),
            parent_name=request.parent_name,
            subscription_tier=request.subscription_tier.value,
        )
    except AdminUserError as e:
        if e.partial:
            # Returned rather than raised so the parent records are still committed
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=error_body(e.message, "PARTIAL_CREATE"),
            )
        raise AppError(e.message, code="USER_CREATE_FAILED", status_code=e.status_code)

    return AdminCreateUserResponse(
        data=CreatedAccountData(
            user_id=account.user_id,
            email=account.email,
            temp_password=account.temp_password,
        ),
        message=f"Account created for {account.email}",
    )


# ============================================================================
# Impersonation
# ============================================================================

@router.post("/impersonation", response_model=ImpersonationStartResponse)
async def start_impersonation(
    request: ImpersonationRequest,
    response: Response,
    auth: AdminAuth,
    db: DbSession,
):
    """Start acting as a parent. The session token is set as an httpOnly cookie."""
    service = ImpersonationService(db)
    try:
        session = await service.start(auth.user.id, request.user_id, request.reason)
    except ImpersonationError as e:
        raise AppError(e.message, code="IMPERSONATION_FAILED", status_code=e.status_code)

    response.set_cookie(
        key=settings.IMPERSONATION_COOKIE_NAME,
        value=str(session.id),
        max_age=int(service.ttl().total_seconds()),
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return ImpersonationStartResponse(expires_at=session.expires_at)


@router.delete(
    "/impersonation",
    response_model=ImpersonationEndResponse,
    response_model_exclude_none=True,
)
async def end_impersonation(
    request: Request,
    response: Response,
    auth: AdminAuth,
    db: DbSession,
):
    token = request.cookies.get(settings.IMPERSONATION_COOKIE_NAME)
    if not token:
        return ImpersonationEndResponse()

    session = await ImpersonationService(db).end(token, admin_id=auth.user.id)
    if session is not None:
        logger.info(f"Admin {auth.user.id} ended impersonation session {session.id}")

    response.delete_cookie(
        key=settings.IMPERSONATION_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return ImpersonationEndResponse(redirect_to="/admin/users")


@router.get(
    "/impersonation",
    response_model=ImpersonationStatus,
    response_model_exclude_none=True,
)
async def get_impersonation(auth: AdminAuth):
    """The live impersonation for this admin, or ``{"active": false}``."""
    info = auth.impersonation
    if info is None:
        return ImpersonationStatus()
    return ImpersonationStatus(
        active=True,
        target_user_id=info.target_user_id,
        target_email=info.target_email,
        target_name=info.target_name,
        reason=info.reason,
        started_at=info.started_at,
        expires_at=info.expires_at,
    )
