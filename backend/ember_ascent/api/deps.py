"""
Ember Ascent - API Dependencies
FastAPI dependencies for authentication, authorization and impersonation
"""
import uuid
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ember_ascent.core.config import settings
from ember_ascent.core.database import get_db
from ember_ascent.core.security import verify_token
from ember_ascent.models.user import Profile, SubscriptionTier, User
from ember_ascent.services.auth import AuthService
from ember_ascent.services.impersonation import ImpersonationInfo, ImpersonationService

# Security scheme; missing credentials are reported as 401 below
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """
    Get current authenticated user from JWT token.

    Raises:
        HTTPException: If token is missing or invalid, or user not found
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = verify_token(credentials.credentials, token_type="access")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    auth_service = AuthService(db)
    user = await auth_service.get_user_by_id(user_id)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated",
        )

    return user


@dataclass
class AuthContext:
    """
    Who is calling and on whose behalf.

    ``user``/``profile`` are always the signed-in account. While an admin
    impersonates a parent, ``effective_user_id`` is the parent's id and
    parent-facing routes act on that account.
    """
    user: User
    profile: Profile
    impersonation: ImpersonationInfo | None = None

    @property
    def role(self) -> str:
        return self.profile.role

    @property
    def is_admin(self) -> bool:
        return self.profile.is_admin

    @property
    def is_impersonating(self) -> bool:
        return self.impersonation is not None

    @property
    def effective_user_id(self) -> uuid.UUID:
        if self.impersonation is not None:
            return self.impersonation.target_user_id
        return self.user.id


async def get_auth_context(
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> AuthContext:
    """Resolve the per-request auth context, including any live impersonation."""
    profile = current_user.profile
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Profile not found",
        )

    impersonation = None
    token = request.cookies.get(settings.IMPERSONATION_COOKIE_NAME)
    if token and profile.is_admin:
        impersonation = await ImpersonationService(db).resolve(token, admin_id=current_user.id)

    return AuthContext(user=current_user, profile=profile, impersonation=impersonation)


async def require_admin(
    auth: Annotated[AuthContext, Depends(get_auth_context)],
) -> AuthContext:
    """Only ``admin`` and ``super_admin`` profiles pass."""
    if not auth.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return auth


async def get_effective_profile(
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Profile:
    """Profile of the account the request acts on."""
    if not auth.is_impersonating:
        return auth.profile
    profile = await AuthService(db).get_profile(auth.effective_user_id)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return profile


async def get_subscription_tier(
    profile: Annotated[Profile, Depends(get_effective_profile)],
) -> str:
    return profile.subscription_tier or SubscriptionTier.FREE.value


# Type aliases for common dependencies
CurrentUser = Annotated[User, Depends(get_current_user)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
Auth = Annotated[AuthContext, Depends(get_auth_context)]
AdminAuth = Annotated[AuthContext, Depends(require_admin)]
EffectiveProfile = Annotated[Profile, Depends(get_effective_profile)]
SubscriptionTierName = Annotated[str, Depends(get_subscription_tier)]
