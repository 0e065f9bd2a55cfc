"""
Ember Ascent - Authentication API Routes
Endpoints for registration, login, token refresh, and logout
"""
import uuid

from fastapi import APIRouter, HTTPException, status

from ember_ascent.api.deps import Auth, DbSession
from ember_ascent.models.user import Profile, SubscriptionTier, User, UserRole
from ember_ascent.schemas.user import (
    TokenRefresh,
    TokenResponse,
    UserCreate,
    UserLogin,
    UserResponse,
)
from ember_ascent.services.auth import (
    AccountLockedError,
    AuthService,
    InvalidCredentialsError,
    TokenError,
)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def to_user_response(
    user: User,
    profile: Profile | None,
    impersonated_by: uuid.UUID | None = None,
) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        full_name=profile.full_name if profile else None,
        role=profile.role if profile else UserRole.USER.value,
        subscription_tier=profile.subscription_tier if profile else SubscriptionTier.FREE.value,
        is_active=user.is_active,
        created_at=user.created_at,
        impersonated_by=impersonated_by,
    )


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    description="Create a new parent account with an empty profile on the free tier.",
)
async def register(
    user_data: UserCreate,
    db: DbSession,
) -> UserResponse:
    """Register a new user account."""
    auth_service = AuthService(db)

    try:
        user = await auth_service.register_user(user_data)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    return to_user_response(user, await auth_service.get_profile(user.id))


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Authenticate user",
    description="Login with email and password to receive access and refresh tokens.",
)
async def login(
    credentials: UserLogin,
    db: DbSession,
) -> TokenResponse:
    """Authenticate user and return tokens."""
    auth_service = AuthService(db)

    try:
        user = await auth_service.authenticate(
            email=credentials.email,
            password=credentials.password,
        )
        return await auth_service.create_tokens(user)
    except InvalidCredentialsError as e:
        # Persist the failed-attempt counter before the request session rolls back
        await db.commit()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    except AccountLockedError as e:
        raise HTTPException(
            status_code=status.HTTP_423_LOCKED,
            detail=str(e),
        )


@router.post(
    "/refresh",
    response_model=TokenResponse,
    summary="Refresh access token",
    description="Use a valid refresh token to obtain new access and refresh tokens.",
)
async def refresh_token(
    token_data: TokenRefresh,
    db: DbSession,
) -> TokenResponse:
    """Refresh access token using refresh token."""
    auth_service = AuthService(db)

    try:
        return await auth_service.refresh_tokens(token_data.refresh_token)
    except TokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Logout user",
    description="Revoke the refresh token to end the session.",
)
async def logout(
    token_data: TokenRefresh,
    db: DbSession,
) -> None:
    """Logout by revoking refresh token."""
    auth_service = AuthService(db)
    await auth_service.logout(token_data.refresh_token)


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user",
    description="The signed-in account, or the impersonated parent while an admin impersonates.",
)
async def get_current_user_profile(
    auth: Auth,
    db: DbSession,
) -> UserResponse:
    """Get current user profile."""
    if not auth.is_impersonating:
        return to_user_response(auth.user, auth.profile)

    auth_service = AuthService(db)
    target = await auth_service.get_user_by_id(auth.effective_user_id)
    if target is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return to_user_response(target, target.profile, impersonated_by=auth.user.id)
