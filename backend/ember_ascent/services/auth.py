"""
Ember Ascent - Authentication Service
Business logic for parent registration, login, and token management
"""
import uuid
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ember_ascent.core.config import settings
from ember_ascent.core.security import (
    create_access_token,
    create_refresh_token,
    get_password_hash,
    hash_token,
    verify_password,
    verify_token,
)
from ember_ascent.models.user import Profile, RefreshToken, User, UserRole, as_utc, utcnow
from ember_ascent.schemas.user import TokenResponse, UserCreate


class AuthenticationError(Exception):
    """Base authentication error."""
    pass


class InvalidCredentialsError(AuthenticationError):
    """Invalid email or password."""
    pass


class AccountLockedError(AuthenticationError):
    """Account is locked due to failed attempts."""
    pass


class TokenError(AuthenticationError):
    """Token validation error."""
    pass


class AuthService:
    """Service for authentication operations."""

    MAX_FAILED_ATTEMPTS = 5
    LOCKOUT_DURATION_MINUTES = 30

    def __init__(self, db: AsyncSession):
        self.db = db

    async def register_user(self, user_data: UserCreate) -> User:
        """
        Register a new parent account with its profile.

        Raises:
            ValueError: If email already exists
        """
        email = user_data.email.lower()
        existing = await self.db.execute(select(User).where(User.email == email))
        if existing.scalar_one_or_none():
            raise ValueError("Email already registered")

        user = User(
            email=email,
            hashed_password=get_password_hash(user_data.password),
        )
        self.db.add(user)
        await self.db.flush()

        self.db.add(Profile(
            id=user.id,
            email=email,
            full_name=user_data.full_name,
            role=UserRole.USER.value,
        ))
        await self.db.flush()

        return user

    async def authenticate(self, email: str, password: str) -> User:
        """
        Authenticate user with email and password.

        Raises:
            InvalidCredentialsError: If credentials are invalid
            AccountLockedError: If account is locked
        """
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        user = result.scalar_one_or_none()

        if not user:
            raise InvalidCredentialsError("Invalid email or password")

        now = utcnow()
        if user.locked_until and as_utc(user.locked_until) > now:
            remaining = (as_utc(user.locked_until) - now).seconds // 60
            raise AccountLockedError(f"Account locked. Try again in {remaining} minutes.")

        if not verify_password(password, user.hashed_password):
            user.failed_login_attempts += 1

            if user.failed_login_attempts >= self.MAX_FAILED_ATTEMPTS:
                user.locked_until = now + timedelta(minutes=self.LOCKOUT_DURATION_MINUTES)

            await self.db.flush()
            raise InvalidCredentialsError("Invalid email or password")

        user.failed_login_attempts = 0
        user.locked_until = None
        user.last_login = now
        await self.db.flush()

        return user

    async def create_tokens(self, user: User) -> TokenResponse:
        """Create access and refresh tokens and store the refresh token hash."""
        profile = await self.get_profile(user.id)
        role = profile.role if profile else UserRole.USER.value

        access_token = create_access_token(
            subject=str(user.id),
            additional_claims={"role": role},
        )
        refresh_token = create_refresh_token(subject=str(user.id))

        self.db.add(RefreshToken(
            user_id=user.id,
            token_hash=hash_token(refresh_token),
            expires_at=utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        ))
        await self.db.flush()

        return TokenResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        )

    async def refresh_tokens(self, refresh_token: str) -> TokenResponse:
        """
        Rotate a refresh token.

        Raises:
            TokenError: If refresh token is invalid or expired
        """
        user_id = verify_token(refresh_token, token_type="refresh")
        if not user_id:
            raise TokenError("Invalid refresh token")

        result = await self.db.execute(
            select(RefreshToken).where(
                RefreshToken.token_hash == hash_token(refresh_token),
                RefreshToken.revoked_at.is_(None),
            )
        )
        token_record = result.scalar_one_or_none()

        if not token_record or token_record.is_expired:
            raise TokenError("Refresh token expired or revoked")

        user = await self.get_user_by_id(user_id)
        if not user or not user.is_active:
            raise TokenError("User not found or inactive")

        token_record.revoked_at = utcnow()

        return await self.create_tokens(user)

    async def logout(self, refresh_token: str) -> None:
        """Logout user by revoking refresh token."""
        result = await self.db.execute(
            select(RefreshToken).where(RefreshToken.token_hash == hash_token(refresh_token))
        )
        token_record = result.scalar_one_or_none()

        if token_record:
            token_record.revoked_at = utcnow()
            await self.db.flush()

    async def get_user_by_id(self, user_id: str | uuid.UUID) -> User | None:
        """Get user by ID."""
        if isinstance(user_id, str):
            try:
                user_id = uuid.UUID(user_id)
            except ValueError:
                return None

        result = await self.db.execute(
            select(User).options(selectinload(User.profile)).where(User.id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_profile(self, user_id: uuid.UUID) -> Profile | None:
        result = await self.db.execute(select(Profile).where(Profile.id == user_id))
        return result.scalar_one_or_none()
