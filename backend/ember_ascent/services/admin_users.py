"""
Ember Ascent - Admin User Service
Admin provisioning of a parent account together with its first child.
"""
import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ember_ascent.core.security import generate_temporary_password, get_password_hash
from ember_ascent.models.user import (
    Child,
    Profile,
    SubscriptionStatus,
    User,
    UserRole,
)
from ember_ascent.services.audit_log import AdminAuditLogger

logger = logging.getLogger(__name__)

DEFAULT_AVATAR = "boy-1"


class AdminUserError(Exception):
    """Provisioning failed at a known step."""

    def __init__(self, message: str, status_code: int = 500, partial: bool = False):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        # True when earlier records were created and intentionally left in place
        self.partial = partial


@dataclass
class CreatedAccount:
    user_id: uuid.UUID
    email: str
    temp_password: str


class AdminUserService:
    """
    Creates the auth user, profile and first child in that order.

    Each step runs in its own savepoint. A failed profile removes the auth
    user again; a failed child leaves the parent records in place.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AdminAuditLogger(db)

    async def _email_taken(self, email: str) -> bool:
        result = await self.db.execute(
            select(User.id).where(User.email == email).union(
                select(Profile.id).where(Profile.email == email)
            )
        )
        return result.first() is not None

    async def create_parent_with_child(
        self,
        admin_id: uuid.UUID,
        parent_email: str,
        child_name: str,
        year_group: int,
        parent_name: str | None = None,
        subscription_tier: str = "free",
    ) -> CreatedAccount:
        email = parent_email.lower()
        if await self._email_taken(email):
            raise AdminUserError("User with this email already exists", status_code=400)

        temp_password = generate_temporary_password()

        user = User(email=email, hashed_password=get_password_hash(temp_password))
        try:
            async with self.db.begin_nested():
                self.db.add(user)
        except SQLAlchemyError as e:
            logger.error(f"Failed to create auth user for {email}: {e}")
            raise AdminUserError("Failed to create user account") from e

        try:
            async with self.db.begin_nested():
                self.db.add(Profile(
                    id=user.id,
                    email=email,
                    full_name=parent_name or None,
                    role=UserRole.USER.value,
                    subscription_tier=subscription_tier,
                    subscription_status=SubscriptionStatus.ACTIVE.value,
                ))
        except SQLAlchemyError as e:
            logger.error(f"Failed to create profile for {user.id}: {e}")
            await self._remove_user(user.id)
            raise AdminUserError("Failed to create user profile") from e

        try:
            async with self.db.begin_nested():
                self.db.add(Child(
                    parent_id=user.id,
                    name=child_name,
                    year_group=year_group,
                    avatar_url=DEFAULT_AVATAR,
                    is_active=True,
                ))
        except SQLAlchemyError as e:
            logger.error(f"Failed to create child for {user.id}: {e}")
            raise AdminUserError(
                "User created but failed to create child profile", partial=True
            ) from e

        await self.audit.log_user_created(admin_id, user.id, subscription_tier)
        logger.info(f"Admin {admin_id} created parent account {user.id}")

        return CreatedAccount(user_id=user.id, email=email, temp_password=temp_password)

    async def _remove_user(self, user_id: uuid.UUID) -> None:
        async with self.db.begin_nested():
            result = await self.db.execute(
                select(User).where(User.id == user_id)
            )
            user = result.scalar_one_or_none()
            if user is not None:
                await self.db.delete(user)
