"""
Ember Ascent - Impersonation Service
Lets support admins act as a parent for a short, audited window.
The session id doubles as the opaque cookie token.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ember_ascent.core.config import settings
from ember_ascent.models.admin import ImpersonationSession
from ember_ascent.models.user import Profile, as_utc, utcnow
from ember_ascent.services.audit_log import AdminAuditLogger

logger = logging.getLogger(__name__)


class ImpersonationError(Exception):
    """Impersonation could not be started."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass
class ImpersonationInfo:
    token: uuid.UUID
    admin_id: uuid.UUID
    target_user_id: uuid.UUID
    reason: str | None
    started_at: datetime
    expires_at: datetime
    target_email: str
    target_name: str | None


class ImpersonationService:
    """Start, end and resolve admin impersonation sessions."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AdminAuditLogger(db)

    @staticmethod
    def ttl() -> timedelta:
        return timedelta(minutes=settings.IMPERSONATION_TTL_MINUTES)

    async def _get_profile(self, user_id: uuid.UUID) -> Profile | None:
        result = await self.db.execute(select(Profile).where(Profile.id == user_id))
        return result.scalar_one_or_none()

    async def _close_active_sessions(self, admin_id: uuid.UUID) -> None:
        await self.db.execute(
            update(ImpersonationSession)
            .where(
                ImpersonationSession.admin_id == admin_id,
                ImpersonationSession.is_active.is_(True),
            )
            .values(is_active=False, ended_at=utcnow())
            .execution_options(synchronize_session="fetch")
        )

    async def start(
        self,
        admin_id: uuid.UUID,
        target_user_id: uuid.UUID,
        reason: str | None = None,
    ) -> ImpersonationSession:
        """
        Open a new session for ``admin_id`` acting as ``target_user_id``.

        Raises:
            ImpersonationError: self-impersonation, unknown target or admin target
        """
        if admin_id == target_user_id:
            raise ImpersonationError("Cannot impersonate yourself")

        target = await self._get_profile(target_user_id)
        if not target:
            raise ImpersonationError("Target user not found", status_code=404)
        if target.is_admin:
            raise ImpersonationError("Cannot impersonate another admin", status_code=403)

        await self._close_active_sessions(admin_id)

        started_at = utcnow()
        session = ImpersonationSession(
            admin_id=admin_id,
            target_user_id=target_user_id,
            reason=reason[:500] if reason else None,
            started_at=started_at,
            expires_at=started_at + self.ttl(),
            is_active=True,
        )
        self.db.add(session)
        await self.db.flush()

        await self.audit.log_impersonation_start(admin_id, target_user_id, reason)
        logger.info(f"Admin {admin_id} started impersonating {target_user_id}")
        return session

    async def end(self, token: uuid.UUID, admin_id: uuid.UUID | None = None) -> ImpersonationSession | None:
        """Close the session if it is still open. Audited when the admin is known."""
        session = await self._get_session(token)
        if session is None:
            return None

        if session.is_active:
            session.is_active = False
            session.ended_at = utcnow()
            await self.db.flush()

        if admin_id is not None:
            await self.audit.log_impersonation_end(admin_id, session.id, session.target_user_id)
        return session

    async def _get_session(self, token: uuid.UUID | str | None) -> ImpersonationSession | None:
        if not token:
            return None
        if isinstance(token, str):
            try:
                token = uuid.UUID(token)
            except ValueError:
                return None
        result = await self.db.execute(
            select(ImpersonationSession).where(ImpersonationSession.id == token)
        )
        return result.scalar_one_or_none()

    async def resolve(
        self,
        token: uuid.UUID | str | None,
        admin_id: uuid.UUID | None = None,
    ) -> ImpersonationInfo | None:
        """
        Return the live session for ``token``, or None.

        Expired sessions are closed on read. When ``admin_id`` is given the
        session must belong to that admin.
        """
        session = await self._get_session(token)
        if session is None or not session.is_active:
            return None
        if admin_id is not None and session.admin_id != admin_id:
            return None

        if session.is_expired:
            session.is_active = False
            session.ended_at = utcnow()
            await self.db.flush()
            return None

        target = await self._get_profile(session.target_user_id)
        if target is None:
            return None

        return ImpersonationInfo(
            token=session.id,
            admin_id=session.admin_id,
            target_user_id=session.target_user_id,
            reason=session.reason,
            started_at=as_utc(session.started_at),
            expires_at=as_utc(session.expires_at),
            target_email=target.email,
            target_name=target.full_name,
        )
