"""
Ember Ascent - Admin Audit Logger
Append-only record of privileged admin actions.
Never stores passwords or tokens in the event details.
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ember_ascent.models.admin import AdminAuditLog
from ember_ascent.models.user import utcnow

logger = logging.getLogger(__name__)


class AdminAction(str, Enum):
    """Audited admin actions."""
    USER_CREATE = "user:create"
    IMPERSONATION_START = "impersonation:start"
    IMPERSONATION_END = "impersonation:end"


# Keys that must never reach the audit trail
_REDACTED_KEYS = {"password", "temp_password", "tempPassword", "token", "access_token", "refresh_token"}


@dataclass
class AdminAuditEvent:
    admin_id: uuid.UUID
    action: AdminAction | str
    target_type: str | None = None
    target_id: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime | None = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = utcnow()


class AdminAuditLogger:
    """
    Writes admin audit events into the caller's session.

    The caller owns the transaction, so an audit row commits or rolls back
    together with the action it describes.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _sanitize(details: dict[str, Any]) -> dict[str, Any]:
        sanitized = {}
        for key, value in details.items():
            if key in _REDACTED_KEYS:
                continue
            if isinstance(value, (str, int, float, bool)) or value is None:
                sanitized[key] = value
            else:
                sanitized[key] = str(value)
        return sanitized

    async def log(self, event: AdminAuditEvent) -> AdminAuditLog:
        action = event.action.value if isinstance(event.action, Enum) else event.action
        entry = AdminAuditLog(
            admin_id=event.admin_id,
            action=action,
            target_type=event.target_type,
            target_id=event.target_id,
            details=self._sanitize(event.details),
            created_at=event.timestamp,
        )
        self.db.add(entry)
        logger.info(f"Admin {event.admin_id} {action} {event.target_type or ''}:{event.target_id or ''}")
        return entry

    async def log_impersonation_start(
        self,
        admin_id: uuid.UUID,
        target_user_id: uuid.UUID,
        reason: str | None,
    ) -> AdminAuditLog:
        return await self.log(AdminAuditEvent(
            admin_id=admin_id,
            action=AdminAction.IMPERSONATION_START,
            target_type="profile",
            target_id=str(target_user_id),
            details={"reason": reason},
        ))

    async def log_impersonation_end(
        self,
        admin_id: uuid.UUID,
        session_id: uuid.UUID,
        target_user_id: uuid.UUID | None = None,
    ) -> AdminAuditLog:
        return await self.log(AdminAuditEvent(
            admin_id=admin_id,
            action=AdminAction.IMPERSONATION_END,
            target_type="profile",
            target_id=str(target_user_id) if target_user_id else None,
            details={"session_id": str(session_id)},
        ))

    async def log_user_created(
        self,
        admin_id: uuid.UUID,
        user_id: uuid.UUID,
        subscription_tier: str,
    ) -> AdminAuditLog:
        return await self.log(AdminAuditEvent(
            admin_id=admin_id,
            action=AdminAction.USER_CREATE,
            target_type="profile",
            target_id=str(user_id),
            details={"subscription_tier": subscription_tier},
        ))
