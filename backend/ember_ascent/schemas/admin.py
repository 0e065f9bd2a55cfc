"""
Ember Ascent - Admin Schemas
Back-office user provisioning and impersonation
"""
import uuid
from datetime import datetime
from typing import Annotated

from pydantic import EmailStr, Field

from ember_ascent.models.user import SubscriptionTier
from ember_ascent.schemas.common import CamelModel, CamelRequest


class AdminCreateUserRequest(CamelRequest):
    parent_email: EmailStr
    parent_name: Annotated[str, Field(max_length=200)] | None = None
    child_name: Annotated[str, Field(min_length=2, max_length=100)]
    # Sent by the admin form as a string
    year_group: Annotated[str, Field(pattern=r"^[3-6]$")]
    subscription_tier: SubscriptionTier = SubscriptionTier.FREE


class CreatedAccountData(CamelModel):
    user_id: uuid.UUID
    email: str
    temp_password: str


class AdminCreateUserResponse(CamelModel):
    success: bool = True
    data: CreatedAccountData
    message: str


class ImpersonationRequest(CamelRequest):
    user_id: uuid.UUID
    reason: Annotated[str, Field(min_length=4, max_length=500)] | None = None


class ImpersonationStartResponse(CamelModel):
    success: bool = True
    redirect_to: str = "/dashboard"
    expires_at: datetime


class ImpersonationEndResponse(CamelModel):
    success: bool = True
    redirect_to: str | None = None


class ImpersonationStatus(CamelModel):
    active: bool = False
    target_user_id: uuid.UUID | None = None
    target_email: str | None = None
    target_name: str | None = None
    reason: str | None = None
    started_at: datetime | None = None
    expires_at: datetime | None = None
