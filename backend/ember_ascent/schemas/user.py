"""
Ember Ascent - User Schemas
Pydantic schemas for registration, authentication, children and subscriptions
"""
import uuid
from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, EmailStr, Field, field_validator

from ember_ascent.schemas.common import CamelModel, CamelRequest


# ============================================================================
# Registration & Authentication
# ============================================================================

class UserCreate(BaseModel):
    """Schema for parent self-registration."""
    email: EmailStr
    password: Annotated[str, Field(min_length=8, max_length=128)]
    full_name: Annotated[str, Field(min_length=1, max_length=200)] | None = None

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        if not any(c.isupper() for c in v):
            raise ValueError("Password must contain at least one uppercase letter")
        if not any(c.islower() for c in v):
            raise ValueError("Password must contain at least one lowercase letter")
        if not any(c.isdigit() for c in v):
            raise ValueError("Password must contain at least one digit")
        if not any(c in "!@#$%^&*()_+-=[]{}|;:,.<>?" for c in v):
            raise ValueError("Password must contain at least one special character")
        return v


class UserLogin(BaseModel):
    """Schema for user login."""
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    """Schema for authentication token response."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = 1800  # 30 minutes in seconds


class TokenRefresh(BaseModel):
    """Schema for token refresh request."""
    refresh_token: str


class UserResponse(CamelModel):
    """Public view of the signed-in account."""
    id: uuid.UUID
    email: str
    full_name: str | None = None
    role: str
    subscription_tier: str
    is_active: bool
    created_at: datetime
    impersonated_by: uuid.UUID | None = None


# ============================================================================
# Children
# ============================================================================

YearGroup = Annotated[int, Field(ge=3, le=6)]
ExamType = Literal["gl", "cem", "iseb", "other"]


class ChildCreate(CamelRequest):
    """Schema for adding a child to the signed-in parent."""
    name: Annotated[str, Field(min_length=2, max_length=100)]
    year_group: YearGroup
    exam_type: ExamType | None = None
    avatar_url: Annotated[str, Field(max_length=500)] | None = None


class ChildUpdate(CamelRequest):
    """Partial update for a child profile."""
    name: Annotated[str, Field(min_length=2, max_length=100)] | None = None
    year_group: YearGroup | None = None
    exam_type: ExamType | None = None
    avatar_url: Annotated[str, Field(max_length=500)] | None = None
    is_active: bool | None = None


class ChildResponse(CamelModel):
    id: uuid.UUID
    parent_id: uuid.UUID
    name: str
    year_group: int
    exam_type: str | None = None
    avatar_url: str | None = None
    is_active: bool
    created_at: datetime


# ============================================================================
# Subscription
# ============================================================================

class SubscriptionFeatures(CamelModel):
    """What the current tier unlocks."""
    readiness_score: bool
    weakness_heatmap: bool
    comprehensive_analytics: bool
    benchmarking: bool
    ai_explanations: bool


class SubscriptionResponse(CamelModel):
    tier: str
    status: str
    current_period_end: datetime | None = None
    is_active: bool
    features: SubscriptionFeatures
