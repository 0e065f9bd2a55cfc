"""Ember Ascent - Models initialization."""
from ember_ascent.models.user import (
    User,
    Profile,
    Child,
    RefreshToken,
    UserRole,
    SubscriptionTier,
    SubscriptionStatus,
    ADMIN_ROLES,
)
from ember_ascent.models.question import (
    Question,
    ErrorReport,
    QuestionValidation,
    Subject,
    Difficulty,
    ReviewStatus,
    ReportType,
    ReportStatus,
)
from ember_ascent.models.practice import (
    PracticeSession,
    QuestionAttempt,
    SessionType,
    RecommendationInteraction,
    RecommendationType,
    InteractionType,
)
from ember_ascent.models.admin import ImpersonationSession, AdminAuditLog


__all__ = [
    # User models
    "User",
    "Profile",
    "Child",
    "RefreshToken",
    "UserRole",
    "SubscriptionTier",
    "SubscriptionStatus",
    "ADMIN_ROLES",
    # Question bank
    "Question",
    "ErrorReport",
    "QuestionValidation",
    "Subject",
    "Difficulty",
    "ReviewStatus",
    "ReportType",
    "ReportStatus",
    # Practice
    "PracticeSession",
    "QuestionAttempt",
    "SessionType",
    "RecommendationInteraction",
    "RecommendationType",
    "InteractionType",
    # Admin
    "ImpersonationSession",
    "AdminAuditLog",
]
