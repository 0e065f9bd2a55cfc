"""
Ember Ascent - Practice Models
Practice sessions and the per-question attempts analytics are built from
"""
import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from ember_ascent.core.database import Base
from ember_ascent.models.user import utcnow


class SessionType(str, Enum):
    QUICK_BYTE = "quick_byte"
    FOCUS = "focus"
    MOCK = "mock"


class PracticeSession(Base):
    """A sitting in which a child answers a run of questions."""

    __tablename__ = "practice_sessions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    child_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("children.id", ondelete="CASCADE"), index=True
    )
    session_type: Mapped[str] = mapped_column(String(20), default=SessionType.QUICK_BYTE.value)
    subject: Mapped[str | None] = mapped_column(String(50), nullable=True)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    total_questions: Mapped[int] = mapped_column(Integer, default=0)
    correct_answers: Mapped[int] = mapped_column(Integer, default=0)


class QuestionAttempt(Base):
    """One answer to one question."""

    __tablename__ = "question_attempts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    session_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("practice_sessions.id", ondelete="SET NULL"), nullable=True, index=True
    )
    child_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("children.id", ondelete="CASCADE"), index=True
    )
    question_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("questions.id", ondelete="CASCADE"), index=True
    )
    selected_answer: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_correct: Mapped[bool] = mapped_column(Boolean)
    time_taken_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, index=True
    )


class RecommendationType(str, Enum):
    SUBJECT = "subject"
    TOPIC = "topic"
    WEAKNESS = "weakness"
    CHALLENGE = "challenge"


class InteractionType(str, Enum):
    STARTED = "started"
    COMPLETED = "completed"
    DISMISSED = "dismissed"


class RecommendationInteraction(Base):
    """A parent starting, completing or dismissing a study recommendation."""

    __tablename__ = "recommendation_interactions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    child_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("children.id", ondelete="CASCADE"), index=True
    )
    recommendation_type: Mapped[str] = mapped_column(String(20))
    subject: Mapped[str] = mapped_column(String(50))
    topic: Mapped[str | None] = mapped_column(String(200), nullable=True)
    difficulty: Mapped[str | None] = mapped_column(String(20), nullable=True)

    interaction_type: Mapped[str] = mapped_column(String(20), index=True)
    session_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("practice_sessions.id", ondelete="SET NULL"), nullable=True
    )

    performed_by: Mapped[uuid.UUID] = mapped_column(Uuid)
    performed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    # False once a dismissal has been undone
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    dismissed_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )
