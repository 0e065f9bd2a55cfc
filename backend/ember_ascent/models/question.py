"""
Ember Ascent - Question Models
Question bank, learner error reports and validation history
"""
import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from ember_ascent.core.database import Base
from ember_ascent.models.user import utcnow


class Subject(str, Enum):
    MATHEMATICS = "mathematics"
    ENGLISH = "english"
    VERBAL_REASONING = "verbal_reasoning"


SUBJECT_LABELS: dict[str, str] = {
    Subject.MATHEMATICS.value: "Mathematics",
    Subject.ENGLISH.value: "English",
    Subject.VERBAL_REASONING.value: "Verbal Reasoning",
}


def subject_label(subject: str) -> str:
    return SUBJECT_LABELS.get(subject, subject.replace("_", " ").title())


class Difficulty(str, Enum):
    FOUNDATION = "foundation"
    STANDARD = "standard"
    CHALLENGE = "challenge"


class ReviewStatus(str, Enum):
    REVIEWED = "reviewed"
    SPOT_CHECKED = "spot_checked"
    AI_ONLY = "ai_only"


class ReportType(str, Enum):
    INCORRECT_ANSWER = "incorrect_answer"
    UNCLEAR = "unclear"
    TYPO = "typo"
    INAPPROPRIATE = "inappropriate"
    OTHER = "other"


class ReportStatus(str, Enum):
    PENDING = "pending"
    REVIEWED = "reviewed"
    FIXED = "fixed"
    DISMISSED = "dismissed"


class Question(Base):
    """A practice question with its cached explanations."""

    __tablename__ = "questions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    subject: Mapped[str] = mapped_column(String(50), index=True)
    topic: Mapped[str] = mapped_column(String(200), index=True)
    subtopic: Mapped[str | None] = mapped_column(String(200), nullable=True)
    difficulty: Mapped[str] = mapped_column(String(20), default=Difficulty.STANDARD.value)
    year_group: Mapped[int | None] = mapped_column(Integer, nullable=True)

    question_text: Mapped[str] = mapped_column(Text)
    options: Mapped[list | None] = mapped_column(JSON, nullable=True)
    correct_answer: Mapped[str] = mapped_column(String(500))

    # {"step_by_step": str, "visual": str, "worked_example": str}
    explanations: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    # Quality signals feeding the Ember score
    curriculum_reference: Mapped[str | None] = mapped_column(String(255), nullable=True)
    review_status: Mapped[str] = mapped_column(String(20), default=ReviewStatus.AI_ONLY.value)
    helpful_count: Mapped[int] = mapped_column(Integer, default=0)
    practice_count: Mapped[int] = mapped_column(Integer, default=0)
    ember_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_published: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )


class ErrorReport(Base):
    """A learner or parent report that a question is wrong."""

    __tablename__ = "error_reports"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    question_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("questions.id", ondelete="CASCADE"), index=True
    )
    reported_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    report_type: Mapped[str] = mapped_column(String(50))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default=ReportStatus.PENDING.value)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class QuestionValidation(Base):
    """Stored outcome of one validation pipeline run."""

    __tablename__ = "question_validations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # Free-form id: generated questions are validated before they are stored
    question_id: Mapped[str] = mapped_column(String(100), index=True)
    passed: Mapped[bool] = mapped_column(Boolean)
    checks: Mapped[list] = mapped_column(JSON, default=list)
    errors: Mapped[list] = mapped_column(JSON, default=list)
    warnings: Mapped[list] = mapped_column(JSON, default=list)
    corrected_data: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    validated_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    validated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
