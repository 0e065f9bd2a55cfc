"""
Ember Ascent - Practice Schemas
"""
import uuid
from datetime import datetime
from typing import Annotated

from pydantic import Field

from ember_ascent.models.practice import SessionType
from ember_ascent.models.question import Subject
from ember_ascent.schemas.common import CamelModel, CamelRequest


class PracticeSessionCreate(CamelRequest):
    child_id: uuid.UUID
    session_type: SessionType = SessionType.QUICK_BYTE
    subject: Subject | None = None


class AttemptCreate(CamelRequest):
    child_id: uuid.UUID
    question_id: uuid.UUID
    session_id: uuid.UUID | None = None
    selected_answer: Annotated[str, Field(max_length=500)]
    time_taken_seconds: Annotated[int, Field(ge=0, le=3600)] | None = None


class PracticeSessionResponse(CamelModel):
    id: uuid.UUID
    child_id: uuid.UUID
    session_type: str
    subject: str | None = None
    started_at: datetime
    completed_at: datetime | None = None
    total_questions: int = 0
    correct_answers: int = 0


class AttemptResponse(CamelModel):
    id: uuid.UUID
    question_id: uuid.UUID
    session_id: uuid.UUID | None = None
    selected_answer: str | None = None
    is_correct: bool
    correct_answer: str
    time_taken_seconds: int | None = None
    created_at: datetime


class SessionComplete(CamelRequest):
    child_id: uuid.UUID
