"""
Ember Ascent - Practice API Router
Practice sessions and answered questions for a child
"""
import uuid

from fastapi import APIRouter, status

from ember_ascent.api.deps import Auth, DbSession
from ember_ascent.schemas.practice import (
    AttemptCreate,
    AttemptResponse,
    PracticeSessionCreate,
    PracticeSessionResponse,
    SessionComplete,
)
from ember_ascent.services.children import ChildService
from ember_ascent.services.practice import PracticeService

router = APIRouter(prefix="/practice", tags=["Practice"])


@router.post(
    "/sessions",
    response_model=PracticeSessionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def start_session(data: PracticeSessionCreate, auth: Auth, db: DbSession):
    child = await ChildService(db).get_for_parent(data.child_id, auth.effective_user_id)
    return await PracticeService(db).start_session(
        child,
        session_type=data.session_type.value,
        subject=data.subject.value if data.subject else None,
    )


@router.post(
    "/attempts",
    response_model=AttemptResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_attempt(data: AttemptCreate, auth: Auth, db: DbSession):
    """Mark an answer and store it for analytics."""
    child = await ChildService(db).get_for_parent(data.child_id, auth.effective_user_id)
    attempt, question = await PracticeService(db).record_attempt(
        child,
        question_id=data.question_id,
        selected_answer=data.selected_answer,
        session_id=data.session_id,
        time_taken_seconds=data.time_taken_seconds,
    )
    return AttemptResponse(
        id=attempt.id,
        question_id=attempt.question_id,
        session_id=attempt.session_id,
        selected_answer=attempt.selected_answer,
        is_correct=attempt.is_correct,
        correct_answer=question.correct_answer,
        time_taken_seconds=attempt.time_taken_seconds,
        created_at=attempt.created_at,
    )


@router.post("/sessions/{session_id}/complete", response_model=PracticeSessionResponse)
async def complete_session(
    session_id: uuid.UUID,
    data: SessionComplete,
    auth: Auth,
    db: DbSession,
):
    child = await ChildService(db).get_for_parent(data.child_id, auth.effective_user_id)
    return await PracticeService(db).complete_session(session_id, child)
