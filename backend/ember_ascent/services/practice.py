"""
Ember Ascent - Practice Service
Records practice sessions and answers. Analytics are computed from these rows.
"""
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ember_ascent.core.exceptions import NotFoundError, ValidationError
from ember_ascent.models.practice import PracticeSession, QuestionAttempt
from ember_ascent.models.question import Question
from ember_ascent.models.user import Child, utcnow

logger = logging.getLogger(__name__)


def answers_match(selected: str | None, correct: str) -> bool:
    if selected is None:
        return False
    return selected.strip().casefold() == correct.strip().casefold()


class PracticeService:
    """Practice session lifecycle for one child."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def start_session(
        self,
        child: Child,
        session_type: str,
        subject: str | None = None,
    ) -> PracticeSession:
        session = PracticeSession(
            child_id=child.id,
            session_type=session_type,
            subject=subject,
            started_at=utcnow(),
        )
        self.db.add(session)
        await self.db.flush()
        return session

    async def _get_session(self, session_id: uuid.UUID, child_id: uuid.UUID) -> PracticeSession:
        result = await self.db.execute(
            select(PracticeSession).where(
                PracticeSession.id == session_id,
                PracticeSession.child_id == child_id,
            )
        )
        session = result.scalar_one_or_none()
        if session is None:
            raise NotFoundError("Practice session not found")
        return session

    async def record_attempt(
        self,
        child: Child,
        question_id: uuid.UUID,
        selected_answer: str | None,
        session_id: uuid.UUID | None = None,
        time_taken_seconds: int | None = None,
    ) -> tuple[QuestionAttempt, Question]:
        """
        Mark the answer and store the attempt.

        Raises:
            NotFoundError: unknown question or session
            ValidationError: the session is already completed
        """
        result = await self.db.execute(select(Question).where(Question.id == question_id))
        question = result.scalar_one_or_none()
        if question is None:
            raise NotFoundError("Question not found")

        session = None
        if session_id is not None:
            session = await self._get_session(session_id, child.id)
            if session.completed_at is not None:
                raise ValidationError("Practice session already completed")

        is_correct = answers_match(selected_answer, question.correct_answer)
        attempt = QuestionAttempt(
            session_id=session_id,
            child_id=child.id,
            question_id=question.id,
            selected_answer=selected_answer,
            is_correct=is_correct,
            time_taken_seconds=time_taken_seconds,
            created_at=utcnow(),
        )
        self.db.add(attempt)

        question.practice_count = (question.practice_count or 0) + 1
        if session is not None:
            session.total_questions += 1
            if is_correct:
                session.correct_answers += 1

        await self.db.flush()
        return attempt, question

    async def complete_session(self, session_id: uuid.UUID, child: Child) -> PracticeSession:
        session = await self._get_session(session_id, child.id)
        if session.completed_at is None:
            session.completed_at = utcnow()
            await self.db.flush()
            logger.info(
                f"Session {session.id} completed: "
                f"{session.correct_answers}/{session.total_questions} correct"
            )
        return session
