"""
Ember Ascent - Explanation Service
Builds question context for the explanation generator and caches results
"""
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ember_ascent.ai.explanation_generator import (
    ExplanationGenerator,
    ExplanationResult,
    QuestionContext,
)
from ember_ascent.models.question import Question, subject_label
from ember_ascent.schemas.explanation import GenerateExplanationRequest, GeneratedExplanations

logger = logging.getLogger(__name__)

DEFAULT_YEAR_GROUP = 5

# Keys stored on questions.explanations, mapped to the wire names
CACHE_KEYS = {
    "step_by_step": "stepByStep",
    "visual": "visualIllustration",
    "worked_example": "workedExample",
}


class QuestionNotFoundError(Exception):
    """No stored question and not enough inline data to build one."""
    pass


def parse_question_id(value: str | uuid.UUID) -> uuid.UUID | None:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(value)
    except ValueError:
        return None


def to_cache(explanations: GeneratedExplanations) -> dict[str, str]:
    return {
        "step_by_step": explanations.step_by_step,
        "visual": explanations.visual_illustration,
        "worked_example": explanations.worked_example,
    }


def available_explanations(cached: dict | None) -> dict[str, bool]:
    cached = cached or {}
    return {wire: bool(cached.get(key)) for key, wire in CACHE_KEYS.items()}


def from_cache(cached: dict | None) -> GeneratedExplanations | None:
    """Return the cached set only when all three explanations are present."""
    if not all(available_explanations(cached).values()):
        return None
    return GeneratedExplanations(
        step_by_step=cached["step_by_step"],
        visual_illustration=cached["visual"],
        worked_example=cached["worked_example"],
    )


class ExplanationService:
    """Generate explanations for stored or inline questions."""

    def __init__(self, db: AsyncSession, generator: ExplanationGenerator | None = None):
        self.db = db
        self.generator = generator

    async def get_question(self, question_id: str | uuid.UUID) -> Question | None:
        parsed = parse_question_id(question_id)
        if parsed is None:
            return None
        result = await self.db.execute(select(Question).where(Question.id == parsed))
        return result.scalar_one_or_none()

    async def build_context(
        self, request: GenerateExplanationRequest
    ) -> tuple[QuestionContext, Question | None]:
        """
        Prefer the stored question; fall back to inline text and answer.

        Raises:
            QuestionNotFoundError: neither source is available
        """
        question = await self.get_question(request.question_id)
        if question is not None:
            existing = (question.explanations or {}).get("step_by_step")
            return QuestionContext(
                id=str(question.id),
                subject=subject_label(question.subject),
                topic=question.topic,
                question_text=question.question_text,
                correct_answer=question.correct_answer,
                difficulty=question.difficulty.title(),
                year_group=question.year_group or DEFAULT_YEAR_GROUP,
                existing_step_by_step=existing,
            ), question

        if request.question_text and request.correct_answer:
            existing = request.existing_explanation
            if isinstance(existing, list):
                existing = "\n".join(existing)
            return QuestionContext(
                id=request.question_id,
                subject="Mathematics",
                topic=request.topic or "General",
                question_text=request.question_text,
                correct_answer=request.correct_answer,
                difficulty=request.difficulty or "Foundation",
                year_group=DEFAULT_YEAR_GROUP,
                existing_step_by_step=existing or None,
            ), None

        raise QuestionNotFoundError(
            "Question not found in database. Provide questionText and correctAnswer for testing."
        )

    async def generate(
        self, request: GenerateExplanationRequest
    ) -> tuple[ExplanationResult, Question | None]:
        context, question = await self.build_context(request)
        logger.info(f"Generating explanations for question {context.id}")
        return await self.generator.generate(context), question


async def cache_explanations(
    session_factory: async_sessionmaker[AsyncSession],
    question_id: uuid.UUID,
    explanations: GeneratedExplanations,
) -> None:
    """Background task: store generated explanations on the question row."""
    try:
        async with session_factory() as session:
            result = await session.execute(select(Question).where(Question.id == question_id))
            question = result.scalar_one_or_none()
            if question is None:
                logger.warning(f"Question {question_id} disappeared before caching explanations")
                return
            question.explanations = to_cache(explanations)
            await session.commit()
        logger.info(f"Cached explanations for question {question_id}")
    except Exception as e:
        logger.error(f"Failed to cache explanations for question {question_id}: {e}")
