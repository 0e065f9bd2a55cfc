"""
Ember Ascent - Explanations API Router
AI explanations for practice questions, cached back onto the question row
"""
import logging
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ember_ascent.ai.core.llm import LLMClient, get_llm_client
from ember_ascent.ai.explanation_generator import ExplanationError, ExplanationGenerator
from ember_ascent.api.deps import Auth, DbSession
from ember_ascent.core.database import get_session_factory
from ember_ascent.core.exceptions import NotFoundError, ServiceError, ValidationError, error_body
from ember_ascent.schemas.explanation import (
    CachedExplanationResponse,
    GenerateExplanationRequest,
    GenerateExplanationResponse,
)
from ember_ascent.services.explanations import (
    ExplanationService,
    QuestionNotFoundError,
    available_explanations,
    cache_explanations,
    from_cache,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/explanations", tags=["Explanations"])

SessionFactory = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]
LLM = Annotated[LLMClient, Depends(get_llm_client)]


@router.post("/generate", response_model=GenerateExplanationResponse)
async def generate_explanations(
    request: GenerateExplanationRequest,
    background_tasks: BackgroundTasks,
    auth: Auth,
    db: DbSession,
    session_factory: SessionFactory,
    llm: LLM,
):
    """
    Generate step-by-step, visual and worked-example explanations.

    Stored questions are looked up first. Questions that are not stored yet
    can be explained from inline ``questionText`` and ``correctAnswer``;
    only stored questions are cached.
    """
    service = ExplanationService(db, ExplanationGenerator(llm))
    try:
        result, question = await service.generate(request)
    except QuestionNotFoundError as e:
        raise NotFoundError(str(e))
    except ExplanationError as e:
        raise ServiceError(
            "Failed to generate explanations",
            metadata={"question_id": request.question_id, "error": str(e)},
        )

    if question is not None:
        background_tasks.add_task(
            cache_explanations, session_factory, question.id, result.explanations
        )

    return GenerateExplanationResponse(
        question_id=request.question_id,
        explanations=result.explanations,
        tokens_used=result.tokens_used,
    )


@router.get("/generate", response_model=CachedExplanationResponse)
async def get_cached_explanations(
    auth: Auth,
    db: DbSession,
    question_id: Annotated[str | None, Query(alias="questionId")] = None,
):
    """Return previously generated explanations without calling the model."""
    if not question_id:
        raise ValidationError("questionId is required")

    question = await ExplanationService(db).get_question(question_id)
    if question is None:
        raise NotFoundError("Question not found")

    explanations = from_cache(question.explanations)
    if explanations is None:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=error_body(
                "Explanations not available. Use POST to generate.",
                "NOT_FOUND",
                available=available_explanations(question.explanations),
            ),
        )

    return CachedExplanationResponse(question_id=question.id, explanations=explanations)
