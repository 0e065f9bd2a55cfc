"""
Ember Ascent - Explanation Schemas
"""
import uuid
from typing import Annotated, Literal

from pydantic import Field

from ember_ascent.schemas.common import CamelModel, CamelRequest

NonEmpty = Annotated[str, Field(min_length=1)]


class GeneratedExplanations(CamelModel):
    """The three explanation styles shown under a question."""
    step_by_step: NonEmpty
    visual_illustration: NonEmpty
    worked_example: NonEmpty


class GenerateExplanationRequest(CamelRequest):
    question_id: Annotated[str, Field(min_length=1, max_length=100)]
    # Inline context for questions that are not stored yet
    question_text: str | None = None
    correct_answer: str | None = None
    existing_explanation: list[str] | str | None = None
    topic: str | None = None
    difficulty: Literal["Foundation", "Standard", "Challenge"] | None = None


class GenerateExplanationResponse(CamelModel):
    success: bool = True
    question_id: str
    explanations: GeneratedExplanations
    tokens_used: int = 0


class CachedExplanationResponse(CamelModel):
    success: bool = True
    question_id: uuid.UUID
    explanations: GeneratedExplanations
    cached: bool = True
