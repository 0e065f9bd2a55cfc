"""
Ember Ascent - Validation Schemas
Request envelope for the admin validation endpoint. Question payloads keep the
snake_case shape the question generator emits.
"""
import uuid
from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ember_ascent.schemas.common import CamelModel
from ember_ascent.services.validation import MathQuestion

MAX_BATCH_SIZE = 100


class ValidateRequest(BaseModel):
    """Either a single ``question`` or a ``questions`` batch, never both."""
    model_config = ConfigDict(extra="forbid")

    question: MathQuestion | None = None
    questions: Annotated[
        list[MathQuestion], Field(min_length=1, max_length=MAX_BATCH_SIZE)
    ] | None = None

    @model_validator(mode="after")
    def check_one_of(self) -> "ValidateRequest":
        if (self.question is None) == (self.questions is None):
            raise ValueError("Provide either 'question' or 'questions'")
        return self


class ValidationRecord(CamelModel):
    id: uuid.UUID
    question_id: str
    passed: bool
    checks: list[dict[str, Any]] = Field(default_factory=list)
    errors: list[dict[str, Any]] = Field(default_factory=list)
    warnings: list[dict[str, Any]] = Field(default_factory=list)
    corrected_data: dict[str, Any] | None = None
    validated_by: uuid.UUID | None = None
    validated_at: datetime


class ValidationHistoryResponse(CamelModel):
    success: bool = True
    data: list[ValidationRecord]


class ValidationStats(CamelModel):
    total: int = 0
    passed: int = 0
    failed: int = 0
    pass_rate: float = 0


class ValidationStatsResponse(CamelModel):
    success: bool = True
    data: ValidationStats
