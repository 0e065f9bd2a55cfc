"""
Ember Ascent - Question Validation API Router
Admin-only validation of generated maths questions before publishing
"""
import logging
from typing import Annotated

from fastapi import APIRouter, Query

from ember_ascent.api.deps import AdminAuth, DbSession
from ember_ascent.schemas.validation import (
    ValidateRequest,
    ValidationHistoryResponse,
    ValidationRecord,
    ValidationStats,
    ValidationStatsResponse,
)
from ember_ascent.services.question_validation import QuestionValidationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/validate", tags=["Validation"])


@router.post("")
async def validate_questions(request: ValidateRequest, auth: AdminAuth, db: DbSession):
    """
    Validate one question or a batch of up to 100.

    Result payloads keep the pipeline's snake_case field names.
    """
    service = QuestionValidationService(db)

    if request.question is not None:
        result = await service.validate_one(request.question, auth.user.id)
        logger.info(f"Validated {result.question_id}: passed={result.passed}")
        return {"success": True, "result": result.to_dict()}

    batch, report = await service.validate_many(request.questions, auth.user.id)
    logger.info(
        f"Validated batch of {batch.total}: {len(batch.passed)} passed, "
        f"{len(batch.failed)} failed, {batch.auto_corrected} auto-corrected"
    )
    return {
        "success": True,
        "total": batch.total,
        "passed": len(batch.passed),
        "failed": len(batch.failed),
        "auto_corrected": batch.auto_corrected,
        "failed_details": [r.to_dict() for r in batch.failed],
        "report": report,
    }


@router.get("", response_model=ValidationHistoryResponse | ValidationStatsResponse)
async def get_validation_info(
    auth: AdminAuth,
    db: DbSession,
    question_id: Annotated[str | None, Query(alias="questionId", max_length=100)] = None,
):
    """History for one question, or aggregate stats without ``questionId``."""
    service = QuestionValidationService(db)
    if question_id:
        records = await service.history(question_id)
        return ValidationHistoryResponse(
            data=[ValidationRecord.model_validate(r) for r in records]
        )

    stats = await service.stats()
    return ValidationStatsResponse(
        data=ValidationStats(
            total=stats["total"],
            passed=stats["passed"],
            failed=stats["failed"],
            pass_rate=stats["passRate"],
        )
    )
