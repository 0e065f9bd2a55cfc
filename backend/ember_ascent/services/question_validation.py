"""
Ember Ascent - Question Validation Service
Runs the validation pipeline for admins and keeps the validation history.
"""
import dataclasses
import uuid

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ember_ascent.models.question import QuestionValidation
from ember_ascent.services.validation import (
    BatchValidationResult,
    MathQuestion,
    ValidationResult,
    generate_validation_report,
    validate_batch,
    validate_question,
)


class QuestionValidationService:
    """Validate generated questions and persist every outcome."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def validate_one(self, question: MathQuestion, admin_id: uuid.UUID) -> ValidationResult:
        result = validate_question(question)
        self._record(result, admin_id)
        await self.db.flush()
        return result

    async def validate_many(
        self,
        questions: list[MathQuestion],
        admin_id: uuid.UUID,
    ) -> tuple[BatchValidationResult, str]:
        """Validate a batch; returns the batch outcome and its text report."""
        batch = validate_batch(questions)
        for result in batch.results:
            self._record(result, admin_id)
        await self.db.flush()

        # Corrected questions count as passed in the report too
        report_rows = [
            dataclasses.replace(r, passed=True) if not r.passed and r.corrected_data else r
            for r in batch.results
        ]
        return batch, generate_validation_report(report_rows)

    def _record(self, result: ValidationResult, admin_id: uuid.UUID) -> None:
        data = result.to_dict()
        self.db.add(QuestionValidation(
            question_id=result.question_id,
            passed=result.passed,
            checks=data["checks"],
            errors=data["errors"],
            warnings=data["warnings"],
            corrected_data=result.corrected_data,
            validated_by=admin_id,
        ))

    async def history(self, question_id: str) -> list[QuestionValidation]:
        result = await self.db.execute(
            select(QuestionValidation)
            .where(QuestionValidation.question_id == question_id)
            .order_by(QuestionValidation.validated_at.desc())
        )
        return list(result.scalars().all())

    async def stats(self) -> dict:
        result = await self.db.execute(
            select(
                func.count(QuestionValidation.id),
                func.sum(case((QuestionValidation.passed.is_(True), 1), else_=0)),
            )
        )
        total, passed = result.one()
        total = total or 0
        passed = int(passed or 0)
        return {
            "total": total,
            "passed": passed,
            "failed": total - passed,
            "passRate": round(passed / total * 100, 1) if total else 0,
        }
