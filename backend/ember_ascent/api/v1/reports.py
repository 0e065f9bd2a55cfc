"""
Ember Ascent - Error Reports API Router
"""
from fastapi import APIRouter, status

from ember_ascent.api.deps import Auth, DbSession
from ember_ascent.schemas.report import ErrorReportCreate, ErrorReportCreated
from ember_ascent.services.reports import ErrorReportService

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.post("", response_model=ErrorReportCreated, status_code=status.HTTP_201_CREATED)
async def create_report(data: ErrorReportCreate, auth: Auth, db: DbSession):
    """Flag a question as wrong, unclear or inappropriate. Ten reports per day."""
    report = await ErrorReportService(db).create(
        reporter_id=auth.effective_user_id,
        question_id=data.question_id,
        report_type=data.report_type.value,
        description=data.description,
    )
    return ErrorReportCreated(report_id=report.id)
