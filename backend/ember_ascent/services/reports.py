"""
Ember Ascent - Error Report Service
Parents flag questions they believe are wrong. Pending reports lower the
question's Ember score until an admin reviews them.
"""
import logging
import uuid
from datetime import datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ember_ascent.core.exceptions import ConflictError, NotFoundError, RateLimitError
from ember_ascent.models.question import ErrorReport, Question, ReportStatus
from ember_ascent.models.user import utcnow

logger = logging.getLogger(__name__)

DAILY_REPORT_LIMIT = 10
DUPLICATE_WINDOW = timedelta(hours=24)


class ErrorReportService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        reporter_id: uuid.UUID,
        question_id: uuid.UUID,
        report_type: str,
        description: str | None = None,
        now: datetime | None = None,
    ) -> ErrorReport:
        """
        File a pending report against a question.

        Raises:
            NotFoundError: unknown question
            RateLimitError: the reporter already filed the daily maximum
            ConflictError: the reporter flagged this question in the last 24 hours
        """
        now = now or utcnow()
        exists = await self.db.execute(select(Question.id).where(Question.id == question_id))
        if exists.scalar_one_or_none() is None:
            raise NotFoundError("Question not found")

        day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        today_count = (await self.db.execute(
            select(func.count(ErrorReport.id)).where(
                ErrorReport.reported_by == reporter_id,
                ErrorReport.created_at >= day_start,
                ErrorReport.created_at < day_start + timedelta(days=1),
            )
        )).scalar() or 0
        if today_count >= DAILY_REPORT_LIMIT:
            raise RateLimitError("Daily report limit reached. Please try again tomorrow.")

        duplicate = (await self.db.execute(
            select(ErrorReport.id).where(
                ErrorReport.reported_by == reporter_id,
                ErrorReport.question_id == question_id,
                ErrorReport.created_at >= now - DUPLICATE_WINDOW,
            ).limit(1)
        )).scalar_one_or_none()
        if duplicate is not None:
            raise ConflictError("You've already reported an issue with this question recently.")

        report = ErrorReport(
            question_id=question_id,
            reported_by=reporter_id,
            report_type=report_type,
            description=description or "",
            status=ReportStatus.PENDING.value,
            created_at=now,
        )
        self.db.add(report)
        await self.db.flush()
        logger.info(f"Error report {report.id} ({report_type}) filed for question {question_id}")
        return report
