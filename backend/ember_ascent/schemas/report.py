"""
Ember Ascent - Error Report Schemas
"""
import uuid
from typing import Annotated

from pydantic import Field

from ember_ascent.models.question import ReportType
from ember_ascent.schemas.common import CamelModel, CamelRequest


class ErrorReportCreate(CamelRequest):
    question_id: uuid.UUID
    report_type: ReportType
    description: Annotated[str, Field(max_length=1000)] | None = None


class ErrorReportCreated(CamelModel):
    success: bool = True
    message: str = "Report submitted successfully"
    report_id: uuid.UUID
