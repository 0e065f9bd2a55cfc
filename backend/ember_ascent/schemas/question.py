"""
Ember Ascent - Question Schemas
"""
import uuid
from datetime import datetime

from ember_ascent.schemas.common import CamelModel


class EmberScoreBreakdownData(CamelModel):
    curriculum_alignment: float
    expert_verification: float
    community_feedback: float


class EmberScoreData(CamelModel):
    question_id: uuid.UUID
    score: int
    tier: str
    label: str
    description: str
    breakdown: EmberScoreBreakdownData
    pending_reports: int = 0
    calculated_at: datetime


class EmberScoreResponse(CamelModel):
    success: bool = True
    data: EmberScoreData
