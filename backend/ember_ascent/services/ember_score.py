"""
Ember Ascent - Ember Score
Trust score (0-100) for a question built from curriculum alignment,
expert verification and community feedback.
"""
import re
import uuid
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ember_ascent.core.exceptions import NotFoundError
from ember_ascent.models.question import ErrorReport, Question, ReportStatus, ReviewStatus
from ember_ascent.models.user import utcnow
from ember_ascent.services.tiering import TRUST_DESCRIPTIONS, trust_tier

CURRICULUM_PATTERN = re.compile(r"^(KS[1-4]|Y[3-6]|Year [3-6])", re.IGNORECASE)

EXPERT_SCORES = {
    ReviewStatus.REVIEWED.value: 40,
    ReviewStatus.SPOT_CHECKED.value: 25,
}
AI_ONLY_SCORE = 10

COMMUNITY_BASE = 16
REPORT_PENALTY = 2


@dataclass
class EmberScoreBreakdown:
    curriculum_alignment: float
    expert_verification: float
    community_feedback: float

    @property
    def total(self) -> float:
        return self.curriculum_alignment + self.expert_verification + self.community_feedback


def curriculum_score(reference: str | None) -> int:
    """40 for a recognisable National Curriculum reference, 20 for any other."""
    if not reference or not reference.strip():
        return 0
    return 40 if CURRICULUM_PATTERN.match(reference) else 20


def expert_score(review_status: str | None) -> int:
    return EXPERT_SCORES.get(review_status or "", AI_ONLY_SCORE)


def community_score(helpful_count: int, practice_count: int, pending_reports: int) -> float:
    score = COMMUNITY_BASE - pending_reports * REPORT_PENALTY
    score += min(4, helpful_count * 0.5)
    # Usage only counts while nothing is outstanding
    if pending_reports == 0 and practice_count > 0:
        score += min(4, practice_count / 100 * 0.1)
    return min(20, max(0, score))


def calculate_ember_score(
    curriculum_reference: str | None,
    review_status: str | None,
    helpful_count: int = 0,
    practice_count: int = 0,
    pending_reports: int = 0,
) -> tuple[int, EmberScoreBreakdown]:
    breakdown = EmberScoreBreakdown(
        curriculum_alignment=curriculum_score(curriculum_reference),
        expert_verification=expert_score(review_status),
        community_feedback=round(community_score(helpful_count, practice_count, pending_reports), 1),
    )
    return int(min(100, max(0, round(breakdown.total)))), breakdown


class EmberScoreService:
    """Scores stored questions and keeps ``questions.ember_score`` current."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def score_question(self, question_id: uuid.UUID) -> dict:
        result = await self.db.execute(select(Question).where(Question.id == question_id))
        question = result.scalar_one_or_none()
        if not question:
            raise NotFoundError("Question not found")

        reports = await self.db.execute(
            select(ErrorReport.status).where(ErrorReport.question_id == question_id)
        )
        pending = sum(1 for status in reports.scalars().all() if status == ReportStatus.PENDING.value)

        score, breakdown = calculate_ember_score(
            question.curriculum_reference,
            question.review_status,
            question.helpful_count or 0,
            question.practice_count or 0,
            pending,
        )
        question.ember_score = score
        await self.db.flush()

        tier = trust_tier(score)
        return {
            "question_id": question.id,
            "score": score,
            "tier": tier.level,
            "label": tier.label,
            "description": TRUST_DESCRIPTIONS[tier.level],
            "breakdown": breakdown,
            "pending_reports": pending,
            "calculated_at": utcnow(),
        }
